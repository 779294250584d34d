"""Streak and consistency-coin engine."""

from datetime import date, timedelta

import structlog

from unicodeprep_tracker.models.progress import DailyActivity, UserProgress
from unicodeprep_tracker.tracking.activity import date_key, record_activity

logger = structlog.get_logger()


def update_streak(progress: UserProgress, today: date) -> None:
    """Advance, reset or keep the current streak for activity on ``today``.

    A repeat on the same day leaves the streak untouched. Any other gap,
    including a last-activity date after ``today``, restarts it at 1.
    """
    today_key = date_key(today)
    yesterday_key = date_key(today - timedelta(days=1))
    last = progress.last_activity_date

    if last is None or last == yesterday_key:
        progress.current_streak += 1
    elif last != today_key:
        logger.info(
            "streak_reset",
            user_id=progress.user_id,
            previous_streak=progress.current_streak,
            last_activity_date=last,
        )
        progress.current_streak = 1

    progress.longest_streak = max(progress.longest_streak, progress.current_streak)
    progress.last_activity_date = today_key


def coins_for_streak(current_streak: int) -> int:
    """Coins earned per attendance mark: two per pair of streak days, minimum 2."""
    return max(1, current_streak // 2) * 2


def mark_attendance(progress: UserProgress, tag: str, today: date) -> DailyActivity:
    """Record ``tag`` for today, update the streak and award consistency coins.

    Coins are awarded on every call, including repeat calls on the same day.
    """
    activity = record_activity(progress, tag, today)
    update_streak(progress, today)
    progress.consistency_coins += coins_for_streak(progress.current_streak)
    return activity
