"""Per-day activity ledger and attendance views."""

import calendar
from datetime import date, timedelta

from unicodeprep_tracker.models.progress import ActivityTag, DailyActivity, UserProgress


def date_key(day: date) -> str:
    """Ledger key for a calendar day (YYYY-MM-DD)."""
    return day.isoformat()


def get_or_create_daily(progress: UserProgress, day: date) -> DailyActivity:
    key = date_key(day)
    activity = progress.daily_activities.get(key)
    if activity is None:
        activity = DailyActivity(date=key)
        progress.daily_activities[key] = activity
    return activity


def record_activity(progress: UserProgress, tag: str, day: date) -> DailyActivity:
    """Add ``tag`` to the day's activity set and bump the matching counter.

    The tag set never holds duplicates; counters grow on every call.
    """
    tag = str(tag)
    activity = get_or_create_daily(progress, day)
    if tag not in activity.activities_completed:
        activity.activities_completed.append(tag)

    if tag == ActivityTag.PROBLEM_SOLVED:
        activity.problems_solved += 1
    elif tag == ActivityTag.INTERVIEW_COMPLETED:
        activity.interviews_completed += 1
    return activity


def add_time_spent(progress: UserProgress, minutes: float, day: date) -> DailyActivity:
    if minutes < 0:
        raise ValueError(f"minutes must be non-negative, got {minutes}")
    activity = get_or_create_daily(progress, day)
    activity.time_spent += minutes
    progress.statistics.total_time_spent += minutes
    return activity


def attended(progress: UserProgress, day: date) -> bool:
    activity = progress.daily_activities.get(date_key(day))
    return bool(activity and activity.activities_completed)


def attendance_for_month(progress: UserProgress, today: date) -> dict[str, bool]:
    """One entry per day of ``today``'s month, True where any activity was tagged."""
    days_in_month = calendar.monthrange(today.year, today.month)[1]
    return {
        date_key(day): attended(progress, day)
        for day in (today.replace(day=n) for n in range(1, days_in_month + 1))
    }


def recent_attendance(progress: UserProgress, today: date, days: int = 7) -> list[tuple[str, bool]]:
    """Attendance for the trailing ``days`` days ending today, oldest first."""
    window = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
    return [(date_key(day), attended(progress, day)) for day in window]
