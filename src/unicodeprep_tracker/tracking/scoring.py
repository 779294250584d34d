"""Point accounting and rank tiers."""

import math

from unicodeprep_tracker.models.progress import (
    ProblemStatus,
    ProgressStatistics,
    Rank,
    UserProgress,
)

POINTS_PER_SOLVE = 100
INTERVIEW_POINTS_MULTIPLIER = 10


def interview_points(score: float) -> int:
    """Points for an interview rated ``score`` (0-100), rounded half up."""
    return math.floor(score * INTERVIEW_POINTS_MULTIPLIER + 0.5)


def refresh_average(progress: UserProgress) -> None:
    stats = progress.statistics
    completed = stats.problems_solved + stats.interviews_completed
    if completed > 0:
        stats.average_score = progress.total_score / completed


def award_points(progress: UserProgress, points: int) -> Rank:
    """Add ``points`` to the total, then re-derive rank and average score.

    Returns:
        The rank after the award.
    """
    if points < 0:
        raise ValueError(f"points must be non-negative, got {points}")
    progress.total_score += points
    progress.rank = Rank.from_score(progress.total_score)
    refresh_average(progress)
    return progress.rank


def rebuild_statistics(progress: UserProgress) -> ProgressStatistics:
    """Recompute the statistics cache from the underlying records."""
    problems = progress.problems_progress.values()
    solved = sum(1 for p in problems if p.status == ProblemStatus.SOLVED)
    attempted = sum(1 for p in problems if p.status != ProblemStatus.NOT_STARTED)
    interviews = len(progress.interviews_progress)
    completed = solved + interviews
    return ProgressStatistics(
        problems_solved=solved,
        problems_attempted=attempted,
        interviews_completed=interviews,
        total_time_spent=sum(a.time_spent for a in progress.daily_activities.values()),
        average_score=(
            progress.total_score / completed
            if completed
            else progress.statistics.average_score
        ),
    )
