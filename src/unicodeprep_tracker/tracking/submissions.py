"""Submission recording and per-problem status transitions."""

from datetime import datetime

from unicodeprep_tracker.models.progress import (
    ActivityTag,
    ProblemProgress,
    ProblemStatus,
    ProblemSubmission,
    SubmissionStatus,
    TestResult,
    UserProgress,
)
from unicodeprep_tracker.tracking.scoring import POINTS_PER_SOLVE, award_points
from unicodeprep_tracker.tracking.streak import mark_attendance


def get_or_create_problem(progress: UserProgress, problem_id: str) -> ProblemProgress:
    problem = progress.problems_progress.get(problem_id)
    if problem is None:
        problem = ProblemProgress(problem_id=problem_id)
        progress.problems_progress[problem_id] = problem
    return problem


def build_submission(
    problem_id: str,
    code: str,
    language: str,
    test_results: list[TestResult],
    submitted_at: datetime,
) -> ProblemSubmission:
    all_passed = all(result.passed for result in test_results)
    return ProblemSubmission(
        problem_id=problem_id,
        code=code,
        language=language,
        status=SubmissionStatus.PASSED if all_passed else SubmissionStatus.FAILED,
        test_results=list(test_results),
        submitted_at=submitted_at,
        execution_time=sum(result.execution_time for result in test_results),
    )


def record_submission(
    progress: UserProgress,
    problem_id: str,
    code: str,
    language: str,
    test_results: list[TestResult],
    now: datetime,
) -> tuple[ProblemSubmission, bool]:
    """Append a submission and apply the not_started -> attempted -> solved machine.

    The first fully passing submission solves the problem: it becomes the
    best submission, awards the solve points and marks today's attendance.
    Later submissions never revert the status or re-award.

    Returns:
        The stored submission and whether this call solved the problem.
    """
    problem = get_or_create_problem(progress, problem_id)
    submission = build_submission(problem_id, code, language, test_results, now)
    problem.submissions.append(submission)

    if problem.status == ProblemStatus.NOT_STARTED:
        problem.status = ProblemStatus.ATTEMPTED
        problem.first_attempt_date = now
        progress.statistics.problems_attempted += 1

    newly_solved = (
        submission.status == SubmissionStatus.PASSED
        and problem.status != ProblemStatus.SOLVED
    )
    if newly_solved:
        problem.status = ProblemStatus.SOLVED
        problem.solved_date = now
        problem.best_submission = submission
        progress.statistics.problems_solved += 1
        award_points(progress, POINTS_PER_SOLVE)
        mark_attendance(progress, ActivityTag.PROBLEM_SOLVED, now.date())

    return submission, newly_solved


def submission_history(
    progress: UserProgress, problem_id: str | None = None
) -> list[ProblemSubmission]:
    """Submissions for one problem in submission order, or all of them newest first."""
    if problem_id is not None:
        problem = progress.problems_progress.get(problem_id)
        return list(problem.submissions) if problem else []

    every = [s for p in progress.problems_progress.values() for s in p.submissions]
    return sorted(every, key=lambda s: s.submitted_at, reverse=True)
