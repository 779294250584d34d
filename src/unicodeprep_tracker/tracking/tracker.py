"""Progress facade: the single owner of a user's progress snapshot."""

import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

import structlog

from unicodeprep_tracker.errors import (
    DeserializationError,
    ExecutionError,
    UninitializedProgressError,
)
from unicodeprep_tracker.execution.runner import CodeExecutor
from unicodeprep_tracker.models.progress import (
    ActivityTag,
    DailyActivity,
    DashboardSummary,
    DayAttendance,
    InterviewData,
    InterviewProgress,
    ProblemProgress,
    ProblemSubmission,
    TestCase,
    TestResult,
    UserProgress,
)
from unicodeprep_tracker.models.user import User
from unicodeprep_tracker.storage.progress_store import ProgressStore, progress_key
from unicodeprep_tracker.tracking.activity import (
    add_time_spent,
    attendance_for_month,
    recent_attendance,
)
from unicodeprep_tracker.tracking.scoring import (
    award_points,
    interview_points,
    rebuild_statistics,
)
from unicodeprep_tracker.tracking import streak
from unicodeprep_tracker.tracking.submissions import (
    get_or_create_problem,
    record_submission,
    submission_history,
)

logger = structlog.get_logger()

RECENT_SUBMISSIONS_LIMIT = 5


class ProgressTracker:
    """Records problem submissions, interviews and attendance for one bound user.

    Every mutation runs against a copy of the snapshot and only replaces the
    in-memory state once the store has accepted the new document, so a
    failed save leaves the previous snapshot in place.

    Args:
        store: Persistence backend for snapshots.
        executor: Code execution service used by ``execute_code``.
        clock: Returns the current local time. Injected for tests.
    """

    def __init__(
        self,
        store: ProgressStore,
        executor: CodeExecutor | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.executor = executor
        self.clock = clock
        self._current_user: User | None = None
        self._progress: UserProgress | None = None

    @property
    def current_user(self) -> User | None:
        return self._current_user

    def set_current_user(self, user: User) -> UserProgress:
        """Bind ``user`` and load their snapshot, creating a fresh one if needed."""
        self._current_user = user
        self._progress = None
        key = progress_key(user.id)
        try:
            progress = self.store.load(key)
        except DeserializationError as e:
            logger.warning("progress_snapshot_discarded", user_id=user.id, error=str(e))
            progress = None

        if progress is None:
            progress = UserProgress(user_id=user.id)
            self._persist(progress)
            logger.info("progress_initialized", user_id=user.id)
        else:
            progress.statistics = rebuild_statistics(progress)
            logger.info(
                "progress_loaded",
                user_id=user.id,
                total_score=progress.total_score,
                rank=progress.rank.value,
            )
        self._progress = progress
        return progress

    def get_user_progress(self) -> UserProgress | None:
        return self._progress

    def get_problem_progress(self, problem_id: str) -> ProblemProgress:
        """Return the problem's record, creating an untouched one on first access.

        A newly created record lives in memory until the next save.
        """
        return get_or_create_problem(self._require_progress(), problem_id)

    def submit_problem_solution(
        self,
        problem_id: str,
        code: str,
        language: str,
        test_results: list[TestResult],
    ) -> ProblemSubmission:
        with self._transaction() as progress:
            previous_rank = progress.rank
            submission, solved = record_submission(
                progress, problem_id, code, language, test_results, self.clock()
            )

        logger.info(
            "submission_recorded",
            user_id=progress.user_id,
            problem_id=problem_id,
            status=submission.status.value,
        )
        if solved:
            logger.info(
                "problem_solved",
                user_id=progress.user_id,
                problem_id=problem_id,
                total_score=progress.total_score,
            )
            self._log_rank_change(previous_rank, progress)
        return submission

    def complete_interview(self, interview_data: InterviewData | dict[str, Any]) -> InterviewProgress:
        if isinstance(interview_data, dict):
            interview_data = InterviewData.model_validate(interview_data)

        with self._transaction() as progress:
            previous_rank = progress.rank
            now = self.clock()
            interview = InterviewProgress(
                **interview_data.model_dump(),
                session_id=f"interview_{uuid.uuid4().hex}",
                completed_at=now,
            )
            progress.interviews_progress.append(interview)
            progress.statistics.interviews_completed += 1
            award_points(progress, interview_points(interview.score))
            streak.mark_attendance(progress, ActivityTag.INTERVIEW_COMPLETED, now.date())

        logger.info(
            "interview_completed",
            user_id=progress.user_id,
            session_id=interview.session_id,
            score=interview.score,
            total_score=progress.total_score,
        )
        self._log_rank_change(previous_rank, progress)
        return interview

    def mark_attendance(self, tag: str = ActivityTag.DAILY_CHECK_IN) -> DailyActivity:
        """Record a manual check-in (or any other tag) for today."""
        with self._transaction() as progress:
            activity = streak.mark_attendance(progress, tag, self.clock().date())
        logger.info(
            "attendance_marked",
            user_id=progress.user_id,
            tag=str(tag),
            current_streak=progress.current_streak,
        )
        return activity

    def log_time_spent(self, minutes: float) -> DailyActivity:
        with self._transaction() as progress:
            activity = add_time_spent(progress, minutes, self.clock().date())
        return activity

    def get_attendance_data(self) -> dict[str, bool]:
        return attendance_for_month(self._require_progress(), self.clock().date())

    def get_submission_history(self, problem_id: str | None = None) -> list[ProblemSubmission]:
        return submission_history(self._require_progress(), problem_id)

    def get_dashboard_summary(self) -> DashboardSummary:
        progress = self._require_progress()
        today = self.clock().date()
        month = attendance_for_month(progress, today)
        days_attended = sum(month.values())
        return DashboardSummary(
            problems_solved=progress.statistics.problems_solved,
            problems_attempted=progress.statistics.problems_attempted,
            interviews_completed=progress.statistics.interviews_completed,
            total_score=progress.total_score,
            rank=progress.rank,
            rank_label=progress.rank.label,
            current_streak=progress.current_streak,
            longest_streak=progress.longest_streak,
            consistency_coins=progress.consistency_coins,
            days_attended=days_attended,
            attendance_rate=round(days_attended / max(len(month), 1) * 100),
            last_seven_days=[
                DayAttendance(date=day, attended=flag)
                for day, flag in recent_attendance(progress, today)
            ],
            recent_submissions=submission_history(progress)[:RECENT_SUBMISSIONS_LIMIT],
        )

    def clear_user_progress(self) -> None:
        """Delete the bound user's snapshot and unbind them."""
        if self._current_user is None:
            raise UninitializedProgressError()
        user_id = self._current_user.id
        self.store.delete(progress_key(user_id))
        self._progress = None
        self._current_user = None
        logger.info("progress_cleared", user_id=user_id)

    def execute_code(
        self, code: str, language: str, test_cases: list[TestCase]
    ) -> list[TestResult]:
        if self.executor is None:
            raise ExecutionError("No code executor configured")
        return self.executor.execute(code, language, test_cases)

    def _require_progress(self) -> UserProgress:
        if self._progress is None:
            raise UninitializedProgressError()
        return self._progress

    @contextmanager
    def _transaction(self) -> Iterator[UserProgress]:
        working = self._require_progress().model_copy(deep=True)
        yield working
        self._persist(working)
        self._progress = working

    def _persist(self, progress: UserProgress) -> None:
        self.store.save(progress_key(progress.user_id), progress)
        self._mirror_to_user_data(progress)

    def _mirror_to_user_data(self, progress: UserProgress) -> None:
        user = self._current_user
        if user is None or user.user_data is None:
            return
        user.user_data["progress"] = {
            "total_score": progress.total_score,
            "problems_solved": progress.statistics.problems_solved,
            "interviews_completed": progress.statistics.interviews_completed,
            "current_streak": progress.current_streak,
            "longest_streak": progress.longest_streak,
            "consistency_coins": progress.consistency_coins,
            "rank": progress.rank.value,
        }

    @staticmethod
    def _log_rank_change(previous, progress: UserProgress) -> None:
        if progress.rank != previous:
            logger.info(
                "rank_changed",
                user_id=progress.user_id,
                old_rank=previous.value,
                new_rank=progress.rank.value,
            )
