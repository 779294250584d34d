"""REST API routes exposing the progress tracker."""

from collections.abc import Iterator
from contextlib import contextmanager

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import BaseModel, Field

from unicodeprep_tracker.errors import (
    ExecutionError,
    PersistenceError,
    UninitializedProgressError,
    UnsupportedLanguageError,
)
from unicodeprep_tracker.execution.runner import CodeExecutor
from unicodeprep_tracker.models.progress import (
    ActivityTag,
    InterviewData,
    TestCase,
    TestResult,
)
from unicodeprep_tracker.models.user import User
from unicodeprep_tracker.storage.progress_store import ProgressStore
from unicodeprep_tracker.tracking.tracker import ProgressTracker

logger = structlog.get_logger()
router = APIRouter(prefix="/api")


class RunRequest(BaseModel):
    code: str
    language: str = "python"
    test_cases: list[TestCase] = Field(default_factory=list)


class SubmitRequest(RunRequest):
    test_results: list[TestResult] | None = None


class AttendanceRequest(BaseModel):
    tag: str = ActivityTag.DAILY_CHECK_IN


class TimeSpentRequest(BaseModel):
    minutes: float = Field(ge=0)


@contextmanager
def translate_errors() -> Iterator[None]:
    """Map tracker errors onto HTTP status codes."""
    try:
        yield
    except UninitializedProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PersistenceError as e:
        logger.error("persistence_failed", error=str(e))
        raise HTTPException(status_code=503, detail="Progress storage unavailable")
    except UnsupportedLanguageError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ExecutionError as e:
        logger.error("execution_failed", error=str(e))
        raise HTTPException(status_code=502, detail=str(e))


def get_store(request: Request) -> ProgressStore:
    return request.app.state.store


def get_executor(request: Request) -> CodeExecutor | None:
    return getattr(request.app.state, "executor", None)


def get_tracker(
    x_user_id: str = Header(..., min_length=1),
    store: ProgressStore = Depends(get_store),
    executor: CodeExecutor | None = Depends(get_executor),
) -> ProgressTracker:
    """Build a tracker bound to the calling user."""
    tracker = ProgressTracker(store=store, executor=executor)
    with translate_errors():
        tracker.set_current_user(User(id=x_user_id))
    return tracker


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/progress")
def get_progress(tracker: ProgressTracker = Depends(get_tracker)) -> dict:
    with translate_errors():
        progress = tracker.get_user_progress()
        if progress is None:
            raise UninitializedProgressError()
    return progress.model_dump(mode="json", by_alias=True)


@router.delete("/progress", status_code=204)
def clear_progress(tracker: ProgressTracker = Depends(get_tracker)) -> None:
    with translate_errors():
        tracker.clear_user_progress()


@router.get("/problems/{problem_id}")
def get_problem(problem_id: str, tracker: ProgressTracker = Depends(get_tracker)) -> dict:
    with translate_errors():
        problem = tracker.get_problem_progress(problem_id)
    return problem.model_dump(mode="json", by_alias=True)


@router.post("/run")
def run_code(body: RunRequest, tracker: ProgressTracker = Depends(get_tracker)) -> list[dict]:
    """Execute test cases without recording a submission."""
    with translate_errors():
        results = tracker.execute_code(body.code, body.language, body.test_cases)
    return [r.model_dump(mode="json", by_alias=True) for r in results]


@router.post("/problems/{problem_id}/submissions", status_code=201)
def submit_solution(
    problem_id: str, body: SubmitRequest, tracker: ProgressTracker = Depends(get_tracker)
) -> dict:
    """Record a submission, running the test cases first when no results are given."""
    with translate_errors():
        results = body.test_results
        if results is None:
            if not body.test_cases:
                raise HTTPException(
                    status_code=422, detail="Provide test_results or test_cases"
                )
            results = tracker.execute_code(body.code, body.language, body.test_cases)
        submission = tracker.submit_problem_solution(
            problem_id, body.code, body.language, results
        )
    return submission.model_dump(mode="json", by_alias=True)


@router.get("/submissions")
def list_submissions(
    problem_id: str | None = None, tracker: ProgressTracker = Depends(get_tracker)
) -> list[dict]:
    with translate_errors():
        history = tracker.get_submission_history(problem_id)
    return [s.model_dump(mode="json", by_alias=True) for s in history]


@router.post("/interviews", status_code=201)
def complete_interview(
    body: InterviewData, tracker: ProgressTracker = Depends(get_tracker)
) -> dict:
    with translate_errors():
        interview = tracker.complete_interview(body)
    return interview.model_dump(mode="json", by_alias=True)


@router.get("/attendance")
def get_attendance(tracker: ProgressTracker = Depends(get_tracker)) -> dict[str, bool]:
    with translate_errors():
        return tracker.get_attendance_data()


@router.post("/attendance")
def mark_attendance(
    body: AttendanceRequest, tracker: ProgressTracker = Depends(get_tracker)
) -> dict:
    with translate_errors():
        activity = tracker.mark_attendance(body.tag)
    return activity.model_dump(mode="json", by_alias=True)


@router.post("/time")
def log_time(body: TimeSpentRequest, tracker: ProgressTracker = Depends(get_tracker)) -> dict:
    with translate_errors():
        activity = tracker.log_time_spent(body.minutes)
    return activity.model_dump(mode="json", by_alias=True)


@router.get("/dashboard")
def get_dashboard(tracker: ProgressTracker = Depends(get_tracker)) -> dict:
    with translate_errors():
        summary = tracker.get_dashboard_summary()
    return summary.model_dump(mode="json", by_alias=True)
