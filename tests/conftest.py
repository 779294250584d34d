"""Shared fixtures for tracker tests."""

from datetime import datetime, timedelta

import pytest

from unicodeprep_tracker.models.progress import TestCase, TestResult
from unicodeprep_tracker.models.user import User
from unicodeprep_tracker.storage.progress_store import InMemoryProgressStore
from unicodeprep_tracker.tracking.tracker import ProgressTracker


class FakeClock:
    """Callable clock that tests can move forward by hand."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, days: int = 0, seconds: int = 0) -> None:
        self.now += timedelta(days=days, seconds=seconds)


class RawDocumentStore(InMemoryProgressStore):
    """In-memory store that can also hold hand-written documents."""

    def __contains__(self, key: str) -> bool:
        return key in self._documents

    def put_raw(self, key: str, raw: str) -> None:
        self._documents[key] = raw


class StubExecutor:
    """Executor returning pre-set pass/fail flags, one per test case."""

    def __init__(self, outcomes: list[bool] | None = None):
        self.outcomes = outcomes
        self.calls: list[tuple[str, str, list[TestCase]]] = []

    def execute(self, code, language, test_cases):
        self.calls.append((code, language, test_cases))
        outcomes = self.outcomes or [True] * len(test_cases)
        return [
            TestResult(
                input=case.input,
                expected_output=case.expected_output,
                actual_output=case.expected_output if ok else "Wrong Answer",
                passed=ok,
                execution_time=10.0,
            )
            for case, ok in zip(test_cases, outcomes)
        ]


def passing(n: int = 2) -> list[TestResult]:
    return [TestResult(input=str(i), expected_output=str(i), actual_output=str(i), passed=True, execution_time=5.0) for i in range(n)]


def failing() -> list[TestResult]:
    return [
        TestResult(input="1", expected_output="1", actual_output="1", passed=True, execution_time=5.0),
        TestResult(input="2", expected_output="2", actual_output="3", passed=False, execution_time=7.5),
    ]


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 10, 9, 30, 0))


@pytest.fixture
def store():
    return RawDocumentStore()


@pytest.fixture
def user():
    return User(id="student_1", email="demo@unicodeprep.edu", user_data={"name": "Demo"})


@pytest.fixture
def tracker(store, clock, user):
    t = ProgressTracker(store=store, executor=StubExecutor(), clock=clock)
    t.set_current_user(user)
    return t
