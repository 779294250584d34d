"""Progress snapshot models.

The persisted document uses camelCase field names, so every model here
serialises through ``to_camel`` aliases while Python code uses snake_case.
"""

from datetime import datetime
from enum import StrEnum
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _to_naive_local(value: datetime) -> datetime:
    """Convert offset-aware timestamps to naive local time."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


# All stored timestamps are naive local time, matching the tracker clock.
LocalDateTime = Annotated[datetime, AfterValidator(_to_naive_local)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProblemStatus(StrEnum):
    """Per-problem lifecycle. Only ever moves forward."""

    NOT_STARTED = "not_started"
    ATTEMPTED = "attempted"
    SOLVED = "solved"


class SubmissionStatus(StrEnum):
    PASSED = "passed"
    FAILED = "failed"
    PENDING = "pending"


class ActivityTag(StrEnum):
    """Activity tags recorded against a calendar day."""

    PROBLEM_SOLVED = "problem_solved"
    INTERVIEW_COMPLETED = "interview_completed"
    DAILY_CHECK_IN = "daily_check_in"


class InterviewType(StrEnum):
    TECHNICAL = "technical"
    BEHAVIORAL = "behavioral"
    SYSTEM_DESIGN = "system_design"


class Difficulty(StrEnum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


_RANK_LABELS = {
    "bronze": "Bronze Explorer",
    "silver": "Silver Achiever",
    "gold": "Gold Champion",
    "platinum": "Platinum Master",
    "diamond": "Diamond Legend",
}


class Rank(StrEnum):
    """Ordered rank tiers derived from cumulative score."""

    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"
    DIAMOND = "diamond"

    @classmethod
    def from_score(cls, total_score: int) -> "Rank":
        """Determine rank tier from total score."""
        if total_score >= 10000:
            return cls.DIAMOND
        elif total_score >= 5000:
            return cls.PLATINUM
        elif total_score >= 2500:
            return cls.GOLD
        elif total_score >= 1000:
            return cls.SILVER
        else:
            return cls.BRONZE

    @property
    def label(self) -> str:
        """Display name shown on the dashboard."""
        return _RANK_LABELS[self.value]


class TestCase(CamelModel):
    """Input/expected-output pair handed to the code executor."""

    __test__ = False  # keep pytest from collecting this class

    input: str = ""
    expected_output: str = ""


class TestResult(CamelModel):
    """Outcome of running one test case."""

    __test__ = False

    model_config = ConfigDict(frozen=True)

    input: str = ""
    expected_output: str = ""
    actual_output: str = ""
    passed: bool
    execution_time: float = Field(default=0.0, ge=0.0)  # milliseconds


class ProblemSubmission(CamelModel):
    model_config = ConfigDict(frozen=True)

    problem_id: str
    code: str
    language: str
    status: SubmissionStatus
    test_results: list[TestResult] = Field(default_factory=list)
    submitted_at: LocalDateTime = Field(default_factory=datetime.now)
    execution_time: float = 0.0
    memory_used: float | None = None  # not measured by the bundled executor


class ProblemProgress(CamelModel):
    problem_id: str
    status: ProblemStatus = ProblemStatus.NOT_STARTED
    submissions: list[ProblemSubmission] = Field(default_factory=list)
    first_attempt_date: LocalDateTime | None = None
    solved_date: LocalDateTime | None = None
    best_submission: ProblemSubmission | None = None


class InterviewQuestion(CamelModel):
    question: str
    answer: str = ""
    rating: float = 0.0


class InterviewData(CamelModel):
    """Caller-supplied description of a finished interview."""

    type: InterviewType = InterviewType.TECHNICAL
    difficulty: Difficulty = Difficulty.MEDIUM
    duration: float = Field(default=0.0, ge=0.0)  # minutes
    score: float = Field(ge=0.0, le=100.0)
    feedback: str = ""
    questions: list[InterviewQuestion] = Field(default_factory=list)


class InterviewProgress(InterviewData):
    """A stored interview record."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    completed_at: LocalDateTime = Field(default_factory=datetime.now)


class DailyActivity(CamelModel):
    date: str  # YYYY-MM-DD, local calendar day
    problems_solved: int = 0
    interviews_completed: int = 0
    time_spent: float = 0.0  # minutes
    activities_completed: list[str] = Field(default_factory=list)


class ProgressStatistics(CamelModel):
    """Cached aggregates, recomputable from the rest of the snapshot."""

    problems_solved: int = 0
    problems_attempted: int = 0
    interviews_completed: int = 0
    total_time_spent: float = 0.0
    average_score: float = 0.0


class UserProgress(CamelModel):
    """Root aggregate persisted once per user."""

    user_id: str
    problems_progress: dict[str, ProblemProgress] = Field(default_factory=dict)
    interviews_progress: list[InterviewProgress] = Field(default_factory=list)
    daily_activities: dict[str, DailyActivity] = Field(default_factory=dict)
    total_score: int = Field(default=0, ge=0)
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    consistency_coins: int = Field(default=0, ge=0)
    rank: Rank = Rank.BRONZE
    last_activity_date: str | None = None
    statistics: ProgressStatistics = Field(default_factory=ProgressStatistics)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class DayAttendance(CamelModel):
    date: str
    attended: bool


class DashboardSummary(CamelModel):
    """Read-only view assembled for the student dashboard."""

    problems_solved: int
    problems_attempted: int
    interviews_completed: int
    total_score: int
    rank: Rank
    rank_label: str
    current_streak: int
    longest_streak: int
    consistency_coins: int
    days_attended: int
    attendance_rate: int  # percent of this month's days
    last_seven_days: list[DayAttendance] = Field(default_factory=list)
    recent_submissions: list[ProblemSubmission] = Field(default_factory=list)
