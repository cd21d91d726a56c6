from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union

Answer = Union[str, list]

MULTI_SELECT_TYPES = frozenset({'checkbox', 'multiple_answers'})


class ResolutionMode(str, Enum):
    RESUME = 'resume'
    NEWLY_CREATED = 'newly_created'
    LIMIT_REACHED = 'limit_reached'


class TimerStatus(str, Enum):
    UNTIMED = 'untimed'
    NOT_STARTED = 'not_started'
    RUNNING = 'running'
    EXPIRED = 'expired'
    COMPLETED = 'completed'


@dataclass(frozen=True)
class QuestionInfo:
    id: int
    question_type: str
    question_text: str = ''
    options: Optional[list] = None
    points: float = 1
    order_index: int = 0

    @property
    def is_multi_select(self) -> bool:
        return self.question_type in MULTI_SELECT_TYPES


@dataclass(frozen=True)
class QuizInfo:
    id: int
    title: str = ''
    time_limit_minutes: Optional[int] = None
    attempts_allowed: Optional[int] = None
    questions: tuple = ()

    @property
    def is_timed(self) -> bool:
        return bool(self.time_limit_minutes)


@dataclass(frozen=True)
class AttemptState:
    """Snapshot of an attempt as last returned by the attempt store."""

    id: int
    quiz_id: int
    user_id: int
    attempt_number: int
    started_at: datetime
    completed_at: Optional[datetime] = None
    answers: dict = field(default_factory=dict)
    score: Optional[float] = None
    max_score: Optional[float] = None
    time_limit_minutes: Optional[int] = None
    timer_started_at: Optional[datetime] = None
    is_timer_active: bool = False
    time_remaining_seconds: Optional[int] = None
    time_taken_seconds: Optional[int] = None
    needs_manual_grading: bool = False

    @property
    def is_active(self) -> bool:
        return self.completed_at is None


@dataclass(frozen=True)
class Resolution:
    quiz: QuizInfo
    attempt: Optional[AttemptState]
    mode: ResolutionMode
    completed_count: int

    @property
    def is_read_only(self) -> bool:
        if self.mode == ResolutionMode.LIMIT_REACHED:
            return True
        return self.attempt is None or not self.attempt.is_active


@dataclass(frozen=True)
class TimerReading:
    remaining_seconds: Optional[int]
    status: TimerStatus


@dataclass(frozen=True)
class CacheEntry:
    attempt_id: int
    remaining_seconds: int
    last_updated_at: datetime


@dataclass(frozen=True)
class ScoreResult:
    score: float
    max_score: float


@dataclass(frozen=True)
class SubmissionResult:
    attempt_id: int
    score: Optional[float]
    max_score: Optional[float]
    auto: bool = False
    already_completed: bool = False
