"""
Collaborators the engine talks to. The ORM-backed implementations live in
``quizzes.store`` and ``quizzes.scoring``; anything honouring these methods
(an HTTP client, an in-memory fake) can be swapped in.
"""
from datetime import datetime
from typing import Optional, Protocol

from .types import AttemptState, QuizInfo, ScoreResult


class AttemptStore(Protocol):
    def list_attempts(self, quiz_id: int, user_id: int) -> list[AttemptState]:
        """All attempts for (quiz, user), newest ``started_at`` first."""

    def fetch_attempt(self, attempt_id: int) -> AttemptState:
        ...

    def create_attempt(self, quiz_id: int, user_id: int, attempt_number: int, started_at: datetime) -> AttemptState:
        """Raises ``AttemptConflict`` when another active attempt already exists."""

    def start_timer(self, attempt_id: int, time_limit_minutes: int) -> AttemptState:
        """First writer wins; later callers get the original ``timer_started_at`` back."""

    def checkpoint(self, attempt_id: int, remaining_seconds: int) -> bool:
        ...

    def save_answers(self, attempt_id: int, answers: dict) -> AttemptState:
        ...

    def reset(self, quiz_id: int, user_id: int) -> int:
        ...


class QuizCatalog(Protocol):
    def get_quiz(self, quiz_id: int) -> QuizInfo:
        ...


class ScoringService(Protocol):
    def submit(self, attempt_id: int, answers: dict) -> ScoreResult:
        """Scores and completes the attempt; raises ``AttemptAlreadyCompleted`` on a second call."""


class AssignmentBook(Protocol):
    def record_submission(self, assignment_id: int, user_id: int, score: Optional[float]) -> None:
        ...
