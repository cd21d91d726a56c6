from dataclasses import replace
from datetime import datetime, timezone as dt_timezone
from itertools import count

from django.core.cache.backends.locmem import LocMemCache

from attempts.clock import seconds_between
from attempts.errors import (
    AttemptAlreadyCompleted,
    AttemptConflict,
    AttemptNotFound,
    AttemptReadOnly,
    AttemptStoreUnavailable,
)
from attempts.timer_cache import LocalTimerCache
from attempts.types import AttemptState, QuizInfo, ScoreResult

T0 = datetime(2024, 3, 4, 9, 0, tzinfo=dt_timezone.utc)

_cache_names = count()


def make_timer_cache() -> LocalTimerCache:
    return LocalTimerCache(LocMemCache(f'timer-cache-{next(_cache_names)}', {}))


def make_attempt(**overrides) -> AttemptState:
    values = {
        'id': 1,
        'quiz_id': 10,
        'user_id': 100,
        'attempt_number': 1,
        'started_at': T0,
    }
    values.update(overrides)
    return AttemptState(**values)


class InMemoryCatalog:
    def __init__(self, *quizzes: QuizInfo) -> None:
        self.quizzes = {quiz.id: quiz for quiz in quizzes}

    def get_quiz(self, quiz_id) -> QuizInfo:
        return self.quizzes[quiz_id]


class InMemoryAttemptStore:
    """Mirrors the database store's first-writer-wins and reject-if-completed rules."""

    def __init__(self, clock) -> None:
        self.clock = clock
        self.attempts: dict[int, AttemptState] = {}
        self._ids = count(1)
        self.fail_checkpoints = False
        self.fail_start = False
        self.creations = 0
        self.checkpoints: list[tuple[int, int]] = []

    def add(self, attempt: AttemptState) -> AttemptState:
        self.attempts[attempt.id] = attempt
        return attempt

    def list_attempts(self, quiz_id, user_id):
        attempts = [a for a in self.attempts.values() if a.quiz_id == quiz_id and a.user_id == user_id]
        return sorted(attempts, key=lambda a: (a.started_at, a.attempt_number), reverse=True)

    def fetch_attempt(self, attempt_id):
        try:
            return self.attempts[attempt_id]
        except KeyError as exc:
            raise AttemptNotFound(attempt_id) from exc

    def create_attempt(self, quiz_id, user_id, attempt_number, started_at):
        existing = self.list_attempts(quiz_id, user_id)
        if any(a.completed_at is None for a in existing) or any(a.attempt_number == attempt_number for a in existing):
            raise AttemptConflict('active attempt exists')
        self.creations += 1
        attempt = AttemptState(
            id=next(self._ids) + 1000,
            quiz_id=quiz_id,
            user_id=user_id,
            attempt_number=attempt_number,
            started_at=started_at,
        )
        return self.add(attempt)

    def start_timer(self, attempt_id, time_limit_minutes):
        if self.fail_start:
            raise AttemptStoreUnavailable('network down')
        attempt = self.fetch_attempt(attempt_id)
        if attempt.completed_at is not None:
            raise AttemptAlreadyCompleted(attempt_id)
        if attempt.timer_started_at is None:
            attempt = replace(
                attempt,
                timer_started_at=self.clock.now(),
                is_timer_active=True,
                time_limit_minutes=time_limit_minutes,
                time_remaining_seconds=time_limit_minutes * 60,
            )
            self.attempts[attempt_id] = attempt
        return attempt

    def checkpoint(self, attempt_id, remaining_seconds):
        if self.fail_checkpoints:
            raise AttemptStoreUnavailable('network down')
        self.checkpoints.append((attempt_id, remaining_seconds))
        attempt = self.fetch_attempt(attempt_id)
        self.attempts[attempt_id] = replace(attempt, time_remaining_seconds=remaining_seconds)
        return True

    def save_answers(self, attempt_id, answers):
        attempt = self.fetch_attempt(attempt_id)
        if attempt.completed_at is not None:
            raise AttemptAlreadyCompleted(attempt_id)
        if attempt.timer_started_at is not None and attempt.time_limit_minutes:
            if seconds_between(attempt.timer_started_at, self.clock.now()) >= attempt.time_limit_minutes * 60:
                raise AttemptReadOnly(attempt_id)
        attempt = replace(attempt, answers=dict(answers))
        self.attempts[attempt_id] = attempt
        return attempt

    def reset(self, quiz_id, user_id):
        doomed = [a.id for a in self.list_attempts(quiz_id, user_id)]
        for attempt_id in doomed:
            del self.attempts[attempt_id]
        return len(doomed)

    def complete(self, attempt_id, score, max_score, answers=None):
        attempt = self.fetch_attempt(attempt_id)
        attempt = replace(
            attempt,
            completed_at=self.clock.now(),
            score=score,
            max_score=max_score,
            answers=dict(answers or attempt.answers),
            is_timer_active=False,
        )
        self.attempts[attempt_id] = attempt
        return attempt


class FixedScoring:
    """Awards one point per answered question out of ``max_score``."""

    def __init__(self, store: InMemoryAttemptStore, max_score: float = 3) -> None:
        self.store = store
        self.max_score = max_score
        self.calls: list[tuple[int, dict]] = []
        self.failure = None

    def submit(self, attempt_id, answers):
        self.calls.append((attempt_id, answers))
        if self.failure is not None:
            raise self.failure
        attempt = self.store.fetch_attempt(attempt_id)
        if attempt.completed_at is not None:
            raise AttemptAlreadyCompleted(attempt_id)
        score = float(len(answers))
        self.store.complete(attempt_id, score, self.max_score, answers)
        return ScoreResult(score=score, max_score=self.max_score)


class RecordingAssignmentBook:
    def __init__(self, failure=None) -> None:
        self.failure = failure
        self.records: list[tuple] = []

    def record_submission(self, assignment_id, user_id, score):
        if self.failure is not None:
            raise self.failure
        self.records.append((assignment_id, user_id, score))
