"""
ORM-backed attempt store, quiz catalog and assignment book.

Exactly-once behaviour lives in the database: the active-attempt and
attempt-number unique constraints stop duplicate creation, and timer start
is a conditional UPDATE on ``timer_started_at IS NULL`` so the first writer
wins across tabs and devices.
"""
import logging
from functools import wraps

from django.db import DatabaseError, IntegrityError, transaction

from attempts.clock import SystemClock
from attempts.errors import (
    AssignmentNotFound,
    AttemptAlreadyCompleted,
    AttemptConflict,
    AttemptNotFound,
    AttemptReadOnly,
    AttemptStoreUnavailable,
    QuizNotFound,
)
from attempts.reconciler import ClockReconciler
from attempts.types import AttemptState, QuestionInfo, QuizInfo, TimerStatus

from .models import Assignment, AssignmentSubmission, Quiz, QuizAttempt

logger = logging.getLogger(__name__)


def translate_database_errors(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except IntegrityError as exc:
            raise AttemptConflict(str(exc)) from exc
        except DatabaseError as exc:
            raise AttemptStoreUnavailable(str(exc)) from exc
    return wrapper


def attempt_state(attempt: QuizAttempt) -> AttemptState:
    return AttemptState(
        id=attempt.id,
        quiz_id=attempt.quiz_id,
        user_id=attempt.user_id,
        attempt_number=attempt.attempt_number,
        started_at=attempt.started_at,
        completed_at=attempt.completed_at,
        answers=dict(attempt.answers or {}),
        score=attempt.score,
        max_score=attempt.max_score,
        time_limit_minutes=attempt.time_limit_minutes,
        timer_started_at=attempt.timer_started_at,
        is_timer_active=attempt.is_timer_active,
        time_remaining_seconds=attempt.time_remaining_seconds,
        time_taken_seconds=attempt.time_taken_seconds,
        needs_manual_grading=attempt.needs_manual_grading,
    )


class DatabaseQuizCatalog:
    @translate_database_errors
    def get_quiz(self, quiz_id) -> QuizInfo:
        try:
            quiz = Quiz.objects.prefetch_related('questions').get(pk=quiz_id)
        except Quiz.DoesNotExist as exc:
            raise QuizNotFound(f'Quiz {quiz_id} does not exist.') from exc
        return QuizInfo(
            id=quiz.id,
            title=quiz.title,
            time_limit_minutes=quiz.time_limit_minutes,
            attempts_allowed=quiz.attempts_allowed,
            questions=tuple(
                QuestionInfo(
                    id=question.id,
                    question_type=question.question_type,
                    question_text=question.question_text,
                    options=question.options,
                    points=question.points,
                    order_index=question.order_index,
                )
                for question in quiz.questions.all()
            ),
        )


class DatabaseAttemptStore:
    def __init__(self, clock=None) -> None:
        self.clock = clock or SystemClock()

    @translate_database_errors
    def list_attempts(self, quiz_id, user_id) -> list[AttemptState]:
        attempts = QuizAttempt.objects.filter(quiz_id=quiz_id, user_id=user_id).order_by('-started_at', '-attempt_number')
        return [attempt_state(attempt) for attempt in attempts]

    @translate_database_errors
    def fetch_attempt(self, attempt_id) -> AttemptState:
        return attempt_state(self._get(attempt_id))

    @translate_database_errors
    def create_attempt(self, quiz_id, user_id, attempt_number, started_at) -> AttemptState:
        with transaction.atomic():
            attempt = QuizAttempt.objects.create(
                quiz_id=quiz_id,
                user_id=user_id,
                attempt_number=attempt_number,
                started_at=started_at,
                answers={},
            )
        return attempt_state(attempt)

    @translate_database_errors
    def start_timer(self, attempt_id, time_limit_minutes) -> AttemptState:
        now = self.clock.now()
        updated = QuizAttempt.objects.filter(
            pk=attempt_id,
            timer_started_at__isnull=True,
            completed_at__isnull=True,
        ).update(
            timer_started_at=now,
            is_timer_active=True,
            time_limit_minutes=time_limit_minutes,
            time_remaining_seconds=time_limit_minutes * 60,
            updated_at=now,
        )
        attempt = self._get(attempt_id)
        if not updated:
            if attempt.completed_at is not None:
                raise AttemptAlreadyCompleted(f'Attempt {attempt_id} is already completed.')
            logger.info(
                'Timer for attempt %s was already started at %s; keeping it',
                attempt_id,
                attempt.timer_started_at.isoformat(),
            )
        return attempt_state(attempt)

    @translate_database_errors
    def checkpoint(self, attempt_id, remaining_seconds) -> bool:
        updated = QuizAttempt.objects.filter(
            pk=attempt_id,
            completed_at__isnull=True,
            is_timer_active=True,
        ).update(time_remaining_seconds=max(0, int(remaining_seconds)), updated_at=self.clock.now())
        return bool(updated)

    @translate_database_errors
    def save_answers(self, attempt_id, answers) -> AttemptState:
        current = attempt_state(self._get(attempt_id))
        # The limit is recorded on the attempt when its timer starts.
        reading = ClockReconciler(clock=self.clock).read(current, None)
        if reading.status == TimerStatus.EXPIRED:
            raise AttemptReadOnly(f'Time is up for attempt {attempt_id}; answers can no longer change.')
        updated = QuizAttempt.objects.filter(pk=attempt_id, completed_at__isnull=True).update(
            answers=answers,
            updated_at=self.clock.now(),
        )
        attempt = self._get(attempt_id)
        if not updated:
            raise AttemptAlreadyCompleted(f'Attempt {attempt_id} is already completed; answers are frozen.')
        return attempt_state(attempt)

    @translate_database_errors
    def reset(self, quiz_id, user_id) -> int:
        deleted, _ = QuizAttempt.objects.filter(quiz_id=quiz_id, user_id=user_id).delete()
        return deleted

    def _get(self, attempt_id) -> QuizAttempt:
        try:
            return QuizAttempt.objects.get(pk=attempt_id)
        except QuizAttempt.DoesNotExist as exc:
            raise AttemptNotFound(f'Attempt {attempt_id} does not exist.') from exc


class DatabaseAssignmentBook:
    def __init__(self, clock=None) -> None:
        self.clock = clock or SystemClock()

    @translate_database_errors
    def record_submission(self, assignment_id, user_id, score) -> AssignmentSubmission:
        if not Assignment.objects.filter(pk=assignment_id).exists():
            raise AssignmentNotFound(f'Assignment {assignment_id} does not exist.')
        with transaction.atomic():
            submission, _ = AssignmentSubmission.objects.update_or_create(
                assignment_id=assignment_id,
                student_id=user_id,
                defaults={
                    'status': AssignmentSubmission.Status.SUBMITTED,
                    'grade': score,
                    'submitted_at': self.clock.now(),
                },
            )
        return submission
