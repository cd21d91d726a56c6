import logging

from django.db import transaction

from attempts.clock import SystemClock, seconds_between
from attempts.errors import AttemptAlreadyCompleted, AttemptNotFound
from attempts.types import ScoreResult

from .models import Question, QuizAttempt
from .store import translate_database_errors

logger = logging.getLogger(__name__)


def _normalize_text(value) -> str:
    return ' '.join(str(value).split()).lower()


def _accepted_answers(question: Question) -> list:
    if question.correct_answers:
        return [str(value) for value in question.correct_answers]
    if question.correct_answer:
        return [question.correct_answer]
    return []


def grade_answer(question: Question, answer):
    """
    ``True``/``False`` for machine-checkable questions, ``None`` when the
    answer needs a human (essays).
    """
    if question.question_type == Question.QuestionType.ESSAY:
        return None
    if answer is None:
        return False
    if question.is_multi_select:
        expected = {str(value) for value in question.correct_answers or []}
        given = set(answer) if isinstance(answer, list) else {answer}
        return bool(expected) and given == expected
    if question.question_type == Question.QuestionType.FILL_IN_BLANK:
        accepted = _accepted_answers(question)
        if isinstance(answer, list):
            # One value per blank, in order.
            return len(answer) == len(accepted) and all(
                _normalize_text(given) == _normalize_text(expected) for given, expected in zip(answer, accepted)
            )
        return _normalize_text(answer) in {_normalize_text(value) for value in accepted}
    if isinstance(answer, list):
        return False
    if question.question_type == Question.QuestionType.TRUE_FALSE:
        return _normalize_text(answer) == _normalize_text(question.correct_answer or '')
    return answer == question.correct_answer


def grade_answers(questions, answers) -> tuple:
    score = 0.0
    max_score = 0.0
    needs_manual_grading = False
    for question in questions:
        max_score += question.points
        outcome = grade_answer(question, answers.get(str(question.id)))
        if outcome is None:
            needs_manual_grading = True
        elif outcome:
            score += question.points
    return score, max_score, needs_manual_grading


class DatabaseScoringService:
    """
    Scores an attempt against its quiz's answer key and completes it in the
    same transaction. A completed attempt is never scored again.

    Essay questions count towards ``max_score`` but award nothing here; the
    attempt is flagged for manual grading instead.
    """

    def __init__(self, clock=None) -> None:
        self.clock = clock or SystemClock()

    @translate_database_errors
    def submit(self, attempt_id, answers) -> ScoreResult:
        with transaction.atomic():
            try:
                attempt = QuizAttempt.objects.select_for_update().select_related('quiz').get(pk=attempt_id)
            except QuizAttempt.DoesNotExist as exc:
                raise AttemptNotFound(f'Attempt {attempt_id} does not exist.') from exc
            if attempt.completed_at is not None:
                raise AttemptAlreadyCompleted(f'Attempt {attempt_id} has already been submitted.')

            questions = list(attempt.quiz.questions.all())
            score, max_score, needs_manual_grading = grade_answers(questions, answers)
            now = self.clock.now()
            updated = QuizAttempt.objects.filter(pk=attempt_id, completed_at__isnull=True).update(
                answers=answers,
                score=score,
                max_score=max_score,
                completed_at=now,
                is_timer_active=False,
                time_taken_seconds=self._time_taken(attempt, now),
                needs_manual_grading=needs_manual_grading,
                updated_at=now,
            )
            if not updated:
                raise AttemptAlreadyCompleted(f'Attempt {attempt_id} has already been submitted.')
        logger.info('Scored attempt %s: %s/%s', attempt_id, score, max_score)
        return ScoreResult(score=score, max_score=max_score)

    @staticmethod
    def _time_taken(attempt: QuizAttempt, now) -> int:
        began = attempt.timer_started_at or attempt.started_at
        elapsed = max(0, seconds_between(began, now))
        if attempt.time_limit_minutes:
            elapsed = min(elapsed, attempt.time_limit_minutes * 60)
        return elapsed
