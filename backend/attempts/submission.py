import logging

from .answers import normalize_answers
from .errors import (
    AttemptAlreadyCompleted,
    ConfirmationRequired,
    QuizEngineError,
    SubmissionFailed,
)
from .interfaces import AssignmentBook, AttemptStore, ScoringService
from .types import AttemptState, SubmissionResult

logger = logging.getLogger(__name__)


class SubmissionCoordinator:
    """
    Finalizes an attempt through the scoring service.

    Scoring is the single source of the score: this class never computes one.
    If another tab or the expiry handler already completed the attempt, the
    stored result is returned as a success. Any other scoring failure leaves
    the attempt open and is raised as :class:`SubmissionFailed`.
    """

    def __init__(
        self,
        scoring: ScoringService,
        store: AttemptStore,
        assignments: AssignmentBook | None = None,
    ) -> None:
        self.scoring = scoring
        self.store = store
        self.assignments = assignments

    def submit(
        self,
        attempt: AttemptState,
        raw_answers,
        auto: bool = False,
        confirmed: bool = False,
        assignment_id=None,
    ) -> SubmissionResult:
        if not auto and not confirmed:
            raise ConfirmationRequired('Confirm submission: answers cannot be changed afterwards.')

        answers = normalize_answers(raw_answers)
        try:
            score = self.scoring.submit(attempt.id, answers)
        except AttemptAlreadyCompleted:
            stored = self.store.fetch_attempt(attempt.id)
            logger.info('Attempt %s was already completed; returning the stored score', attempt.id)
            return SubmissionResult(
                attempt_id=attempt.id,
                score=stored.score,
                max_score=stored.max_score,
                auto=auto,
                already_completed=True,
            )
        except QuizEngineError as exc:
            logger.warning('Submitting attempt %s failed: %s', attempt.id, exc)
            raise SubmissionFailed(f'Could not submit attempt {attempt.id}: {exc}') from exc

        logger.info(
            '%s attempt %s scored %s/%s',
            'Auto-submitted' if auto else 'Submitted',
            attempt.id,
            score.score,
            score.max_score,
        )
        if assignment_id is not None and self.assignments is not None:
            self._record_assignment(assignment_id, attempt, score.score)
        return SubmissionResult(
            attempt_id=attempt.id,
            score=score.score,
            max_score=score.max_score,
            auto=auto,
        )

    def _record_assignment(self, assignment_id, attempt: AttemptState, score) -> None:
        try:
            self.assignments.record_submission(assignment_id, attempt.user_id, score)
        except QuizEngineError as exc:
            logger.warning(
                'Attempt %s was scored but assignment %s could not be updated: %s',
                attempt.id,
                assignment_id,
                exc,
            )
