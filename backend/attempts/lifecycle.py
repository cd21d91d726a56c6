import logging

from .clock import SystemClock
from .interfaces import AttemptStore, QuizCatalog
from .types import Resolution, ResolutionMode

logger = logging.getLogger(__name__)


class AttemptLifecycle:
    """
    Decides which attempt a learner lands on when they open a quiz: the one
    already in progress, a freshly created one, or the latest attempt shown
    read-only once the attempts-allowed limit is used up.

    Store errors (a lost creation race, an unreachable database) are raised
    to the caller untouched; nothing here retries.
    """

    def __init__(self, store: AttemptStore, catalog: QuizCatalog, clock=None) -> None:
        self.store = store
        self.catalog = catalog
        self.clock = clock or SystemClock()

    def resolve(self, quiz_id, user_id) -> Resolution:
        quiz = self.catalog.get_quiz(quiz_id)
        attempts = self.store.list_attempts(quiz_id, user_id)
        completed_count = sum(1 for attempt in attempts if attempt.completed_at is not None)

        active = next((attempt for attempt in attempts if attempt.completed_at is None), None)
        if active is not None:
            logger.debug('Resuming attempt %s for user %s on quiz %s', active.id, user_id, quiz_id)
            return Resolution(quiz, active, ResolutionMode.RESUME, completed_count)

        if quiz.attempts_allowed is not None and completed_count >= quiz.attempts_allowed:
            latest = attempts[0] if attempts else None
            logger.info(
                'User %s has used %s of %s attempts on quiz %s',
                user_id,
                completed_count,
                quiz.attempts_allowed,
                quiz_id,
            )
            return Resolution(quiz, latest, ResolutionMode.LIMIT_REACHED, completed_count)

        attempt = self.store.create_attempt(
            quiz_id,
            user_id,
            attempt_number=completed_count + 1,
            started_at=self.clock.now(),
        )
        logger.info('Created attempt %s (#%s) for user %s on quiz %s', attempt.id, attempt.attempt_number, user_id, quiz_id)
        return Resolution(quiz, attempt, ResolutionMode.NEWLY_CREATED, completed_count)

    def reset(self, quiz_id, user_id) -> int:
        deleted = self.store.reset(quiz_id, user_id)
        logger.info('Reset %s attempts for user %s on quiz %s', deleted, user_id, quiz_id)
        return deleted
