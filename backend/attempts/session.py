import logging

from .answers import normalize_answers
from .clock import SystemClock
from .countdown import Countdown, CountdownState
from .errors import AttemptNotFound, AttemptReadOnly
from .lifecycle import AttemptLifecycle
from .reconciler import ClockReconciler
from .submission import SubmissionCoordinator
from .timer_cache import LocalTimerCache
from .types import Resolution, SubmissionResult

logger = logging.getLogger(__name__)


class QuizSession:
    """
    One learner working through one quiz.

    ``open`` resolves the attempt and loads its timer (auto-submitting right
    away if the time ran out while the learner was gone). Answers are
    buffered locally until ``save_answers`` or ``submit``. Expiry during a
    tick submits automatically, without confirmation.
    """

    def __init__(self, store, catalog, scoring, cache=None, clock=None, assignments=None, reconciler=None) -> None:
        self.store = store
        self.clock = clock or SystemClock()
        self.cache = cache if cache is not None else LocalTimerCache()
        self.reconciler = reconciler or ClockReconciler(clock=self.clock)
        self.lifecycle = AttemptLifecycle(store, catalog, clock=self.clock)
        self.coordinator = SubmissionCoordinator(scoring, store, assignments=assignments)
        self.resolution: Resolution | None = None
        self.countdown: Countdown | None = None
        self.answers: dict = {}
        self.result: SubmissionResult | None = None
        self.assignment_id = None

    def open(self, quiz_id, user_id, assignment_id=None) -> Resolution:
        self.resolution = self.lifecycle.resolve(quiz_id, user_id)
        self.assignment_id = assignment_id
        self.result = None
        attempt = self.resolution.attempt
        self.answers = dict(attempt.answers) if attempt is not None else {}
        if attempt is None:
            self.countdown = None
            return self.resolution
        self.countdown = Countdown(
            attempt,
            self.resolution.quiz.time_limit_minutes,
            self.store,
            self.cache,
            self.reconciler,
            on_expire=self._on_expire,
            clock=self.clock,
        )
        self.countdown.show_provisional()
        self.countdown.load(attempt)
        return self.resolution

    @property
    def attempt(self):
        if self.countdown is not None:
            return self.countdown.attempt
        return self.resolution.attempt if self.resolution else None

    @property
    def remaining_seconds(self):
        return self.countdown.remaining_seconds if self.countdown else None

    @property
    def is_read_only(self) -> bool:
        if self.resolution is None or self.resolution.is_read_only or self.result is not None:
            return True
        return self.countdown is not None and self.countdown.is_terminal

    def answer(self, question_id, value) -> None:
        if self.is_read_only:
            raise AttemptReadOnly('This attempt can no longer be changed.')
        self.answers[str(question_id)] = value

    def save_answers(self):
        if self.is_read_only:
            raise AttemptReadOnly('This attempt can no longer be changed.')
        attempt = self.store.save_answers(self.attempt.id, normalize_answers(self.answers))
        self.countdown.attempt = attempt
        return attempt

    def start_timer(self) -> int:
        self._require_attempt()
        return self.countdown.start()

    def tick(self):
        if self.countdown is None:
            return None
        return self.countdown.tick()

    def checkpoint(self) -> bool:
        return self.countdown is not None and self.countdown.checkpoint()

    def submit(self, confirmed: bool = False, auto: bool = False) -> SubmissionResult:
        self._require_attempt()
        if self.result is not None:
            return self.result
        if self.resolution.is_read_only and not auto:
            raise AttemptReadOnly('This attempt has already been submitted.')
        result = self.coordinator.submit(
            self.attempt,
            self.answers,
            auto=auto,
            confirmed=confirmed,
            assignment_id=self.assignment_id,
        )
        self.result = result
        self.countdown.complete()
        return result

    def close(self) -> None:
        if self.countdown is not None:
            self.countdown.stop()

    def _require_attempt(self) -> None:
        if self.resolution is None or self.countdown is None:
            raise AttemptNotFound('No attempt is open.')

    def _on_expire(self, countdown: Countdown) -> None:
        if countdown.state != CountdownState.EXPIRED:
            return
        logger.info('Auto-submitting attempt %s after expiry', countdown.attempt.id)
        self.submit(auto=True)
