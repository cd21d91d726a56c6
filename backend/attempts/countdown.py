import logging
from enum import Enum

from .clock import SystemClock
from .errors import QuizEngineError, TimerStateError
from .types import AttemptState, TimerReading, TimerStatus

logger = logging.getLogger(__name__)


class CountdownState(str, Enum):
    INACTIVE = 'inactive'
    RUNNING = 'running'
    EXPIRED = 'expired'
    COMPLETED = 'completed'


TERMINAL_STATES = frozenset({CountdownState.EXPIRED, CountdownState.COMPLETED})


class Countdown:
    """
    Local countdown for one attempt.

    Nothing here schedules itself: whoever owns the countdown calls
    :meth:`tick` once a second and :meth:`checkpoint` every few seconds
    (see ``attempts.runner``), which keeps the state machine testable with a
    manual clock. ``on_expire`` is called at most once per countdown, whether
    expiry is noticed by a tick or on load.
    """

    def __init__(
        self,
        attempt: AttemptState,
        time_limit_minutes,
        store,
        cache,
        reconciler,
        on_expire=None,
        clock=None,
    ) -> None:
        self.attempt = attempt
        self.time_limit_minutes = time_limit_minutes
        self.store = store
        self.cache = cache
        self.reconciler = reconciler
        self.on_expire = on_expire
        self.clock = clock or SystemClock()
        self.state = CountdownState.INACTIVE
        self.remaining_seconds: int | None = None
        self.is_provisional = False
        self.observing = True
        self._expiry_fired = False

    @property
    def limit_minutes(self):
        return self.reconciler.effective_limit(self.attempt, self.time_limit_minutes)

    @property
    def is_running(self) -> bool:
        return self.state == CountdownState.RUNNING and self.observing

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def awaiting_start(self) -> bool:
        return self.state == CountdownState.INACTIVE and self.limit_minutes is not None

    def show_provisional(self) -> int | None:
        """Seed the display from the local cache until the server answers."""
        if self.is_terminal or self.limit_minutes is None:
            return None
        value = self.cache.provisional_remaining(self.attempt.id, self.clock.now())
        if value is not None:
            self.remaining_seconds = value
            self.is_provisional = True
        return value

    def load(self, attempt: AttemptState | None = None) -> TimerReading:
        """Apply the authoritative attempt state, fetching it when not given."""
        if attempt is None:
            attempt = self.store.fetch_attempt(self.attempt.id)
        self.attempt = attempt
        provisional = self.remaining_seconds if self.is_provisional else None
        self.is_provisional = False
        reading = self.reconciler.read(self.attempt, self.time_limit_minutes)
        if provisional is not None and reading.remaining_seconds is not None:
            self.reconciler.compare_cached(self.attempt.id, provisional, reading.remaining_seconds)
        self._apply(reading)
        return reading

    def start(self) -> int:
        if self.limit_minutes is None:
            raise TimerStateError('This quiz has no time limit.')
        if self.state == CountdownState.RUNNING:
            return self.remaining_seconds
        if self.state != CountdownState.INACTIVE:
            raise TimerStateError(f'Cannot start a timer that is {self.state.value}.')
        if self.attempt.timer_started_at is not None:
            self._apply(self.reconciler.read(self.attempt, self.time_limit_minutes))
            return self.remaining_seconds
        # A failure leaves the countdown INACTIVE so the learner can press start again.
        self.attempt = self.store.start_timer(self.attempt.id, self.limit_minutes)
        reading = self.reconciler.read(self.attempt, self.time_limit_minutes)
        logger.info(
            'Timer for attempt %s started at %s with %ss remaining',
            self.attempt.id,
            self.attempt.timer_started_at,
            reading.remaining_seconds,
        )
        self._apply(reading)
        return self.remaining_seconds

    def tick(self) -> int | None:
        if not self.is_running:
            return self.remaining_seconds
        self.remaining_seconds = max(0, self.remaining_seconds - 1)
        self.cache.write(self.attempt.id, self.remaining_seconds, self.clock.now())
        logger.debug('Attempt %s: %ss left', self.attempt.id, self.remaining_seconds)
        if self.remaining_seconds == 0:
            self._expire()
        return self.remaining_seconds

    def checkpoint(self) -> bool:
        if not self.is_running:
            return False
        try:
            self.store.checkpoint(self.attempt.id, self.remaining_seconds)
        except QuizEngineError as exc:
            logger.warning('Timer checkpoint for attempt %s failed: %s', self.attempt.id, exc)
            return False
        return True

    def stop(self) -> None:
        """Stop observing. Server-side timer state is untouched."""
        self.observing = False

    def complete(self) -> None:
        self.state = CountdownState.COMPLETED
        self.remaining_seconds = 0
        self.cache.clear(self.attempt.id)

    def _apply(self, reading: TimerReading) -> None:
        self.remaining_seconds = reading.remaining_seconds
        if reading.status == TimerStatus.COMPLETED:
            self.complete()
        elif reading.status == TimerStatus.RUNNING:
            self.state = CountdownState.RUNNING
            self.cache.write(self.attempt.id, reading.remaining_seconds, self.clock.now())
        elif reading.status == TimerStatus.EXPIRED:
            self._expire()
        else:
            self.state = CountdownState.INACTIVE

    def _expire(self) -> None:
        self.state = CountdownState.EXPIRED
        self.remaining_seconds = 0
        if self._expiry_fired:
            return
        self._expiry_fired = True
        logger.info('Time expired for attempt %s', self.attempt.id)
        if self.on_expire is None:
            return
        try:
            self.on_expire(self)
        except QuizEngineError:
            # Re-arm so a later load can retry the auto-submit.
            self._expiry_fired = False
            raise
