import logging

from django.conf import settings

from .clock import SystemClock, seconds_between
from .types import AttemptState, TimerReading, TimerStatus

logger = logging.getLogger(__name__)


class ClockReconciler:
    """
    Works out how much time an attempt really has left.

    The only inputs that count are the server-recorded ``timer_started_at``
    and the time limit. Checkpoints and locally cached values are compared
    against the result and logged when they disagree, but never used.
    """

    def __init__(self, clock=None, drift_tolerance_seconds: int | None = None) -> None:
        self.clock = clock or SystemClock()
        if drift_tolerance_seconds is None:
            drift_tolerance_seconds = settings.QUIZ_TIMER_DRIFT_TOLERANCE_SECONDS
        self.drift_tolerance_seconds = drift_tolerance_seconds

    @staticmethod
    def effective_limit(attempt: AttemptState, time_limit_minutes: int | None) -> int | None:
        # The limit recorded when the timer started outlives later edits to the quiz.
        return attempt.time_limit_minutes or time_limit_minutes or None

    def read(self, attempt: AttemptState, time_limit_minutes: int | None) -> TimerReading:
        if attempt.completed_at is not None:
            return TimerReading(0, TimerStatus.COMPLETED)
        limit = self.effective_limit(attempt, time_limit_minutes)
        if limit is None:
            return TimerReading(None, TimerStatus.UNTIMED)
        total_seconds = limit * 60
        if attempt.timer_started_at is None:
            return TimerReading(total_seconds, TimerStatus.NOT_STARTED)
        elapsed = max(0, seconds_between(attempt.timer_started_at, self.clock.now()))
        remaining = max(0, total_seconds - elapsed)
        self._check_checkpoint(attempt, remaining)
        if remaining == 0:
            return TimerReading(0, TimerStatus.EXPIRED)
        return TimerReading(remaining, TimerStatus.RUNNING)

    def authoritative_remaining(self, attempt: AttemptState, time_limit_minutes: int | None) -> int | None:
        """Seconds left (never negative), or ``None`` for an untimed quiz."""
        return self.read(attempt, time_limit_minutes).remaining_seconds

    def compare_cached(self, attempt_id, cached_seconds: int, authoritative_seconds: int) -> int:
        if abs(cached_seconds - authoritative_seconds) > self.drift_tolerance_seconds:
            logger.warning(
                'Timer cache for attempt %s showed %ss but server says %ss; using server value',
                attempt_id,
                cached_seconds,
                authoritative_seconds,
            )
        return authoritative_seconds

    def _check_checkpoint(self, attempt: AttemptState, remaining: int) -> None:
        checkpoint = attempt.time_remaining_seconds
        if checkpoint is None:
            return
        # Checkpoints only age downwards, so one below the recomputed value means the clocks disagree.
        if remaining - checkpoint > self.drift_tolerance_seconds:
            logger.warning(
                'Checkpoint for attempt %s reported %ss left but %ss remain since %s; possible clock skew',
                attempt.id,
                checkpoint,
                remaining,
                attempt.timer_started_at.isoformat(),
            )
