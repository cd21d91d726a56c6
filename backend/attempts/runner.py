import asyncio
import logging

from asgiref.sync import sync_to_async
from django.conf import settings

from .errors import QuizEngineError

logger = logging.getLogger(__name__)


class CountdownRunner:
    """
    Drives a :class:`~attempts.countdown.Countdown` on an asyncio loop: one
    task ticks every ``tick_seconds``, another checkpoints every
    ``checkpoint_seconds``. Checkpoints never delay ticks, and the
    checkpoint task ends as soon as ticking does.

    Countdown calls go through ``sync_to_async`` because expiry can reach the
    ORM via the auto-submit handler.
    """

    def __init__(self, countdown, tick_seconds=None, checkpoint_seconds=None) -> None:
        self.countdown = countdown
        self.tick_seconds = tick_seconds if tick_seconds is not None else settings.QUIZ_TIMER_TICK_SECONDS
        self.checkpoint_seconds = (
            checkpoint_seconds if checkpoint_seconds is not None else settings.QUIZ_TIMER_CHECKPOINT_SECONDS
        )
        self.error: QuizEngineError | None = None
        self._tasks: list[asyncio.Task] = []
        self._ticking_done: asyncio.Event | None = None
        self._stopped = False

    async def run(self) -> None:
        self._ticking_done = asyncio.Event()
        self._tasks = [
            asyncio.create_task(self._tick_loop()),
            asyncio.create_task(self._checkpoint_loop()),
        ]
        try:
            await asyncio.gather(*self._tasks)
        except asyncio.CancelledError:
            if not self._stopped:
                raise
            logger.debug('Countdown runner for attempt %s stopped', self.countdown.attempt.id)
        finally:
            # gather does not cancel the sibling when one task fails.
            for task in self._tasks:
                task.cancel()

    def stop(self) -> None:
        self._stopped = True
        self.countdown.stop()
        for task in self._tasks:
            task.cancel()

    async def _tick_loop(self) -> None:
        tick = sync_to_async(self.countdown.tick)
        try:
            while self.countdown.is_running:
                await asyncio.sleep(self.tick_seconds)
                try:
                    await tick()
                except QuizEngineError as exc:
                    # Auto-submit failed after expiry; the caller decides how to retry.
                    self.error = exc
                    logger.error('Auto-submit for attempt %s failed: %s', self.countdown.attempt.id, exc)
                    return
        finally:
            self._ticking_done.set()

    async def _checkpoint_loop(self) -> None:
        checkpoint = sync_to_async(self.countdown.checkpoint)
        while self.countdown.is_running:
            try:
                await asyncio.wait_for(self._ticking_done.wait(), timeout=self.checkpoint_seconds)
            except asyncio.TimeoutError:
                if self.countdown.is_running:
                    await checkpoint()
                continue
            return
