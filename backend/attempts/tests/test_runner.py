import asyncio

from django.test import SimpleTestCase

from attempts.clock import ManualClock
from attempts.countdown import Countdown, CountdownState
from attempts.errors import SubmissionFailed
from attempts.reconciler import ClockReconciler
from attempts.runner import CountdownRunner

from .helpers import T0, InMemoryAttemptStore, make_attempt, make_timer_cache


class CountdownRunnerTests(SimpleTestCase):
    def setUp(self):
        self.clock = ManualClock(T0)
        self.store = InMemoryAttemptStore(self.clock)
        self.expired = []

    def running_countdown(self, remaining_seconds, on_expire=None):
        attempt = self.store.add(make_attempt())
        countdown = Countdown(
            attempt,
            5,
            self.store,
            make_timer_cache(),
            ClockReconciler(clock=self.clock, drift_tolerance_seconds=15),
            on_expire=on_expire or self.expired.append,
            clock=self.clock,
        )
        countdown.load()
        countdown.start()
        countdown.remaining_seconds = remaining_seconds
        return countdown

    async def test_runs_until_expiry(self):
        countdown = self.running_countdown(10)
        runner = CountdownRunner(countdown, tick_seconds=0.01, checkpoint_seconds=0.03)
        await asyncio.wait_for(runner.run(), timeout=5)
        self.assertEqual(countdown.state, CountdownState.EXPIRED)
        self.assertEqual(len(self.expired), 1)
        self.assertTrue(self.store.checkpoints)
        self.assertIsNone(runner.error)

    async def test_stop_cancels_both_loops(self):
        countdown = self.running_countdown(1000)
        runner = CountdownRunner(countdown, tick_seconds=0.01, checkpoint_seconds=0.02)
        task = asyncio.create_task(runner.run())
        await asyncio.sleep(0.05)
        runner.stop()
        await asyncio.wait_for(task, timeout=5)
        self.assertFalse(countdown.is_running)
        self.assertEqual(countdown.state, CountdownState.RUNNING)
        self.assertEqual(self.expired, [])

    async def test_failed_auto_submit_is_recorded(self):
        def failing_submit(countdown):
            raise SubmissionFailed('scoring unavailable')

        countdown = self.running_countdown(2, on_expire=failing_submit)
        runner = CountdownRunner(countdown, tick_seconds=0.01, checkpoint_seconds=60)
        with self.assertLogs('attempts.runner', level='ERROR'):
            await asyncio.wait_for(runner.run(), timeout=5)
        self.assertIsInstance(runner.error, SubmissionFailed)
        self.assertEqual(countdown.state, CountdownState.EXPIRED)

    async def test_expiry_ends_checkpoints_without_waiting(self):
        countdown = self.running_countdown(2)
        runner = CountdownRunner(countdown, tick_seconds=0.01, checkpoint_seconds=60)
        await asyncio.wait_for(runner.run(), timeout=2)
        self.assertEqual(len(self.expired), 1)
        self.assertEqual(self.store.checkpoints, [])

    async def test_unexpected_tick_error_cancels_checkpoints(self):
        def broken_submit(countdown):
            raise RuntimeError('handler bug')

        countdown = self.running_countdown(2, on_expire=broken_submit)
        runner = CountdownRunner(countdown, tick_seconds=0.01, checkpoint_seconds=60)
        with self.assertRaises(RuntimeError):
            await asyncio.wait_for(runner.run(), timeout=2)
        await asyncio.sleep(0.01)
        self.assertTrue(all(task.done() for task in runner._tasks))
