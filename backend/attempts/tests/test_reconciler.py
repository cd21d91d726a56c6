from datetime import timedelta

from django.test import SimpleTestCase

from attempts.clock import ManualClock
from attempts.reconciler import ClockReconciler
from attempts.types import TimerStatus

from .helpers import T0, make_attempt


class ClockReconcilerTests(SimpleTestCase):
    def setUp(self):
        self.clock = ManualClock(T0)
        self.reconciler = ClockReconciler(clock=self.clock, drift_tolerance_seconds=15)

    def test_completed_attempt_has_no_time_left(self):
        attempt = make_attempt(completed_at=T0, timer_started_at=T0, time_limit_minutes=10)
        reading = self.reconciler.read(attempt, 10)
        self.assertEqual(reading.remaining_seconds, 0)
        self.assertEqual(reading.status, TimerStatus.COMPLETED)

    def test_untimed_quiz(self):
        reading = self.reconciler.read(make_attempt(), None)
        self.assertIsNone(reading.remaining_seconds)
        self.assertEqual(reading.status, TimerStatus.UNTIMED)

    def test_not_started_reports_full_duration(self):
        reading = self.reconciler.read(make_attempt(), 5)
        self.assertEqual(reading.remaining_seconds, 300)
        self.assertEqual(reading.status, TimerStatus.NOT_STARTED)

    def test_running_counts_down_from_server_start(self):
        attempt = make_attempt(timer_started_at=T0, time_limit_minutes=10, is_timer_active=True)
        self.clock.advance(125.7)
        reading = self.reconciler.read(attempt, 10)
        self.assertEqual(reading.remaining_seconds, 475)
        self.assertEqual(reading.status, TimerStatus.RUNNING)

    def test_lapsed_timer_clamps_to_zero(self):
        attempt = make_attempt(timer_started_at=T0, time_limit_minutes=10, is_timer_active=True)
        self.clock.advance(601)
        self.assertEqual(self.reconciler.authoritative_remaining(attempt, 10), 0)
        self.assertEqual(self.reconciler.read(attempt, 10).status, TimerStatus.EXPIRED)

    def test_recorded_limit_wins_over_quiz_limit(self):
        attempt = make_attempt(timer_started_at=T0, time_limit_minutes=10, is_timer_active=True)
        self.clock.advance(60)
        self.assertEqual(self.reconciler.authoritative_remaining(attempt, 30), 540)

    def test_server_start_in_the_future_never_adds_time(self):
        attempt = make_attempt(timer_started_at=T0 + timedelta(seconds=30), time_limit_minutes=1)
        self.assertEqual(self.reconciler.authoritative_remaining(attempt, 1), 60)

    def test_checkpoint_ignored_for_remaining(self):
        attempt = make_attempt(
            timer_started_at=T0,
            time_limit_minutes=10,
            is_timer_active=True,
            time_remaining_seconds=590,
        )
        self.clock.advance(300)
        self.assertEqual(self.reconciler.authoritative_remaining(attempt, 10), 300)

    def test_checkpoint_below_recomputed_value_is_logged(self):
        attempt = make_attempt(
            timer_started_at=T0,
            time_limit_minutes=10,
            is_timer_active=True,
            time_remaining_seconds=100,
        )
        self.clock.advance(60)
        with self.assertLogs('attempts.reconciler', level='WARNING') as logs:
            remaining = self.reconciler.authoritative_remaining(attempt, 10)
        self.assertEqual(remaining, 540)
        self.assertIn('possible clock skew', logs.output[0])

    def test_compare_cached_always_returns_server_value(self):
        with self.assertLogs('attempts.reconciler', level='WARNING'):
            self.assertEqual(self.reconciler.compare_cached(1, 9999, 30), 30)
        self.assertEqual(self.reconciler.compare_cached(1, 35, 30), 30)
