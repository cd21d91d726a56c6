from django.test import SimpleTestCase

from attempts.clock import ManualClock
from attempts.errors import AttemptConflict, AttemptStoreUnavailable
from attempts.lifecycle import AttemptLifecycle
from attempts.types import QuizInfo, ResolutionMode

from .helpers import T0, InMemoryAttemptStore, InMemoryCatalog, make_attempt


class UnreachableStore(InMemoryAttemptStore):
    def list_attempts(self, quiz_id, user_id):
        raise AttemptStoreUnavailable('database is down')


class RacingStore(InMemoryAttemptStore):
    """Another tab creates the active attempt between our list and our insert."""

    def create_attempt(self, quiz_id, user_id, attempt_number, started_at):
        super().create_attempt(quiz_id, user_id, attempt_number, started_at)
        return super().create_attempt(quiz_id, user_id, attempt_number, started_at)


class AttemptLifecycleTests(SimpleTestCase):
    def setUp(self):
        self.clock = ManualClock(T0)
        self.store = InMemoryAttemptStore(self.clock)
        self.catalog = InMemoryCatalog(
            QuizInfo(id=10, title='Unlimited'),
            QuizInfo(id=11, title='Single try', attempts_allowed=1),
            QuizInfo(id=12, title='Two tries', time_limit_minutes=10, attempts_allowed=2),
        )
        self.lifecycle = AttemptLifecycle(self.store, self.catalog, clock=self.clock)

    def test_first_visit_creates_attempt_one(self):
        resolution = self.lifecycle.resolve(10, 100)
        self.assertEqual(resolution.mode, ResolutionMode.NEWLY_CREATED)
        self.assertEqual(resolution.attempt.attempt_number, 1)
        self.assertEqual(resolution.attempt.started_at, T0)
        self.assertEqual(resolution.completed_count, 0)
        self.assertFalse(resolution.is_read_only)

    def test_active_attempt_is_resumed(self):
        self.store.add(make_attempt(id=5, quiz_id=10, answers={'1': 'A'}))
        resolution = self.lifecycle.resolve(10, 100)
        self.assertEqual(resolution.mode, ResolutionMode.RESUME)
        self.assertEqual(resolution.attempt.id, 5)
        self.assertEqual(resolution.attempt.answers, {'1': 'A'})
        self.assertEqual(self.store.creations, 0)

    def test_resolving_twice_resumes_the_created_attempt(self):
        created = self.lifecycle.resolve(10, 100)
        again = self.lifecycle.resolve(10, 100)
        self.assertEqual(again.mode, ResolutionMode.RESUME)
        self.assertEqual(again.attempt.id, created.attempt.id)
        self.assertEqual(self.store.creations, 1)

    def test_next_attempt_number_follows_completed_count(self):
        self.store.add(make_attempt(id=1, quiz_id=12, attempt_number=1, completed_at=T0, score=2, max_score=3))
        self.clock.advance(3600)
        resolution = self.lifecycle.resolve(12, 100)
        self.assertEqual(resolution.mode, ResolutionMode.NEWLY_CREATED)
        self.assertEqual(resolution.attempt.attempt_number, 2)
        self.assertEqual(resolution.completed_count, 1)

    def test_limit_reached_returns_latest_attempt_read_only(self):
        self.store.add(make_attempt(id=1, quiz_id=12, attempt_number=1, started_at=T0, completed_at=T0))
        later = self.clock.advance(3600)
        self.store.add(make_attempt(id=2, quiz_id=12, attempt_number=2, started_at=later, completed_at=later, score=3))
        resolution = self.lifecycle.resolve(12, 100)
        self.assertEqual(resolution.mode, ResolutionMode.LIMIT_REACHED)
        self.assertEqual(resolution.attempt.id, 2)
        self.assertEqual(resolution.completed_count, 2)
        self.assertTrue(resolution.is_read_only)
        self.assertEqual(self.store.creations, 0)

    def test_limit_reached_is_logged(self):
        self.store.add(make_attempt(quiz_id=11, completed_at=T0))
        with self.assertLogs('attempts.lifecycle', level='INFO') as logs:
            self.lifecycle.resolve(11, 100)
        self.assertIn('used 1 of 1 attempts', logs.output[0])

    def test_unlimited_quiz_never_reaches_limit(self):
        for number in range(1, 6):
            self.store.add(make_attempt(id=number, attempt_number=number, completed_at=T0))
        resolution = self.lifecycle.resolve(10, 100)
        self.assertEqual(resolution.mode, ResolutionMode.NEWLY_CREATED)
        self.assertEqual(resolution.attempt.attempt_number, 6)

    def test_attempts_are_scoped_to_the_user(self):
        self.store.add(make_attempt(quiz_id=11, user_id=200, completed_at=T0))
        resolution = self.lifecycle.resolve(11, 100)
        self.assertEqual(resolution.mode, ResolutionMode.NEWLY_CREATED)

    def test_creation_conflict_propagates(self):
        lifecycle = AttemptLifecycle(RacingStore(self.clock), self.catalog, clock=self.clock)
        with self.assertRaises(AttemptConflict):
            lifecycle.resolve(10, 100)

    def test_store_failure_propagates(self):
        lifecycle = AttemptLifecycle(UnreachableStore(self.clock), self.catalog, clock=self.clock)
        with self.assertRaises(AttemptStoreUnavailable):
            lifecycle.resolve(10, 100)

    def test_reset_clears_limit(self):
        self.store.add(make_attempt(quiz_id=11, completed_at=T0))
        self.assertEqual(self.lifecycle.resolve(11, 100).mode, ResolutionMode.LIMIT_REACHED)
        self.assertEqual(self.lifecycle.reset(11, 100), 1)
        resolution = self.lifecycle.resolve(11, 100)
        self.assertEqual(resolution.mode, ResolutionMode.NEWLY_CREATED)
        self.assertEqual(resolution.attempt.attempt_number, 1)
