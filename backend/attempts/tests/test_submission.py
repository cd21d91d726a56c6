from django.test import SimpleTestCase

from attempts.answers import normalize_answer, normalize_answers
from attempts.clock import ManualClock
from attempts.errors import (
    AssignmentNotFound,
    AttemptStoreUnavailable,
    ConfirmationRequired,
    SubmissionFailed,
)
from attempts.submission import SubmissionCoordinator

from .helpers import T0, FixedScoring, InMemoryAttemptStore, RecordingAssignmentBook, make_attempt


class NormalizeAnswerTests(SimpleTestCase):
    def test_blank_answers_are_dropped(self):
        self.assertIsNone(normalize_answer(None))
        self.assertIsNone(normalize_answer(''))
        self.assertIsNone(normalize_answer([]))
        self.assertIsNone(normalize_answer(['', None]))

    def test_scalars_become_strings(self):
        self.assertEqual(normalize_answer('Paris'), 'Paris')
        self.assertEqual(normalize_answer(3), '3')
        self.assertEqual(normalize_answer(True), 'true')
        self.assertEqual(normalize_answer(False), 'false')

    def test_lists_are_deduplicated_in_order(self):
        self.assertEqual(normalize_answer(['B', 'A', 'B', 2]), ['B', 'A', '2'])
        self.assertEqual(normalize_answer(('x',)), ['x'])

    def test_question_ids_become_strings(self):
        self.assertEqual(
            normalize_answers({1: 'A', '2': ['C', 'C'], 3: '', 4: None}),
            {'1': 'A', '2': ['C']},
        )

    def test_missing_answers(self):
        self.assertEqual(normalize_answers(None), {})


class SubmissionCoordinatorTests(SimpleTestCase):
    def setUp(self):
        self.clock = ManualClock(T0)
        self.store = InMemoryAttemptStore(self.clock)
        self.scoring = FixedScoring(self.store)
        self.assignments = RecordingAssignmentBook()
        self.coordinator = SubmissionCoordinator(self.scoring, self.store, assignments=self.assignments)
        self.attempt = self.store.add(make_attempt())

    def test_manual_submit_requires_confirmation(self):
        with self.assertRaises(ConfirmationRequired):
            self.coordinator.submit(self.attempt, {'1': 'A'})
        self.assertEqual(self.scoring.calls, [])

    def test_confirmed_submit_scores_normalized_answers(self):
        result = self.coordinator.submit(self.attempt, {1: 'A', 2: ['B', 'B'], 3: ''}, confirmed=True)
        self.assertEqual(self.scoring.calls, [(1, {'1': 'A', '2': ['B']})])
        self.assertEqual(result.score, 2)
        self.assertEqual(result.max_score, 3)
        self.assertFalse(result.auto)
        self.assertFalse(result.already_completed)

    def test_auto_submit_skips_confirmation(self):
        result = self.coordinator.submit(self.attempt, {}, auto=True)
        self.assertTrue(result.auto)
        self.assertEqual(result.score, 0)

    def test_already_completed_returns_stored_result(self):
        self.store.complete(self.attempt.id, score=1, max_score=3)
        result = self.coordinator.submit(self.attempt, {'1': 'A', '2': 'B'}, confirmed=True)
        self.assertTrue(result.already_completed)
        self.assertEqual(result.score, 1)
        self.assertEqual(result.max_score, 3)

    def test_second_submit_is_idempotent(self):
        first = self.coordinator.submit(self.attempt, {'1': 'A'}, auto=True)
        second = self.coordinator.submit(self.attempt, {'1': 'A', '2': 'B'}, confirmed=True)
        self.assertEqual(second.score, first.score)
        self.assertTrue(second.already_completed)
        self.assertEqual(self.store.fetch_attempt(self.attempt.id).answers, {'1': 'A'})

    def test_scoring_failure_is_reported(self):
        self.scoring.failure = AttemptStoreUnavailable('timeout')
        with self.assertLogs('attempts.submission', level='WARNING'):
            with self.assertRaises(SubmissionFailed):
                self.coordinator.submit(self.attempt, {'1': 'A'}, confirmed=True)
        self.assertIsNone(self.store.fetch_attempt(self.attempt.id).completed_at)

    def test_assignment_is_recorded(self):
        self.coordinator.submit(self.attempt, {'1': 'A'}, confirmed=True, assignment_id=7)
        self.assertEqual(self.assignments.records, [(7, 100, 1.0)])

    def test_assignment_failure_does_not_block_submission(self):
        self.assignments.failure = AssignmentNotFound('assignment 7')
        with self.assertLogs('attempts.submission', level='WARNING'):
            result = self.coordinator.submit(self.attempt, {'1': 'A'}, confirmed=True, assignment_id=7)
        self.assertEqual(result.score, 1)
        self.assertIsNotNone(self.store.fetch_attempt(self.attempt.id).completed_at)

    def test_assignment_skipped_without_id(self):
        self.coordinator.submit(self.attempt, {'1': 'A'}, confirmed=True)
        self.assertEqual(self.assignments.records, [])
