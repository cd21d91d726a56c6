from datetime import datetime, timedelta, timezone as dt_timezone
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import IntegrityError, OperationalError, transaction
from django.test import TestCase

from accounts.models import Instructor
from attempts.clock import ManualClock
from attempts.errors import (
    AssignmentNotFound,
    AttemptAlreadyCompleted,
    AttemptConflict,
    AttemptNotFound,
    AttemptReadOnly,
    AttemptStoreUnavailable,
    QuizNotFound,
)
from .models import Assignment, AssignmentSubmission, Question, Quiz, QuizAttempt
from .scoring import DatabaseScoringService, grade_answer, grade_answers
from .store import DatabaseAssignmentBook, DatabaseAttemptStore, DatabaseQuizCatalog

User = get_user_model()

T0 = datetime(2024, 3, 4, 9, 0, tzinfo=dt_timezone.utc)


class QuizModelTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username='instructor', password='password')
        self.instructor = Instructor.objects.create(user=self.user)

    def test_create_quiz(self):
        quiz = Quiz.objects.create(title='Test Quiz', owner=self.instructor)
        self.assertEqual(str(quiz), 'Test Quiz')
        self.assertFalse(quiz.is_timed)
        quiz.time_limit_minutes = 15
        self.assertTrue(quiz.is_timed)

    def test_question_ordering_auto(self):
        quiz = Quiz.objects.create(title='Test Quiz', owner=self.instructor)
        q1 = Question.objects.create(quiz=quiz, question_text='Q1', question_type='multiple_choice')
        q2 = Question.objects.create(quiz=quiz, question_text='Q2', question_type='essay')
        self.assertEqual(q1.order_index, 1)
        self.assertEqual(q2.order_index, 2)
        self.assertEqual(str(q2), 'Test Quiz: Q2')

    def test_multi_select_types(self):
        quiz = Quiz.objects.create(title='Test Quiz', owner=self.instructor)
        checkbox = Question(quiz=quiz, question_type=Question.QuestionType.CHECKBOX)
        choice = Question(quiz=quiz, question_type=Question.QuestionType.MULTIPLE_CHOICE)
        self.assertTrue(checkbox.is_multi_select)
        self.assertFalse(choice.is_multi_select)


class QuizAttemptConstraintTests(TestCase):
    def setUp(self):
        owner = Instructor.objects.create(user=User.objects.create_user(username='instructor', password='password'))
        self.learner = User.objects.create_user(username='learner', password='password')
        self.quiz = Quiz.objects.create(title='Test Quiz', owner=owner)

    def test_only_one_active_attempt(self):
        QuizAttempt.objects.create(quiz=self.quiz, user=self.learner, attempt_number=1, started_at=T0)
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                QuizAttempt.objects.create(quiz=self.quiz, user=self.learner, attempt_number=2, started_at=T0)

    def test_completed_attempts_do_not_block_a_new_one(self):
        QuizAttempt.objects.create(
            quiz=self.quiz, user=self.learner, attempt_number=1, started_at=T0, completed_at=T0
        )
        attempt = QuizAttempt.objects.create(quiz=self.quiz, user=self.learner, attempt_number=2, started_at=T0)
        self.assertTrue(attempt.is_active)

    def test_attempt_numbers_are_unique(self):
        QuizAttempt.objects.create(
            quiz=self.quiz, user=self.learner, attempt_number=1, started_at=T0, completed_at=T0
        )
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                QuizAttempt.objects.create(quiz=self.quiz, user=self.learner, attempt_number=1, started_at=T0)


class DatabaseAttemptStoreTests(TestCase):
    def setUp(self):
        owner = Instructor.objects.create(user=User.objects.create_user(username='instructor', password='password'))
        self.learner = User.objects.create_user(username='learner', password='password')
        self.quiz = Quiz.objects.create(title='Timed', owner=owner, time_limit_minutes=10, attempts_allowed=2)
        Question.objects.create(quiz=self.quiz, question_text='Q1', question_type='true_false', correct_answer='true')
        self.clock = ManualClock(T0)
        self.store = DatabaseAttemptStore(self.clock)

    def create(self, number=1):
        return self.store.create_attempt(self.quiz.id, self.learner.id, attempt_number=number, started_at=self.clock.now())

    def test_catalog_returns_quiz_info(self):
        info = DatabaseQuizCatalog().get_quiz(self.quiz.id)
        self.assertEqual(info.time_limit_minutes, 10)
        self.assertEqual(info.attempts_allowed, 2)
        self.assertEqual([q.question_type for q in info.questions], ['true_false'])

    def test_catalog_missing_quiz(self):
        with self.assertRaises(QuizNotFound):
            DatabaseQuizCatalog().get_quiz(9999)

    def test_create_and_list(self):
        attempt = self.create()
        self.assertEqual(attempt.attempt_number, 1)
        self.assertEqual(attempt.answers, {})
        self.assertEqual([a.id for a in self.store.list_attempts(self.quiz.id, self.learner.id)], [attempt.id])

    def test_duplicate_active_attempt_is_a_conflict(self):
        self.create()
        with self.assertRaises(AttemptConflict):
            self.create(number=2)
        self.assertEqual(QuizAttempt.objects.count(), 1)

    def test_list_is_newest_first(self):
        first = self.create()
        QuizAttempt.objects.filter(pk=first.id).update(completed_at=T0)
        self.clock.advance(60)
        second = self.create(number=2)
        self.assertEqual([a.id for a in self.store.list_attempts(self.quiz.id, self.learner.id)], [second.id, first.id])

    def test_fetch_missing_attempt(self):
        with self.assertRaises(AttemptNotFound):
            self.store.fetch_attempt(9999)

    def test_first_timer_start_wins(self):
        attempt = self.create()
        started = self.store.start_timer(attempt.id, 10)
        self.assertEqual(started.timer_started_at, T0)
        self.assertTrue(started.is_timer_active)
        self.assertEqual(started.time_remaining_seconds, 600)

        self.clock.advance(30)
        with self.assertLogs('quizzes.store', level='INFO'):
            again = self.store.start_timer(attempt.id, 20)
        self.assertEqual(again.timer_started_at, T0)
        self.assertEqual(again.time_limit_minutes, 10)

    def test_cannot_start_timer_on_completed_attempt(self):
        attempt = self.create()
        QuizAttempt.objects.filter(pk=attempt.id).update(completed_at=T0)
        with self.assertRaises(AttemptAlreadyCompleted):
            self.store.start_timer(attempt.id, 10)

    def test_checkpoint_only_updates_running_timer(self):
        attempt = self.create()
        self.assertFalse(self.store.checkpoint(attempt.id, 500))
        self.store.start_timer(attempt.id, 10)
        self.assertTrue(self.store.checkpoint(attempt.id, 590))
        self.assertEqual(self.store.fetch_attempt(attempt.id).time_remaining_seconds, 590)
        self.assertTrue(self.store.checkpoint(attempt.id, -4))
        self.assertEqual(self.store.fetch_attempt(attempt.id).time_remaining_seconds, 0)

    def test_answers_frozen_after_completion(self):
        attempt = self.create()
        saved = self.store.save_answers(attempt.id, {'1': 'true'})
        self.assertEqual(saved.answers, {'1': 'true'})
        QuizAttempt.objects.filter(pk=attempt.id).update(completed_at=T0)
        with self.assertRaises(AttemptAlreadyCompleted):
            self.store.save_answers(attempt.id, {'1': 'false'})
        self.assertEqual(self.store.fetch_attempt(attempt.id).answers, {'1': 'true'})

    def test_answers_rejected_once_time_is_up(self):
        attempt = self.create()
        self.store.start_timer(attempt.id, 10)
        self.clock.advance(599)
        self.store.save_answers(attempt.id, {'1': 'true'})
        self.clock.advance(1)
        with self.assertRaises(AttemptReadOnly):
            self.store.save_answers(attempt.id, {'1': 'false'})
        self.assertEqual(self.store.fetch_attempt(attempt.id).answers, {'1': 'true'})

    def test_lost_connection_is_reported_as_unavailable(self):
        attempt = self.create()
        with mock.patch.object(QuizAttempt.objects, 'filter', side_effect=OperationalError('connection lost')):
            with self.assertRaises(AttemptStoreUnavailable):
                self.store.checkpoint(attempt.id, 10)

    def test_reset_removes_all_attempts(self):
        first = self.create()
        QuizAttempt.objects.filter(pk=first.id).update(completed_at=T0)
        self.create(number=2)
        self.assertEqual(self.store.reset(self.quiz.id, self.learner.id), 2)
        self.assertEqual(self.store.list_attempts(self.quiz.id, self.learner.id), [])


class GradeAnswerTests(TestCase):
    def setUp(self):
        owner = Instructor.objects.create(user=User.objects.create_user(username='instructor', password='password'))
        self.quiz = Quiz.objects.create(title='Mixed', owner=owner)

    def question(self, question_type, **kwargs):
        return Question(quiz=self.quiz, question_text='?', question_type=question_type, **kwargs)

    def test_multiple_choice_exact_match(self):
        question = self.question('multiple_choice', correct_answer='Paris')
        self.assertTrue(grade_answer(question, 'Paris'))
        self.assertFalse(grade_answer(question, 'paris'))
        self.assertFalse(grade_answer(question, None))
        self.assertFalse(grade_answer(question, ['Paris']))

    def test_multi_select_needs_exact_set(self):
        question = self.question('checkbox', correct_answers=['A', 'C'])
        self.assertTrue(grade_answer(question, ['C', 'A']))
        self.assertFalse(grade_answer(question, ['A']))
        self.assertFalse(grade_answer(question, ['A', 'B', 'C']))

    def test_multi_select_without_key_never_matches(self):
        question = self.question('multiple_answers', correct_answers=[])
        self.assertFalse(grade_answer(question, []))

    def test_true_false_ignores_case(self):
        question = self.question('true_false', correct_answer='True')
        self.assertTrue(grade_answer(question, 'true'))
        self.assertFalse(grade_answer(question, 'false'))

    def test_fill_in_blank_normalizes_text(self):
        question = self.question('fill_in_blank', correct_answers=['New York', 'NYC'])
        self.assertTrue(grade_answer(question, '  new   york '))
        self.assertTrue(grade_answer(question, 'nyc'))
        self.assertFalse(grade_answer(question, 'Boston'))

    def test_fill_in_blank_per_blank(self):
        question = self.question('fill_in_blank', correct_answers=['red', 'blue'])
        self.assertTrue(grade_answer(question, ['Red', 'BLUE']))
        self.assertFalse(grade_answer(question, ['blue', 'red']))
        self.assertFalse(grade_answer(question, ['red']))

    def test_essay_needs_manual_grading(self):
        question = self.question('essay')
        self.assertIsNone(grade_answer(question, 'My essay'))

    def test_grade_answers_totals(self):
        questions = [
            self.question('multiple_choice', correct_answer='A', points=2),
            self.question('essay', points=5),
            self.question('true_false', correct_answer='false', points=1),
        ]
        for index, question in enumerate(questions, start=1):
            question.id = index
        score, max_score, needs_manual = grade_answers(questions, {'1': 'A', '2': 'text', '3': 'true'})
        self.assertEqual((score, max_score, needs_manual), (2, 8, True))


class DatabaseScoringServiceTests(TestCase):
    def setUp(self):
        owner = Instructor.objects.create(user=User.objects.create_user(username='instructor', password='password'))
        self.learner = User.objects.create_user(username='learner', password='password')
        self.quiz = Quiz.objects.create(title='Timed', owner=owner, time_limit_minutes=5)
        self.mc = Question.objects.create(
            quiz=self.quiz, question_text='Q1', question_type='multiple_choice', correct_answer='B', points=2
        )
        self.essay = Question.objects.create(quiz=self.quiz, question_text='Q2', question_type='essay', points=3)
        self.clock = ManualClock(T0)
        self.store = DatabaseAttemptStore(self.clock)
        self.scoring = DatabaseScoringService(self.clock)
        self.attempt = self.store.create_attempt(self.quiz.id, self.learner.id, attempt_number=1, started_at=T0)

    def test_submit_scores_and_completes(self):
        self.store.start_timer(self.attempt.id, 5)
        self.clock.advance(125)
        result = self.scoring.submit(self.attempt.id, {str(self.mc.id): 'B', str(self.essay.id): 'Because.'})
        self.assertEqual((result.score, result.max_score), (2, 5))

        attempt = QuizAttempt.objects.get(pk=self.attempt.id)
        self.assertEqual(attempt.completed_at, T0 + timedelta(seconds=125))
        self.assertEqual(attempt.time_taken_seconds, 125)
        self.assertFalse(attempt.is_timer_active)
        self.assertTrue(attempt.needs_manual_grading)
        self.assertEqual(attempt.answers[str(self.essay.id)], 'Because.')

    def test_time_taken_is_capped_at_limit(self):
        self.store.start_timer(self.attempt.id, 5)
        self.clock.advance(900)
        self.scoring.submit(self.attempt.id, {})
        self.assertEqual(QuizAttempt.objects.get(pk=self.attempt.id).time_taken_seconds, 300)

    def test_second_submit_is_rejected(self):
        self.scoring.submit(self.attempt.id, {str(self.mc.id): 'B'})
        with self.assertRaises(AttemptAlreadyCompleted):
            self.scoring.submit(self.attempt.id, {str(self.mc.id): 'A'})
        attempt = QuizAttempt.objects.get(pk=self.attempt.id)
        self.assertEqual(attempt.score, 2)
        self.assertEqual(attempt.answers, {str(self.mc.id): 'B'})

    def test_missing_attempt(self):
        with self.assertRaises(AttemptNotFound):
            self.scoring.submit(9999, {})


class DatabaseAssignmentBookTests(TestCase):
    def setUp(self):
        owner = Instructor.objects.create(user=User.objects.create_user(username='instructor', password='password'))
        self.learner = User.objects.create_user(username='learner', password='password')
        self.quiz = Quiz.objects.create(title='Homework', owner=owner)
        self.assignment = Assignment.objects.create(quiz=self.quiz, title='Week 1')
        self.book = DatabaseAssignmentBook(ManualClock(T0))

    def test_record_submission_upserts(self):
        self.book.record_submission(self.assignment.id, self.learner.id, 3)
        self.book.record_submission(self.assignment.id, self.learner.id, 4)
        submission = AssignmentSubmission.objects.get(assignment=self.assignment, student=self.learner)
        self.assertEqual(submission.status, AssignmentSubmission.Status.SUBMITTED)
        self.assertEqual(submission.grade, 4)
        self.assertEqual(submission.submitted_at, T0)
        self.assertEqual(AssignmentSubmission.objects.count(), 1)

    def test_unknown_assignment(self):
        with self.assertRaises(AssignmentNotFound):
            self.book.record_submission(9999, self.learner.id, 1)
