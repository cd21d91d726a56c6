from dataclasses import replace

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from attempts.answers import normalize_answers
from attempts.errors import (
    AttemptConflict,
    AttemptNotCompleted,
    ConfirmationRequired,
    SubmissionFailed,
    TimerStateError,
)
from attempts.lifecycle import AttemptLifecycle
from attempts.reconciler import ClockReconciler
from attempts.submission import SubmissionCoordinator
from attempts.types import TimerStatus
from quizzes.models import Quiz, QuizAttempt
from quizzes.scoring import DatabaseScoringService
from quizzes.serializers import (
    AnswersPayloadSerializer,
    AttemptStateSerializer,
    CheckpointPayloadSerializer,
    QuestionReviewSerializer,
    QuizSerializer,
    SubmitPayloadSerializer,
)
from quizzes.store import DatabaseAssignmentBook, DatabaseAttemptStore, DatabaseQuizCatalog, attempt_state


def get_owned_attempt(request, attempt_id) -> QuizAttempt:
    return get_object_or_404(QuizAttempt.objects.select_related('quiz'), id=attempt_id, user=request.user)


def timer_payload(state, time_limit_minutes) -> dict:
    reading = ClockReconciler().read(state, time_limit_minutes)
    return {
        'remaining_seconds': reading.remaining_seconds,
        'timer_status': reading.status.value,
    }


def attempt_payload(state, time_limit_minutes) -> dict:
    data = dict(AttemptStateSerializer(state).data)
    data.update(timer_payload(state, time_limit_minutes))
    return data


def finalize_if_expired(state, time_limit_minutes):
    """Auto-submit an attempt whose time ran out while no client was watching it."""
    if ClockReconciler().read(state, time_limit_minutes).status != TimerStatus.EXPIRED:
        return state
    store = DatabaseAttemptStore()
    # Only answers saved before the deadline count.
    SubmissionCoordinator(DatabaseScoringService(), store).submit(state, state.answers, auto=True)
    return store.fetch_attempt(state.id)


class QuizDetail(APIView):
    def get(self, request, quiz_id):
        quiz = get_object_or_404(Quiz.objects.prefetch_related('questions'), id=quiz_id)
        return Response(QuizSerializer(quiz).data)


class QuizResolve(APIView):
    def post(self, request, quiz_id):
        get_object_or_404(Quiz, id=quiz_id)
        lifecycle = AttemptLifecycle(DatabaseAttemptStore(), DatabaseQuizCatalog())
        try:
            resolution = lifecycle.resolve(quiz_id, request.user.id)
        except AttemptConflict:
            # Another tab created the active attempt between our read and write.
            resolution = lifecycle.resolve(quiz_id, request.user.id)
        quiz = resolution.quiz
        if resolution.attempt is not None and resolution.attempt.is_active:
            finalized = finalize_if_expired(resolution.attempt, quiz.time_limit_minutes)
            if not finalized.is_active:
                resolution = replace(
                    resolution,
                    attempt=finalized,
                    completed_count=resolution.completed_count + 1,
                )
        attempt = resolution.attempt
        return Response(
            {
                'mode': resolution.mode.value,
                'read_only': resolution.is_read_only,
                'completed_count': resolution.completed_count,
                'attempts_allowed': quiz.attempts_allowed,
                'time_limit_minutes': quiz.time_limit_minutes,
                'attempt': attempt_payload(attempt, quiz.time_limit_minutes) if attempt else None,
            }
        )


class AttemptDetail(APIView):
    def get(self, request, attempt_id):
        attempt = get_owned_attempt(request, attempt_id)
        time_limit_minutes = attempt.quiz.time_limit_minutes
        state = finalize_if_expired(attempt_state(attempt), time_limit_minutes)
        return Response(attempt_payload(state, time_limit_minutes))


class AttemptAnswers(APIView):
    def put(self, request, attempt_id):
        attempt = get_owned_attempt(request, attempt_id)
        serializer = AnswersPayloadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        state = DatabaseAttemptStore().save_answers(
            attempt.id,
            normalize_answers(serializer.validated_data['answers']),
        )
        return Response(attempt_payload(state, attempt.quiz.time_limit_minutes))


class AttemptTimerStart(APIView):
    def post(self, request, attempt_id):
        attempt = get_owned_attempt(request, attempt_id)
        time_limit_minutes = attempt.time_limit_minutes or attempt.quiz.time_limit_minutes
        if not time_limit_minutes:
            raise TimerStateError('This quiz has no time limit.')
        state = DatabaseAttemptStore().start_timer(attempt.id, time_limit_minutes)
        data = {
            'attempt_id': state.id,
            'timer_started_at': state.timer_started_at,
            'time_limit_minutes': state.time_limit_minutes,
        }
        data.update(timer_payload(state, time_limit_minutes))
        return Response(data)


class AttemptTimerCheckpoint(APIView):
    def post(self, request, attempt_id):
        attempt = get_owned_attempt(request, attempt_id)
        serializer = CheckpointPayloadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        acknowledged = DatabaseAttemptStore().checkpoint(attempt.id, serializer.validated_data['remaining_seconds'])
        return Response({'acknowledged': acknowledged})


class AttemptSubmit(APIView):
    def post(self, request, attempt_id):
        attempt = get_owned_attempt(request, attempt_id)
        serializer = SubmitPayloadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payload = serializer.validated_data
        store = DatabaseAttemptStore()
        state = attempt_state(attempt)
        answers = payload['answers'] if 'answers' in payload else state.answers
        auto = payload['auto']
        expired = ClockReconciler().read(state, attempt.quiz.time_limit_minutes).status == TimerStatus.EXPIRED
        if expired and not auto:
            # A manual submit after the deadline cannot bring in answers that were never saved in time.
            answers = state.answers
            auto = True
        coordinator = SubmissionCoordinator(DatabaseScoringService(), store, assignments=DatabaseAssignmentBook())
        try:
            result = coordinator.submit(
                state,
                answers,
                auto=auto,
                confirmed=payload['confirmed'],
                assignment_id=payload.get('assignment_id'),
            )
        except ConfirmationRequired as exc:
            return Response({'success': False, 'error': str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except SubmissionFailed as exc:
            return Response({'success': False, 'error': str(exc)}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
        return Response(
            {
                'success': True,
                'attempt_id': result.attempt_id,
                'score': result.score,
                'max_score': result.max_score,
                'auto': result.auto,
                'already_completed': result.already_completed,
            }
        )


class AttemptReview(APIView):
    """Per-question answers, correctness, answer key and explanation of a submitted attempt."""

    def get(self, request, attempt_id):
        attempt = get_owned_attempt(request, attempt_id)
        if attempt.completed_at is None:
            raise AttemptNotCompleted('Answers can be reviewed once the attempt is submitted.')
        questions = attempt.quiz.questions.all()
        serializer = QuestionReviewSerializer(questions, many=True, context={'answers': attempt.answers or {}})
        return Response(
            {
                'attempt': attempt_payload(attempt_state(attempt), attempt.quiz.time_limit_minutes),
                'questions': serializer.data,
            }
        )
