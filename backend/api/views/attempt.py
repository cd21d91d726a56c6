from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.models import ensure_instructor
from accounts.permissions import IsInstructor
from attempts.lifecycle import AttemptLifecycle
from quizzes.models import Quiz
from quizzes.serializers import QuizAttemptSummarySerializer, ResetPayloadSerializer
from quizzes.store import DatabaseAttemptStore, DatabaseQuizCatalog


def get_owned_quiz(request, quiz_id) -> Quiz:
    if request.user.is_superuser:
        return get_object_or_404(Quiz, id=quiz_id)
    instructor = ensure_instructor(request.user)
    return get_object_or_404(Quiz.objects.filter(owner=instructor), id=quiz_id)


class QuizAttemptList(APIView):
    permission_classes = [IsInstructor]

    def get(self, request, quiz_id):
        quiz = get_owned_quiz(request, quiz_id)
        attempts = quiz.attempts.select_related('user').order_by('-started_at')
        user_id = request.query_params.get('user_id')
        if user_id:
            attempts = attempts.filter(user_id=user_id)
        serializer = QuizAttemptSummarySerializer(attempts, many=True)
        return Response(serializer.data)


class QuizAttemptReset(APIView):
    """Delete every attempt a learner has on a quiz, clearing both the active attempt and the attempts limit."""

    permission_classes = [IsInstructor]

    def post(self, request, quiz_id):
        quiz = get_owned_quiz(request, quiz_id)
        serializer = ResetPayloadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        learner = get_object_or_404(get_user_model(), id=serializer.validated_data['user_id'])
        lifecycle = AttemptLifecycle(DatabaseAttemptStore(), DatabaseQuizCatalog())
        deleted = lifecycle.reset(quiz.id, learner.id)
        return Response({'deleted': deleted})
