from rest_framework import serializers

from .models import Question, Quiz, QuizAttempt
from .scoring import grade_answer


class QuestionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Question
        # The answer key never leaves the server.
        fields = ['id', 'question_text', 'question_type', 'options', 'points', 'order_index']


class QuizSerializer(serializers.ModelSerializer):
    questions = QuestionSerializer(many=True, read_only=True)
    is_timed = serializers.BooleanField(read_only=True)

    class Meta:
        model = Quiz
        fields = ['id', 'title', 'description', 'time_limit_minutes', 'attempts_allowed', 'is_timed', 'questions']


class AttemptStateSerializer(serializers.Serializer):
    """Works for both ``QuizAttempt`` rows and engine ``AttemptState`` snapshots."""

    id = serializers.IntegerField()
    quiz_id = serializers.IntegerField()
    user_id = serializers.IntegerField()
    attempt_number = serializers.IntegerField()
    started_at = serializers.DateTimeField()
    completed_at = serializers.DateTimeField(allow_null=True)
    answers = serializers.JSONField()
    score = serializers.FloatField(allow_null=True)
    max_score = serializers.FloatField(allow_null=True)
    time_limit_minutes = serializers.IntegerField(allow_null=True)
    timer_started_at = serializers.DateTimeField(allow_null=True)
    is_timer_active = serializers.BooleanField()
    time_remaining_seconds = serializers.IntegerField(allow_null=True)
    time_taken_seconds = serializers.IntegerField(allow_null=True)
    needs_manual_grading = serializers.BooleanField()


class QuizAttemptSummarySerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True)

    class Meta:
        model = QuizAttempt
        fields = [
            'id',
            'user',
            'username',
            'attempt_number',
            'started_at',
            'completed_at',
            'score',
            'max_score',
            'time_taken_seconds',
            'needs_manual_grading',
        ]


class AnswersPayloadSerializer(serializers.Serializer):
    answers = serializers.DictField(child=serializers.JSONField(allow_null=True), allow_empty=True)


class CheckpointPayloadSerializer(serializers.Serializer):
    remaining_seconds = serializers.IntegerField(min_value=0)


class SubmitPayloadSerializer(serializers.Serializer):
    answers = serializers.DictField(child=serializers.JSONField(allow_null=True), required=False, allow_empty=True)
    auto = serializers.BooleanField(default=False)
    confirmed = serializers.BooleanField(default=False)
    assignment_id = serializers.IntegerField(required=False, allow_null=True)


class ResetPayloadSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()


class QuestionReviewSerializer(serializers.ModelSerializer):
    """A question with the learner's answer and the answer key. Only for completed attempts."""

    answer = serializers.SerializerMethodField()
    is_correct = serializers.SerializerMethodField()

    class Meta:
        model = Question
        fields = [
            'id',
            'question_text',
            'question_type',
            'options',
            'points',
            'order_index',
            'answer',
            'is_correct',
            'correct_answer',
            'correct_answers',
            'explanation',
        ]

    def get_answer(self, question):
        return self.context['answers'].get(str(question.id))

    def get_is_correct(self, question):
        # None while an essay waits for manual grading.
        return grade_answer(question, self.get_answer(question))
