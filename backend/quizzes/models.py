from django.conf import settings
from django.db import models

from accounts.models import Instructor


class Quiz(models.Model):
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    owner = models.ForeignKey(Instructor, on_delete=models.CASCADE, related_name='owned_quizzes')
    time_limit_minutes = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text='Leave empty for an untimed quiz.',
    )
    attempts_allowed = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text='Maximum completed attempts per learner. Leave empty for unlimited.',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = 'quizzes'

    def __str__(self) -> str:
        return self.title

    @property
    def is_timed(self) -> bool:
        return bool(self.time_limit_minutes)


class Question(models.Model):
    class QuestionType(models.TextChoices):
        MULTIPLE_CHOICE = 'multiple_choice', 'Multiple choice'
        CHECKBOX = 'checkbox', 'Checkbox'
        MULTIPLE_ANSWERS = 'multiple_answers', 'Multiple answers'
        TRUE_FALSE = 'true_false', 'True / false'
        ESSAY = 'essay', 'Essay'
        FILL_IN_BLANK = 'fill_in_blank', 'Fill in the blank'

    MULTI_SELECT_TYPES = frozenset({QuestionType.CHECKBOX.value, QuestionType.MULTIPLE_ANSWERS.value})

    quiz = models.ForeignKey(Quiz, on_delete=models.CASCADE, related_name='questions')
    question_text = models.TextField()
    question_type = models.CharField(max_length=32, choices=QuestionType.choices)
    options = models.JSONField(null=True, blank=True)
    points = models.FloatField(default=1)
    order_index = models.IntegerField()
    correct_answer = models.TextField(null=True, blank=True)
    correct_answers = models.JSONField(null=True, blank=True)
    explanation = models.TextField(blank=True)

    class Meta:
        ordering = ['order_index']
        constraints = [
            models.UniqueConstraint(fields=['quiz', 'order_index'], name='unique_quiz_question_order')
        ]

    def __str__(self) -> str:
        return f"{self.quiz.title}: Q{self.order_index}"

    def save(self, *args, **kwargs):
        if self.order_index is None:
            last_order = (
                self.__class__.objects.filter(quiz=self.quiz).aggregate(models.Max('order_index'))['order_index__max']
                or 0
            )
            self.order_index = last_order + 1
        return super().save(*args, **kwargs)

    @property
    def is_multi_select(self) -> bool:
        return self.question_type in self.MULTI_SELECT_TYPES


class QuizAttempt(models.Model):
    quiz = models.ForeignKey(Quiz, on_delete=models.CASCADE, related_name='attempts')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='quiz_attempts')
    attempt_number = models.PositiveIntegerField()
    started_at = models.DateTimeField()
    completed_at = models.DateTimeField(null=True, blank=True)
    answers = models.JSONField(default=dict, blank=True)
    score = models.FloatField(null=True, blank=True)
    max_score = models.FloatField(null=True, blank=True)
    time_limit_minutes = models.PositiveIntegerField(null=True, blank=True)
    timer_started_at = models.DateTimeField(null=True, blank=True)
    is_timer_active = models.BooleanField(default=False)
    time_remaining_seconds = models.IntegerField(null=True, blank=True)
    time_taken_seconds = models.IntegerField(null=True, blank=True)
    needs_manual_grading = models.BooleanField(default=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-started_at']
        constraints = [
            models.UniqueConstraint(
                fields=['quiz', 'user'],
                condition=models.Q(completed_at__isnull=True),
                name='one_active_attempt_per_user',
            ),
            models.UniqueConstraint(
                fields=['quiz', 'user', 'attempt_number'],
                name='unique_attempt_number_per_user',
            ),
        ]

    def __str__(self) -> str:
        return f"Attempt {self.attempt_number} on {self.quiz.title} by {self.user}"

    @property
    def is_active(self) -> bool:
        return self.completed_at is None


class Assignment(models.Model):
    quiz = models.ForeignKey(Quiz, on_delete=models.CASCADE, related_name='assignments')
    title = models.CharField(max_length=255)
    due_at = models.DateTimeField(null=True, blank=True)

    def __str__(self) -> str:
        return self.title


class AssignmentSubmission(models.Model):
    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        SUBMITTED = 'submitted', 'Submitted'

    assignment = models.ForeignKey(Assignment, on_delete=models.CASCADE, related_name='submissions')
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='assignment_submissions',
    )
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    grade = models.FloatField(null=True, blank=True)
    submitted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['assignment', 'student'], name='unique_assignment_submission')
        ]

    def __str__(self) -> str:
        return f"{self.assignment.title} - {self.student}"
