from django.contrib import admin

from .models import Assignment, AssignmentSubmission, Question, Quiz, QuizAttempt


class QuestionInline(admin.TabularInline):
    model = Question
    extra = 0


@admin.register(Quiz)
class QuizAdmin(admin.ModelAdmin):
    list_display = ('title', 'owner', 'time_limit_minutes', 'attempts_allowed', 'created_at')
    inlines = [QuestionInline]


@admin.register(Question)
class QuestionAdmin(admin.ModelAdmin):
    list_display = ('quiz', 'order_index', 'question_type', 'points')
    list_filter = ('question_type',)


@admin.register(QuizAttempt)
class QuizAttemptAdmin(admin.ModelAdmin):
    list_display = ('quiz', 'user', 'attempt_number', 'started_at', 'completed_at', 'score', 'max_score')
    list_filter = ('needs_manual_grading',)
    readonly_fields = ('timer_started_at', 'score', 'max_score', 'completed_at')


@admin.register(Assignment)
class AssignmentAdmin(admin.ModelAdmin):
    list_display = ('title', 'quiz', 'due_at')


@admin.register(AssignmentSubmission)
class AssignmentSubmissionAdmin(admin.ModelAdmin):
    list_display = ('assignment', 'student', 'status', 'grade', 'submitted_at')
