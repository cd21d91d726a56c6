from django.contrib import admin

from quizzes.models import Quiz
from .models import Instructor


class OwnedQuizInline(admin.TabularInline):
    model = Quiz
    fk_name = 'owner'
    fields = ('title', 'time_limit_minutes', 'attempts_allowed')
    extra = 0
    show_change_link = True


@admin.register(Instructor)
class InstructorAdmin(admin.ModelAdmin):
    list_display = ('user', 'display_name', 'is_admin_instructor')
    search_fields = ('user__username', 'user__email')
    list_filter = ('is_admin_instructor',)
    inlines = [OwnedQuizInline]
