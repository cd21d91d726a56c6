from django.urls import path

from .views import (
    AttemptAnswers,
    AttemptDetail,
    AttemptReview,
    AttemptSubmit,
    AttemptTimerCheckpoint,
    AttemptTimerStart,
    QuizAttemptList,
    QuizAttemptReset,
    QuizDetail,
    QuizResolve,
)

urlpatterns = [
    path('quizzes/<int:quiz_id>/', QuizDetail.as_view(), name='quiz-detail'),
    path('quizzes/<int:quiz_id>/resolve/', QuizResolve.as_view(), name='quiz-resolve'),
    path('quizzes/<int:quiz_id>/attempts/', QuizAttemptList.as_view(), name='quiz-attempts'),
    path('quizzes/<int:quiz_id>/attempts/reset/', QuizAttemptReset.as_view(), name='quiz-attempts-reset'),
    path('attempts/<int:attempt_id>/', AttemptDetail.as_view(), name='attempt-detail'),
    path('attempts/<int:attempt_id>/answers/', AttemptAnswers.as_view(), name='attempt-answers'),
    path('attempts/<int:attempt_id>/timer/start/', AttemptTimerStart.as_view(), name='attempt-timer-start'),
    path(
        'attempts/<int:attempt_id>/timer/checkpoint/',
        AttemptTimerCheckpoint.as_view(),
        name='attempt-timer-checkpoint',
    ),
    path('attempts/<int:attempt_id>/submit/', AttemptSubmit.as_view(), name='attempt-submit'),
    path('attempts/<int:attempt_id>/review/', AttemptReview.as_view(), name='attempt-review'),
]
