from .attempt import QuizAttemptList, QuizAttemptReset
from .public import (
    AttemptAnswers,
    AttemptDetail,
    AttemptReview,
    AttemptSubmit,
    AttemptTimerCheckpoint,
    AttemptTimerStart,
    QuizDetail,
    QuizResolve,
)
