from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from attempts.errors import (
    AssignmentNotFound,
    AttemptAlreadyCompleted,
    AttemptConflict,
    AttemptNotCompleted,
    AttemptNotFound,
    AttemptReadOnly,
    AttemptStoreUnavailable,
    ConfirmationRequired,
    QuizEngineError,
    QuizNotFound,
    SubmissionFailed,
    TimerStateError,
)

ENGINE_ERROR_STATUS = (
    ((AttemptNotFound, QuizNotFound, AssignmentNotFound), status.HTTP_404_NOT_FOUND),
    ((AttemptAlreadyCompleted, AttemptReadOnly, AttemptConflict, AttemptNotCompleted), status.HTTP_409_CONFLICT),
    ((ConfirmationRequired, TimerStateError), status.HTTP_400_BAD_REQUEST),
    ((AttemptStoreUnavailable, SubmissionFailed), status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for(exc: QuizEngineError) -> int:
    for error_types, status_code in ENGINE_ERROR_STATUS:
        if isinstance(exc, error_types):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def engine_exception_handler(exc, context):
    if isinstance(exc, QuizEngineError):
        return Response({'detail': str(exc), 'error': type(exc).__name__}, status=status_for(exc))
    return exception_handler(exc, context)
