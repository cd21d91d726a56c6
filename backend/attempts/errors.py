"""Errors raised by the attempt engine.

Every failure is scoped to a single attempt; none of these are fatal to the
process. Callers decide whether to retry, refetch or surface them.
"""


class QuizEngineError(Exception):
    """Base exception for attempt engine errors."""

    pass


class AttemptStoreUnavailable(QuizEngineError):
    """Transient failure talking to the attempt store. Safe to retry."""

    pass


class AttemptConflict(QuizEngineError):
    """Another context won a race, e.g. created the active attempt first."""

    pass


class AttemptNotFound(QuizEngineError):
    """The attempt does not exist (or was removed by a reset)."""

    pass


class QuizNotFound(QuizEngineError):
    """The quiz is not in the catalog."""

    pass


class AssignmentNotFound(QuizEngineError):
    """The assignment context attached to a submission does not exist."""

    pass


class AttemptAlreadyCompleted(QuizEngineError):
    """The attempt was already completed; the store rejected the write."""

    pass


class AttemptReadOnly(QuizEngineError):
    """Answers cannot change on a completed or limit-reached attempt."""

    pass


class TimerStateError(QuizEngineError):
    """The countdown cannot perform the requested transition."""

    pass


class ConfirmationRequired(QuizEngineError):
    """A manual submission needs explicit learner confirmation."""

    pass


class SubmissionFailed(QuizEngineError):
    """Scoring failed; the attempt stays open so the learner can retry."""

    pass


class AttemptNotCompleted(QuizEngineError):
    """The attempt is still open, so its answer key cannot be shown yet."""

    pass
