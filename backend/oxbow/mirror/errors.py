CONTENT_POLICY_MESSAGE = (
    "Mirror generation was blocked by the AI provider's content policy. "
    "Your journals may contain sensitive content that could not be processed. "
    "Please try again later or reach out to support."
)


class MirrorGenerationError(Exception):
    """Base class for failures surfaced by the Mirror pipeline."""

    error_type = "exception"

    def __init__(self, message: str, *, error_type: str | None = None):
        super().__init__(message)
        if error_type is not None:
            self.error_type = error_type


class PreconditionError(MirrorGenerationError):
    error_type = "precondition_error"


class RateLimitError(MirrorGenerationError):
    error_type = "rate_limited"


class CoreGenerationError(MirrorGenerationError):
    """The required core call did not produce usable output."""

    def __init__(self, message: str, *, finish_reason: str, content_filter_triggered: bool = False):
        super().__init__(message, error_type=finish_reason)
        self.finish_reason = finish_reason
        self.content_filter_triggered = content_filter_triggered


class PersistenceError(MirrorGenerationError):
    error_type = "persistence_error"


class TranscriptionError(MirrorGenerationError):
    error_type = "api_error"


class PushDeliveryError(MirrorGenerationError):
    error_type = "api_error"

    def __init__(self, message: str, *, details: object | None = None):
        super().__init__(message)
        self.details = details
