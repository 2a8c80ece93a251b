"""Exceptions raised across the assistant pipeline."""


class AssistantError(Exception):
    """Base class for assistant errors."""


class InvalidRequest(AssistantError):
    """Raised when a turn request is missing or carries invalid fields."""


class ProviderUnavailable(AssistantError):
    """Raised when the LLM provider call fails or returns a non-success status."""


class RateLimitException(ProviderUnavailable):
    """Exception raised when rate limit is hit and user should be notified."""

    def __init__(self, message: str, retry_after: float = 30.0):
        super().__init__(message)
        self.retry_after = retry_after


class MalformedToolArguments(AssistantError):
    """Raised when a tool invocation payload is not a JSON object."""
