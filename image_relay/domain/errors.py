"""Generation Errors - Domain Layer

Every failure the core can report maps to exactly one ErrorKind. Adapters
raise the typed exceptions below; ImageProvider.generate converts them to
GenerationFailure values so nothing escapes the core boundary.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Uniform failure taxonomy shared by every provider adapter."""

    INVALID_INPUT = "InvalidInput"
    PROVIDER_REJECTED = "ProviderRejected"
    PROVIDER_WARMING = "ProviderWarming"
    RATE_LIMITED = "RateLimited"
    JOB_FAILED = "JobFailed"
    POLL_TIMED_OUT = "PollTimedOut"
    NO_RESULT = "NoResult"
    UNEXPECTED = "Unexpected"

    @property
    def http_status(self) -> int:
        """HTTP status code a dispatcher should answer with."""
        return _HTTP_STATUS.get(self, 500)

    @property
    def retriable(self) -> bool:
        """Whether the caller may retry the same request later."""
        return self in (ErrorKind.PROVIDER_WARMING, ErrorKind.RATE_LIMITED)


_HTTP_STATUS = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.PROVIDER_WARMING: 503,
    ErrorKind.POLL_TIMED_OUT: 408,
}


class ImageRelayError(Exception):
    """Base exception for generation errors."""

    kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.retry_after = retry_after

    @property
    def retriable(self) -> bool:
        return self.kind.retriable


class InvalidInputError(ImageRelayError, ValueError):
    """A required field is missing or malformed. Raised before any network call."""

    kind = ErrorKind.INVALID_INPUT


class ProviderRejectedError(ImageRelayError):
    """Provider answered the submission with a non-2xx error response."""

    kind = ErrorKind.PROVIDER_REJECTED

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, provider=provider)
        self.status_code = status_code


class ProviderWarmingError(ImageRelayError):
    """Provider is loading the model (cold start)."""

    kind = ErrorKind.PROVIDER_WARMING


class RateLimitedError(ImageRelayError):
    """Provider throttled the request."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(self, provider: Optional[str] = None, retry_after: Optional[float] = None):
        super().__init__(
            f"Rate limit exceeded for {provider or 'provider'}",
            provider=provider,
            retry_after=retry_after,
        )


class JobFailedError(ImageRelayError):
    """An asynchronous job reached the failed or canceled state."""

    kind = ErrorKind.JOB_FAILED


class PollTimedOutError(ImageRelayError):
    """The attempt ceiling was exhausted while the job was still running."""

    kind = ErrorKind.POLL_TIMED_OUT


class NoResultError(ImageRelayError):
    """Provider reported success but no image could be extracted."""

    kind = ErrorKind.NO_RESULT


class UnexpectedError(ImageRelayError):
    """Any other failure (transport error, malformed body)."""

    kind = ErrorKind.UNEXPECTED


class PollRequestError(Exception):
    """A single status fetch failed. Consumes one poll attempt, never fatal on its own."""


class JobStateError(RuntimeError):
    """A job was mutated after reaching a terminal state."""
