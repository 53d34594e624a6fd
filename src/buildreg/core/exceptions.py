"""Custom exception hierarchy for buildreg."""

from typing import Any

from buildreg.core.types import ErrorCode


class BuildregError(Exception):
    """Base exception for all buildreg errors."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(BuildregError):
    """Input validation failed."""

    code = ErrorCode.BAD_REQUEST


class NotFoundError(BuildregError):
    """Resource not found."""

    code = ErrorCode.NOT_FOUND


class UpstreamError(BuildregError):
    """External service failed or is unreachable."""

    def __init__(
        self,
        message: str,
        source: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.source = source
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        """Connection failures, 5xx, and 429 are transient; other 4xx are not."""
        if self.status_code is None:
            return True
        return self.status_code == 429 or self.status_code >= 500


class RateLimitError(UpstreamError):
    """External service answered 429."""

    code = ErrorCode.RATE_LIMITED

    def __init__(
        self,
        message: str,
        source: str,
        retry_after: float | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, source, status_code=429, details=details)
        self.retry_after = retry_after


class UpstreamTimeoutError(UpstreamError):
    """External request exceeded its hard timeout."""

    code = ErrorCode.TIMEOUT


class MalformedResponseError(BuildregError):
    """External service returned a body without the expected fields."""

    def __init__(
        self,
        message: str,
        source: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.source = source
