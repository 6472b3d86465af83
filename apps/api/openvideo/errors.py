"""Application exception types."""

from typing import Any

from openvideo.schemas.error import ErrorResponse


class ApiError(Exception):
    """Structured API error that maps directly to contract error payloads."""

    def __init__(self, status_code: int, code: str, message: str, details: dict | None = None) -> None:
        self.status_code = status_code
        self.payload = ErrorResponse(code=code, message=message, details=details)
        super().__init__(message)


class _TypedApiError(ApiError):
    status_code_default: int = 500
    code_default: str = "INTERNAL_ERROR"

    def __init__(self, message: str, *, code: str | None = None, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            status_code=self.status_code_default,
            code=code or self.code_default,
            message=message,
            details=details,
        )


class ValidationError(_TypedApiError):
    """Malformed caller input such as identifiers or limits."""

    status_code_default = 400
    code_default = "VALIDATION_ERROR"


class AuthenticationError(_TypedApiError):
    """Caller identity is absent or does not own the target record."""

    status_code_default = 401
    code_default = "UNAUTHORIZED"


class NotFoundError(_TypedApiError):
    status_code_default = 404
    code_default = "RESOURCE_NOT_FOUND"


class StateConflictError(_TypedApiError):
    """Builder transition attempted from the wrong state."""

    status_code_default = 409
    code_default = "FSM_TRANSITION_INVALID"


class RateLimitError(_TypedApiError):
    """Owner already has the maximum number of uploads in flight."""

    status_code_default = 429
    code_default = "TOO_MANY_CONCURRENT_UPLOADS"


class UpstreamError(_TypedApiError):
    """A collaborator call (storage, transcoder, certificate fetch) failed."""

    status_code_default = 502
    code_default = "UPSTREAM_FAILED"


class SignatureError(_TypedApiError):
    """Inbound notification is malformed or failed signature verification."""

    status_code_default = 403
    code_default = "NOTIFICATION_MALFORMED"


__all__ = [
    "ApiError",
    "AuthenticationError",
    "NotFoundError",
    "RateLimitError",
    "SignatureError",
    "StateConflictError",
    "UpstreamError",
    "ValidationError",
]
