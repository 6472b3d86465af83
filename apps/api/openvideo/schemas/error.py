"""API error response schemas."""

from typing import Any
from typing import Literal

from pydantic import BaseModel

from openvideo.schemas.builder import BuilderStatus


class ErrorResponse(BaseModel):
    code: str
    message: str
    details: dict[str, Any] | None = None


class TransitionErrorDetails(BaseModel):
    current_status: BuilderStatus
    attempted_status: BuilderStatus
    allowed_next_statuses: list[BuilderStatus] | None = None


class FsmTransitionError(BaseModel):
    code: Literal["FSM_TRANSITION_INVALID", "FSM_TERMINAL_IMMUTABLE"]
    message: str
    details: TransitionErrorDetails


class BuilderExpiredError(BaseModel):
    code: Literal["BUILDER_EXPIRED"]
    message: str
    details: dict[str, Any] | None = None


class ConcurrencyLimitErrorDetails(BaseModel):
    active_uploads: int
    limit: int


class ConcurrencyLimitError(BaseModel):
    code: Literal["TOO_MANY_CONCURRENT_UPLOADS"]
    message: str
    details: ConcurrencyLimitErrorDetails


class NoLeakNotFoundError(BaseModel):
    code: Literal["RESOURCE_NOT_FOUND"]
    message: str


class UpstreamFailureError(BaseModel):
    code: Literal["UPLOAD_TARGET_FAILED", "TRANSCODE_DISPATCH_FAILED"]
    message: str
    details: dict[str, Any] | None = None
