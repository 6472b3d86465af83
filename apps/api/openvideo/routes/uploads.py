"""Upload builder routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, status

from openvideo.routes.dependencies import get_admission_service, get_authenticated_principal, get_pipeline_service
from openvideo.schemas.auth import AuthPrincipal
from openvideo.schemas.builder import Builder, UploadableVideo
from openvideo.schemas.error import (
    BuilderExpiredError,
    ConcurrencyLimitError,
    ErrorResponse,
    FsmTransitionError,
    NoLeakNotFoundError,
    UpstreamFailureError,
)
from openvideo.services.admission import AdmissionService
from openvideo.services.pipeline import PipelineService

router = APIRouter(prefix="/uploads", tags=["Uploads"])


@router.post(
    "",
    response_model=UploadableVideo,
    status_code=status.HTTP_201_CREATED,
    responses={
        401: {"model": ErrorResponse},
        429: {"model": ConcurrencyLimitError},
        502: {"model": UpstreamFailureError},
    },
)
async def request_upload(
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[AdmissionService, Depends(get_admission_service)],
) -> UploadableVideo:
    return await service.request_upload(owner_username=principal.username)


@router.get(
    "/{builderId}",
    response_model=Builder,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": NoLeakNotFoundError},
    },
)
async def get_upload(
    builder_id: Annotated[str, Path(alias="builderId")],
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[PipelineService, Depends(get_pipeline_service)],
) -> Builder:
    return service.get_builder(principal=principal, builder_id=builder_id)


@router.post(
    "/{builderId}/accepted",
    response_model=UploadableVideo,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": NoLeakNotFoundError},
        409: {"model": FsmTransitionError | BuilderExpiredError},
        502: {"model": UpstreamFailureError},
    },
)
async def accept_upload(
    builder_id: Annotated[str, Path(alias="builderId")],
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[PipelineService, Depends(get_pipeline_service)],
) -> UploadableVideo:
    return await service.handle_upload_accepted(principal=principal, builder_id=builder_id)
