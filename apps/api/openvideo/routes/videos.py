"""Finalized video routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path

from openvideo.routes.dependencies import get_pipeline_service
from openvideo.schemas.error import NoLeakNotFoundError
from openvideo.schemas.video import Video
from openvideo.services.pipeline import PipelineService

router = APIRouter(prefix="/videos", tags=["Videos"])


@router.get("/{videoId}", response_model=Video, responses={404: {"model": NoLeakNotFoundError}})
async def get_video(
    video_id: Annotated[str, Path(alias="videoId")],
    service: Annotated[PipelineService, Depends(get_pipeline_service)],
) -> Video:
    return service.get_video(video_id=video_id)
