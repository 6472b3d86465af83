"""Upload builder API schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class BuilderStatus(str, Enum):
    INITIATED = "INITIATED"
    UPLOADED = "UPLOADED"
    TRANSCODED = "TRANSCODED"


class UploadableVideo(BaseModel):
    """Builder view returned to the uploading client."""

    id: str
    upload_url: str | None = None
    status: BuilderStatus


class Builder(BaseModel):
    id: str
    status: BuilderStatus
    started_at: datetime
    updated_at: datetime | None = None
    video_id: str | None = None
