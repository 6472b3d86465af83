"""Video entity schemas."""

from datetime import datetime

from pydantic import BaseModel


class Video(BaseModel):
    id: str
    owner_username: str
    object_key: str
    src: str
    thumbnail: str | None = None
    created_at: datetime
