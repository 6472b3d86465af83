"""Transcoding provider interfaces."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class TranscoderError(Exception):
    """Raised when a transcoding job cannot be submitted."""


@dataclass(frozen=True, slots=True)
class OutputProfile:
    """Fixed pipeline and single-output configuration every job is submitted with."""

    pipeline_id: str | None
    preset_id: str
    output_key: str = "video.mp4"
    thumbnail_pattern: str | None = "thumb-{count}"


class TranscoderClient(ABC):
    @abstractmethod
    async def submit_job(self, object_key: str, output_key_prefix: str, output_profile: OutputProfile) -> str:
        """Submit a job transcoding ``object_key`` and return the provider's job id."""


__all__ = ["OutputProfile", "TranscoderClient", "TranscoderError"]
