"""Transcoding service adapters."""

from .base import OutputProfile, TranscoderClient, TranscoderError
from .elastic_transcoder import ElasticTranscoderClient
from .mock_transcoder import MockTranscoderClient

__all__ = [
    "ElasticTranscoderClient",
    "MockTranscoderClient",
    "OutputProfile",
    "TranscoderClient",
    "TranscoderError",
]
