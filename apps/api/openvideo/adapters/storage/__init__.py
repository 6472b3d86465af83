"""Blob storage adapters."""

from .base import UploadTargetError, UploadTargetIssuer
from .mock_storage import MockUploadTargetIssuer
from .s3 import S3UploadTargetIssuer

__all__ = [
    "MockUploadTargetIssuer",
    "S3UploadTargetIssuer",
    "UploadTargetError",
    "UploadTargetIssuer",
]
