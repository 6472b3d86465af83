"""Blob storage provider interfaces."""

from abc import ABC, abstractmethod


class UploadTargetError(Exception):
    """Raised when storage cannot issue a delegated upload target."""


class UploadTargetIssuer(ABC):
    """Issues short-lived URLs that let clients upload straight to storage."""

    @abstractmethod
    async def issue_upload_target(self, object_key: str, expiry_seconds: int, content_type: str) -> str:
        """Return a URL accepting a single PUT of ``content_type`` to ``object_key``."""


__all__ = ["UploadTargetError", "UploadTargetIssuer"]
