"""S3 presigned upload target adapter."""

from __future__ import annotations

import asyncio
import logging

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from openvideo.adapters.storage.base import UploadTargetError, UploadTargetIssuer

logger = logging.getLogger(__name__)


class S3UploadTargetIssuer(UploadTargetIssuer):
    """Presigns ``put_object`` requests against a single bucket."""

    def __init__(
        self,
        *,
        bucket: str,
        region: str,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        client=None,
    ) -> None:
        self._bucket = bucket
        self._client = client or boto3.client(
            "s3",
            region_name=region,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            config=Config(signature_version="s3v4"),
        )

    async def issue_upload_target(self, object_key: str, expiry_seconds: int, content_type: str) -> str:
        try:
            return await asyncio.to_thread(
                self._client.generate_presigned_url,
                ClientMethod="put_object",
                Params={
                    "Bucket": self._bucket,
                    "Key": object_key,
                    "ContentType": content_type,
                },
                ExpiresIn=expiry_seconds,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.warning(
                "storage.presign_failed bucket=%s key=%s reason=%s",
                self._bucket,
                object_key,
                type(exc).__name__,
            )
            raise UploadTargetError("Failed to presign upload target") from exc


__all__ = ["S3UploadTargetIssuer"]
