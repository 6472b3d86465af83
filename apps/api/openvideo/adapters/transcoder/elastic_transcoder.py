"""AWS Elastic Transcoder adapter."""

from __future__ import annotations

import asyncio

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from openvideo.adapters.transcoder.base import OutputProfile, TranscoderClient, TranscoderError


class ElasticTranscoderClient(TranscoderClient):
    """Submits single-output jobs to a preconfigured Elastic Transcoder pipeline.

    The boto3 client is created on first use so the application can start
    without the transcoder being reachable or configured.
    """

    def __init__(
        self,
        *,
        region: str,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        client=None,
    ) -> None:
        self._region = region
        self._access_key_id = access_key_id
        self._secret_access_key = secret_access_key
        self._client = client

    def _get_client(self):
        if self._client is None:
            self._client = boto3.client(
                "elastictranscoder",
                region_name=self._region,
                aws_access_key_id=self._access_key_id,
                aws_secret_access_key=self._secret_access_key,
            )
        return self._client

    async def submit_job(self, object_key: str, output_key_prefix: str, output_profile: OutputProfile) -> str:
        if not output_profile.pipeline_id:
            raise TranscoderError("Transcoder pipeline is not configured")

        output = {"Key": output_profile.output_key, "PresetId": output_profile.preset_id}
        if output_profile.thumbnail_pattern:
            output["ThumbnailPattern"] = output_profile.thumbnail_pattern

        try:
            response = await asyncio.to_thread(
                self._get_client().create_job,
                PipelineId=output_profile.pipeline_id,
                Input={"Key": object_key},
                OutputKeyPrefix=output_key_prefix,
                Outputs=[output],
            )
        except (BotoCoreError, ClientError) as exc:
            raise TranscoderError(f"Transcoder rejected job: {type(exc).__name__}") from exc

        return str(response.get("Job", {}).get("Id", ""))


__all__ = ["ElasticTranscoderClient"]
