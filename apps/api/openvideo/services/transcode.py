"""Transcode job submission."""

import logging

from openvideo.adapters.transcoder.base import OutputProfile, TranscoderClient, TranscoderError
from openvideo.domain.object_keys import builder_id_from_object_key, transcoded_key_prefix

logger = logging.getLogger(__name__)


class TranscodeDispatcher:
    """Submits one transcoding job per uploaded object, without retrying."""

    def __init__(self, client: TranscoderClient, *, output_profile: OutputProfile, output_prefix: str) -> None:
        self._client = client
        self._output_profile = output_profile
        self._output_prefix = output_prefix

    async def submit(self, object_key: str) -> bool:
        builder_id = builder_id_from_object_key(object_key)
        if builder_id is None:
            logger.warning("transcode.rejected object_key=%s reason=unrecognized_object_key", object_key)
            return False

        output_key_prefix = transcoded_key_prefix(builder_id, prefix=self._output_prefix)
        try:
            job_id = await self._client.submit_job(object_key, output_key_prefix, self._output_profile)
        except TranscoderError as exc:
            logger.warning(
                "transcode.submit_failed builder_id=%s object_key=%s reason=%s",
                builder_id,
                object_key,
                exc,
            )
            return False

        logger.info(
            "transcode.submitted builder_id=%s job_id=%s output_key_prefix=%s",
            builder_id,
            job_id,
            output_key_prefix,
        )
        return True
