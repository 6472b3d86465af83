"""Builder lifecycle driver.

Builders move INITIATED -> UPLOADED when their owner confirms the upload, and
UPLOADED -> TRANSCODED when a verified transcode-complete notification arrives.
Notification handlers never raise for stale or duplicate deliveries; they log
and report whether anything was applied.
"""

from collections.abc import Sequence
from datetime import UTC, datetime
import logging

from openvideo.core.logging_safety import safe_log_identifier
from openvideo.domain.object_keys import builder_id_from_object_key, is_builder_id, media_url, thumbnail_key
from openvideo.errors import AuthenticationError, NotFoundError, StateConflictError, UpstreamError, ValidationError
from openvideo.repositories.memory import BuilderRecord, InMemoryStore, VideoRecord
from openvideo.schemas.auth import AuthPrincipal
from openvideo.schemas.builder import Builder, BuilderStatus, UploadableVideo
from openvideo.schemas.notification import TranscodeOutput
from openvideo.schemas.video import Video
from openvideo.services.admission import UploadPolicy
from openvideo.services.transcode import TranscodeDispatcher

logger = logging.getLogger(__name__)


class PipelineService:
    def __init__(
        self,
        store: InMemoryStore,
        dispatcher: TranscodeDispatcher,
        policy: UploadPolicy,
        *,
        media_base_url: str,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._policy = policy
        self._media_base_url = media_base_url

    def get_builder(self, *, principal: AuthPrincipal | None, builder_id: str) -> Builder:
        record = self._owned_builder(principal=principal, builder_id=builder_id)
        return Builder(
            id=record.id,
            status=record.status,
            started_at=record.started_at,
            updated_at=record.updated_at,
            video_id=record.id if record.id in self._store.videos else None,
        )

    def get_video(self, *, video_id: str) -> Video:
        record = self._store.get_video(video_id) if is_builder_id(video_id) else None
        if record is None:
            raise NotFoundError("Resource not found")
        return _to_video(record)

    async def handle_upload_accepted(self, *, principal: AuthPrincipal | None, builder_id: str) -> UploadableVideo:
        builder = self._owned_builder(principal=principal, builder_id=builder_id)

        if builder.status is BuilderStatus.INITIATED and self._is_stale(builder):
            self._store.delete_builder(builder.id)
            logger.info("pipeline.expired builder_id=%s started_at=%s", builder.id, builder.started_at.isoformat())
            raise StateConflictError(
                "Upload window has expired",
                code="BUILDER_EXPIRED",
                details={"builder_id": builder.id},
            )

        previous_status = builder.status
        self._store.transition_builder_status(builder=builder, new_status=BuilderStatus.UPLOADED)
        logger.info(
            "pipeline.transition builder_id=%s prev_status=%s new_status=%s",
            builder.id,
            previous_status,
            builder.status,
        )

        # UPLOADED is kept even when dispatch fails.
        object_key = self._policy.object_key_for(builder.id)
        if not await self._dispatcher.submit(object_key):
            raise UpstreamError(
                "Failed to dispatch transcoding job",
                code="TRANSCODE_DISPATCH_FAILED",
                details={"builder_id": builder.id, "current_status": builder.status},
            )

        return UploadableVideo(id=builder.id, status=builder.status)

    def handle_upload_complete_event(self, object_key: str) -> bool:
        """Record that a raw upload landed in storage. Returns True on first sighting."""
        builder_id = builder_id_from_object_key(object_key)
        if builder_id is None:
            logger.warning("pipeline.upload_event_ignored object_key=%s reason=unrecognized_object_key", object_key)
            return False

        builder = self._store.get_builder(builder_id)
        if builder is None:
            logger.info("pipeline.upload_event_ignored builder_id=%s reason=unknown_builder", builder_id)
            return False
        if builder.status is BuilderStatus.TRANSCODED:
            logger.info("pipeline.upload_event_ignored builder_id=%s reason=already_transcoded", builder_id)
            return False

        landed = self._store.record_landed_object(builder_id=builder_id, object_key=object_key)
        logger.info(
            "pipeline.upload_landed builder_id=%s status=%s deliveries=%s",
            builder_id,
            builder.status,
            landed.deliveries,
        )
        return landed.deliveries == 1

    def handle_transcode_complete_event(
        self,
        *,
        builder_id: str,
        output_key_prefix: str,
        outputs: Sequence[TranscodeOutput],
    ) -> Video | None:
        """Finalize a builder from a transcode-complete notification.

        Returns the created video, or ``None`` when the event was rejected or
        already applied.
        """
        if len(outputs) != 1:
            logger.warning(
                "pipeline.transcode_event_ignored builder_id=%s reason=unsupported_output_count outputs=%s",
                builder_id,
                len(outputs),
            )
            return None

        builder = self._store.get_builder(builder_id)
        if builder is None:
            logger.info("pipeline.transcode_event_ignored builder_id=%s reason=unknown_builder", builder_id)
            return None
        if builder.status is not BuilderStatus.UPLOADED:
            logger.info(
                "pipeline.transcode_event_ignored builder_id=%s reason=stale_or_duplicate status=%s",
                builder_id,
                builder.status,
            )
            return None

        output = outputs[0]
        thumbnail = thumbnail_key(output_key_prefix, output.thumbnail_pattern)
        video = self._store.finalize_transcoded_builder(
            builder=builder,
            object_key=self._policy.object_key_for(builder.id),
            src=media_url(self._media_base_url, f"{output_key_prefix}{output.key}"),
            thumbnail=media_url(self._media_base_url, thumbnail) if thumbnail else None,
        )
        if video is None:
            logger.info("pipeline.transcode_event_ignored builder_id=%s reason=video_exists", builder_id)
            return None

        logger.info(
            "pipeline.finalized builder_id=%s owner=%s src=%s",
            builder_id,
            safe_log_identifier(builder.owner_username, prefix="uid"),
            video.src,
        )
        return _to_video(video)

    def _owned_builder(self, *, principal: AuthPrincipal | None, builder_id: str) -> BuilderRecord:
        if principal is None:
            raise AuthenticationError("Authentication required")
        if not is_builder_id(builder_id):
            raise ValidationError("Invalid upload id", details={"builder_id": builder_id})

        builder = self._store.get_builder(builder_id)
        if builder is None:
            raise NotFoundError("Resource not found")
        if builder.owner_username != principal.username:
            logger.warning(
                "pipeline.auth_rejected builder_id=%s caller=%s reason=not_owner",
                builder_id,
                safe_log_identifier(principal.username, prefix="uid"),
            )
            raise AuthenticationError("Upload belongs to another user")
        return builder

    def _is_stale(self, builder: BuilderRecord) -> bool:
        return builder.started_at < datetime.now(UTC) - self._policy.stale_after


def _to_video(record: VideoRecord) -> Video:
    return Video(
        id=record.id,
        owner_username=record.owner_username,
        object_key=record.object_key,
        src=record.src,
        thumbnail=record.thumbnail,
        created_at=record.created_at,
    )
