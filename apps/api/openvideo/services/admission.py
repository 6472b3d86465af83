"""Upload admission service layer."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
import logging

from openvideo.adapters.storage.base import UploadTargetError, UploadTargetIssuer
from openvideo.core.logging_safety import safe_log_identifier
from openvideo.domain.object_keys import upload_object_key
from openvideo.errors import RateLimitError, UpstreamError, ValidationError
from openvideo.repositories.memory import InMemoryStore
from openvideo.schemas.builder import UploadableVideo

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UploadPolicy:
    max_concurrent_uploads: int = 3
    stale_after: timedelta = timedelta(minutes=30)
    key_prefix: str = "uploads/"
    key_extension: str = ".mp4"
    content_type: str = "video/mp4"
    url_expiry_seconds: int = 600

    def object_key_for(self, builder_id: str) -> str:
        return upload_object_key(builder_id, prefix=self.key_prefix, extension=self.key_extension)


class AdmissionService:
    def __init__(self, store: InMemoryStore, storage: UploadTargetIssuer, policy: UploadPolicy) -> None:
        self._store = store
        self._storage = storage
        self._policy = policy

    async def request_upload(self, *, owner_username: str) -> UploadableVideo:
        if not owner_username or not owner_username.strip():
            raise ValidationError("Invalid username")

        safe_owner = safe_log_identifier(owner_username, prefix="uid")
        # Count and create are separate writes; concurrent requests may both pass the check.
        active, reaped = self._store.reap_and_count_active_builders(
            owner_username=owner_username,
            stale_before=datetime.now(UTC) - self._policy.stale_after,
        )
        if reaped:
            logger.info("admission.reaped owner=%s builder_ids=%s", safe_owner, ",".join(reaped))

        if active >= self._policy.max_concurrent_uploads:
            logger.info(
                "admission.rejected owner=%s code=TOO_MANY_CONCURRENT_UPLOADS active=%s limit=%s",
                safe_owner,
                active,
                self._policy.max_concurrent_uploads,
            )
            raise RateLimitError(
                "Too many concurrent uploads",
                details={"active_uploads": active, "limit": self._policy.max_concurrent_uploads},
            )

        builder = self._store.create_builder(owner_username)
        object_key = self._policy.object_key_for(builder.id)
        try:
            upload_url = await self._storage.issue_upload_target(
                object_key,
                self._policy.url_expiry_seconds,
                self._policy.content_type,
            )
        except UploadTargetError as exc:
            # The INITIATED builder is left for the staleness reaper.
            logger.warning(
                "admission.upload_target_failed owner=%s builder_id=%s reason=%s",
                safe_owner,
                builder.id,
                type(exc).__name__,
            )
            raise UpstreamError(
                "Failed to issue upload target",
                code="UPLOAD_TARGET_FAILED",
                details={"builder_id": builder.id},
            ) from exc

        logger.info("admission.accepted owner=%s builder_id=%s active=%s", safe_owner, builder.id, active + 1)
        return UploadableVideo(id=builder.id, upload_url=upload_url, status=builder.status)
