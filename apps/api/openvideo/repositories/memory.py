"""In-memory repositories used by the ingestion service and tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from openvideo.domain.builder_fsm import ensure_transition, is_terminal
from openvideo.schemas.builder import BuilderStatus


@dataclass(slots=True)
class BuilderRecord:
    id: str
    owner_username: str
    status: BuilderStatus
    started_at: datetime
    updated_at: datetime | None = None


@dataclass(slots=True)
class VideoRecord:
    id: str
    owner_username: str
    object_key: str
    src: str
    thumbnail: str | None
    created_at: datetime


@dataclass(slots=True)
class LandedObjectRecord:
    builder_id: str
    object_key: str
    first_seen_at: datetime
    deliveries: int = 1


@dataclass(slots=True)
class InMemoryStore:
    """Deterministic persistence layer for builders and finalized videos.

    Every mutation is a read followed by a conditional write so the same calls
    map onto a store without a transaction API.
    """

    builders: dict[str, BuilderRecord] = field(default_factory=dict)
    videos: dict[str, VideoRecord] = field(default_factory=dict)
    landed_objects: dict[str, LandedObjectRecord] = field(default_factory=dict)
    builder_write_count: int = 0
    video_write_count: int = 0

    def reap_and_count_active_builders(self, *, owner_username: str, stale_before: datetime) -> tuple[int, list[str]]:
        """Count the owner's unfinished builders, deleting abandoned ones in the same pass.

        INITIATED builders started before ``stale_before`` are deleted. UPLOADED
        builders that old are kept but no longer count against the owner.
        """
        active = 0
        reaped: list[str] = []
        for record in list(self.builders.values()):
            if record.owner_username != owner_username or is_terminal(record.status):
                continue
            if record.started_at < stale_before:
                if record.status is BuilderStatus.INITIATED:
                    self.delete_builder(record.id)
                    reaped.append(record.id)
                continue
            active += 1
        return active, reaped

    def create_builder(self, owner_username: str) -> BuilderRecord:
        now = datetime.now(UTC)
        builder = BuilderRecord(
            id=str(uuid4()),
            owner_username=owner_username,
            status=BuilderStatus.INITIATED,
            started_at=now,
            updated_at=now,
        )
        self.builders[builder.id] = builder
        self.builder_write_count += 1
        return builder

    def get_builder(self, builder_id: str) -> BuilderRecord | None:
        return self.builders.get(builder_id)

    def delete_builder(self, builder_id: str) -> bool:
        self.landed_objects.pop(builder_id, None)
        if self.builders.pop(builder_id, None) is None:
            return False
        self.builder_write_count += 1
        return True

    def transition_builder_status(self, *, builder: BuilderRecord, new_status: BuilderStatus) -> None:
        """Apply an FSM-validated status mutation with consistent write bookkeeping."""
        ensure_transition(builder.status, new_status)
        builder.status = new_status
        builder.updated_at = datetime.now(UTC)
        self.builder_write_count += 1

    def record_landed_object(self, *, builder_id: str, object_key: str) -> LandedObjectRecord:
        existing = self.landed_objects.get(builder_id)
        if existing is not None:
            existing.deliveries += 1
            return existing

        landed = LandedObjectRecord(
            builder_id=builder_id,
            object_key=object_key,
            first_seen_at=datetime.now(UTC),
        )
        self.landed_objects[builder_id] = landed
        return landed

    def get_video(self, video_id: str) -> VideoRecord | None:
        return self.videos.get(video_id)

    def finalize_transcoded_builder(
        self,
        *,
        builder: BuilderRecord,
        object_key: str,
        src: str,
        thumbnail: str | None,
    ) -> VideoRecord | None:
        """Mark the builder TRANSCODED and create its Video unless one already exists.

        Returns the created video, or ``None`` when a video for this builder was
        already finalized.
        """
        if builder.id in self.videos:
            return None

        self.transition_builder_status(builder=builder, new_status=BuilderStatus.TRANSCODED)
        self.landed_objects.pop(builder.id, None)
        video = VideoRecord(
            id=builder.id,
            owner_username=builder.owner_username,
            object_key=object_key,
            src=src,
            thumbnail=thumbnail,
            created_at=datetime.now(UTC),
        )
        self.videos[video.id] = video
        self.video_write_count += 1
        return video
