"""Storage object key layout for uploads and transcoded output."""

import posixpath
import re
from uuid import UUID

_FILENAME_PATTERN = re.compile(r"^[ \w-]+?(?=\.)")


def is_builder_id(value: str) -> bool:
    try:
        UUID(value)
    except (TypeError, ValueError):
        return False
    return True


def upload_object_key(builder_id: str, *, prefix: str, extension: str) -> str:
    return f"{prefix}{builder_id}{extension}"


def transcoded_key_prefix(builder_id: str, *, prefix: str) -> str:
    return f"{prefix}{builder_id}/"


def builder_id_from_object_key(object_key: str) -> str | None:
    """Recover the builder id from the filename component of an object key.

    Returns ``None`` when the filename has no extension or is not a builder id.
    """
    match = _FILENAME_PATTERN.match(posixpath.basename(object_key or ""))
    if match is None:
        return None
    candidate = match.group(0)
    return candidate if is_builder_id(candidate) else None


def media_url(base_url: str, key: str) -> str:
    return f"{base_url.rstrip('/')}/{key.lstrip('/')}"


def thumbnail_key(output_key_prefix: str, thumbnail_pattern: str | None) -> str | None:
    """Key of the first thumbnail the transcoder writes for an output."""
    if not thumbnail_pattern:
        return None
    return f"{output_key_prefix}{thumbnail_pattern.replace('{count}', '00001')}.png"
