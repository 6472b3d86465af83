"""Utilities for safe structured logging fields."""

from __future__ import annotations

import hashlib
from typing import Any


def safe_log_identifier(value: Any, *, prefix: str, length: int = 12) -> str:
    """Return a deterministic non-reversible token standing in for a caller-linked value."""
    text = str(value or "").strip()
    if not text:
        return f"{prefix}-missing"

    return f"{prefix}-{hashlib.sha256(text.encode('utf-8')).hexdigest()[:length]}"
