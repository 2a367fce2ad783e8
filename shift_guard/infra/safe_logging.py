"""PHI-safe logging helpers."""

from __future__ import annotations

import hashlib
import json
from typing import Any


def safe_log_text(text: str | None) -> str:
    """Return a PHI-safe representation of an arbitrary text blob.

    Only a short hash and the length are returned, so logs can correlate
    repeated inputs without storing PHI.
    """
    normalized = (text or "").strip()
    if not normalized:
        return "<empty>"
    digest = hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:12]
    return f"<sha256={digest} len={len(normalized)}>"


def canonical_json(value: Any) -> str:
    """Stable JSON rendering used for content hashing (sorted keys, str fallback)."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


def content_digest(value: Any) -> str:
    return hashlib.sha256(canonical_json(value).encode("utf-8")).hexdigest()


__all__ = ["canonical_json", "content_digest", "safe_log_text"]
