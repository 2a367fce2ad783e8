"""Allow-list data and the finding filter.

The allow-list is data, not code: it is loaded from a versioned JSON file so
vocabulary can be extended without touching scan logic. Only the name-like
detector is filtered; every other detector passes through unchanged.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from shift_guard.phi.patterns import NAME_LIKE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllowList:
    version: str = "builtin"
    name_like_substrings: tuple[str, ...] = ()
    name_like_prefixes: tuple[str, ...] = ()
    institutional_email_domains: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, payload: dict) -> "AllowList":
        name_like = payload.get("name_like") or {}
        return cls(
            version=str(payload.get("version", "unversioned")),
            name_like_substrings=_lowered(name_like.get("substrings", ())),
            name_like_prefixes=_lowered(name_like.get("prefixes", ())),
            institutional_email_domains=_lowered(payload.get("institutional_email_domains", ())),
        )

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "name_like": {
                "substrings": list(self.name_like_substrings),
                "prefixes": list(self.name_like_prefixes),
            },
            "institutional_email_domains": list(self.institutional_email_domains),
        }


def _lowered(values: Iterable[str]) -> tuple[str, ...]:
    # Prefixes keep trailing whitespace ("baby "), so only lowercase here.
    return tuple(str(value).lower() for value in values if str(value).strip())


DEFAULT_ALLOW_LIST = AllowList(
    version="builtin-v1",
    name_like_substrings=("room", "blood", "heart", "isolette", "nursery"),
    name_like_prefixes=("baby ",),
    institutional_email_domains=("hospital", "healthsystem", "medical", "nicu"),
)


def load_allow_list(path: Path | str | None) -> AllowList:
    """Load an allow-list file, falling back to the built-in list when absent.

    A file that exists but cannot be parsed is a configuration error and raises.
    """
    if path is None:
        return DEFAULT_ALLOW_LIST
    path = Path(path)
    if not path.exists():
        logger.warning(
            "phi_allow_list_missing",
            extra={"allow_list_path": str(path), "fallback_version": DEFAULT_ALLOW_LIST.version},
        )
        return DEFAULT_ALLOW_LIST
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"allow-list must be a JSON object: {path}")
    allow_list = AllowList.from_dict(payload)
    logger.info("phi_allow_list_loaded", extra={"allow_list_version": allow_list.version})
    return allow_list


def is_suppressed_name(match: str, allow_list: AllowList) -> bool:
    lowered = match.lower()
    if any(term in lowered for term in allow_list.name_like_substrings):
        return True
    return any(lowered.startswith(prefix) for prefix in allow_list.name_like_prefixes)


def filter_matches(detector_name: str, matches: list[str], allow_list: AllowList) -> list[str]:
    """Drop known false positives for one detector on one scalar value."""
    if detector_name != NAME_LIKE:
        return matches
    return [match for match in matches if not is_suppressed_name(match, allow_list)]


__all__ = [
    "AllowList",
    "DEFAULT_ALLOW_LIST",
    "filter_matches",
    "is_suppressed_name",
    "load_allow_list",
]
