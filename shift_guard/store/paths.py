"""Owner-scoped document paths.

Layout: ``artifacts/{scopeId}/users/{ownerId}/nicu_shifts/{shiftId}/babies/{babyId}``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

SHIFTS_COLLECTION = "nicu_shifts"
BABIES_COLLECTION = "babies"


def user_root(scope_id: str, owner_id: str) -> str:
    return f"artifacts/{scope_id}/users/{owner_id}"


def shifts_collection(scope_id: str, owner_id: str) -> str:
    return f"{user_root(scope_id, owner_id)}/{SHIFTS_COLLECTION}"


def shift_path(scope_id: str, owner_id: str, shift_id: str) -> str:
    return f"{shifts_collection(scope_id, owner_id)}/{shift_id}"


def babies_collection(scope_id: str, owner_id: str, shift_id: str) -> str:
    return f"{shift_path(scope_id, owner_id, shift_id)}/{BABIES_COLLECTION}"


def baby_path(scope_id: str, owner_id: str, shift_id: str, baby_id: str) -> str:
    return f"{babies_collection(scope_id, owner_id, shift_id)}/{baby_id}"


def split_document_path(path: str) -> tuple[str, str]:
    """Return (collection path, document id); raises ValueError for collection paths."""
    segments = path.strip("/").split("/")
    if len(segments) < 2 or len(segments) % 2 or any(not segment for segment in segments):
        raise ValueError(f"not a document path: {path!r}")
    return "/".join(segments[:-1]), segments[-1]


@dataclass(frozen=True)
class EntityRef:
    """Subject identifiers of one entity document, taken from trigger params."""

    scope_id: str
    owner_id: str
    shift_id: str
    entity_id: str

    @classmethod
    def from_params(cls, params: Mapping[str, str]) -> "EntityRef":
        return cls(
            scope_id=params.get("appId", ""),
            owner_id=params.get("userId", ""),
            shift_id=params.get("shiftId", ""),
            entity_id=params.get("babyId", ""),
        )


__all__ = [
    "BABIES_COLLECTION",
    "EntityRef",
    "SHIFTS_COLLECTION",
    "babies_collection",
    "baby_path",
    "shift_path",
    "shifts_collection",
    "split_document_path",
    "user_root",
]
