"""Structural scanner for nested records.

Records are walked as an explicit tagged variant (object | list | text |
other). Traversal is depth-first in field insertion order, then list index
order, so the same record always yields the same ordered findings.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from shift_guard.phi.allowlist import AllowList, filter_matches
from shift_guard.phi.patterns import PatternLibrary
from shift_guard.phi.ports import Finding

DEFAULT_EXCLUDED_FIELDS = frozenset({"createdAt", "updatedAt"})

_MASKABLE_RE = re.compile(r"[A-Za-z0-9]")


class NodeKind(Enum):
    OBJECT = "object"
    LIST = "list"
    TEXT = "text"
    OTHER = "other"


def classify(value: Any) -> NodeKind:
    if isinstance(value, str):
        return NodeKind.TEXT
    if isinstance(value, Mapping):
        return NodeKind.OBJECT
    if isinstance(value, (list, tuple)):
        return NodeKind.LIST
    return NodeKind.OTHER


Segment = Union[str, int]


@dataclass(frozen=True)
class FieldPath:
    """Path into a record, rendered as ``a.b[0].c``."""

    segments: tuple[Segment, ...] = ()

    def child(self, key: str) -> "FieldPath":
        return FieldPath(self.segments + (key,))

    def index(self, position: int) -> "FieldPath":
        return FieldPath(self.segments + (position,))

    def __str__(self) -> str:
        rendered = ""
        for segment in self.segments:
            if isinstance(segment, int):
                rendered += f"[{segment}]"
            elif rendered:
                rendered += f".{segment}"
            else:
                rendered = segment
        return rendered


def iter_text_fields(
    record: Any,
    excluded_fields: frozenset[str] = DEFAULT_EXCLUDED_FIELDS,
) -> Iterator[tuple[FieldPath, str]]:
    """Yield every reachable string field exactly once with its path.

    A root that is not a mapping yields nothing.
    """
    if classify(record) is not NodeKind.OBJECT:
        return
    yield from _walk(record, FieldPath(), excluded_fields)


def _walk(node: Any, path: FieldPath, excluded_fields: frozenset[str]) -> Iterator[tuple[FieldPath, str]]:
    kind = classify(node)
    if kind is NodeKind.TEXT:
        yield path, node
    elif kind is NodeKind.OBJECT:
        for key, value in node.items():
            key = str(key)
            if key in excluded_fields:
                continue
            yield from _walk(value, path.child(key), excluded_fields)
    elif kind is NodeKind.LIST:
        for position, item in enumerate(node):
            yield from _walk(item, path.index(position), excluded_fields)
    # NodeKind.OTHER: numbers, booleans, None, timestamps are never scanned


def redact_sample(text: str, *, max_chars: int = 20, reveal_chars: int = 4) -> str:
    """Return a short, non-reversible rendering of a match for human review.

    The first ``reveal_chars`` characters stay, remaining letters and digits
    become ``*`` and separators are kept so the shape stays recognisable.
    """
    masked = text[:reveal_chars] + _MASKABLE_RE.sub("*", text[reveal_chars:])
    if len(masked) <= max_chars:
        return masked
    return masked[: max(0, max_chars - 3)] + "..."


def scan_text(text: str, library: PatternLibrary, allow_list: AllowList) -> list[tuple[str, list[str]]]:
    """Run every detector on one string; return (detector, surviving matches) pairs."""
    results: list[tuple[str, list[str]]] = []
    for detector in library:
        matches = filter_matches(detector.name, detector.find(text), allow_list)
        if matches:
            results.append((detector.name, matches))
    return results


def scan_record(
    record: Any,
    library: PatternLibrary,
    allow_list: AllowList,
    *,
    excluded_fields: frozenset[str] = DEFAULT_EXCLUDED_FIELDS,
    sample_max_chars: int = 20,
    sample_reveal_chars: int = 4,
) -> list[Finding]:
    findings: list[Finding] = []
    for path, text in iter_text_fields(record, excluded_fields):
        for detector_name, matches in scan_text(text, library, allow_list):
            findings.append(
                Finding(
                    field=str(path),
                    detector=detector_name,
                    count=len(matches),
                    sample=redact_sample(
                        matches[0], max_chars=sample_max_chars, reveal_chars=sample_reveal_chars
                    ),
                )
            )
    return findings


__all__ = [
    "DEFAULT_EXCLUDED_FIELDS",
    "FieldPath",
    "NodeKind",
    "classify",
    "iter_text_fields",
    "redact_sample",
    "scan_record",
    "scan_text",
]
