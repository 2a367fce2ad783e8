"""Domain types and ports for PHI enforcement.

Findings and audit entries never carry raw matched text; only redacted
samples produced by the scanner.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class EnforcementAction(str, Enum):
    REJECTED = "rejected"
    ROLLED_BACK = "rolled-back"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AuditWriteStatus(str, Enum):
    APPENDED = "appended"
    DUPLICATE = "duplicate"
    FAILED = "failed"


@dataclass(frozen=True)
class Finding:
    """One detector's surviving matches on one field of a record."""

    field: str
    detector: str
    count: int
    sample: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "detector": self.detector,
            "count": self.count,
            "sample": self.sample,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Finding":
        return cls(
            field=str(payload.get("field", "")),
            detector=str(payload.get("detector", "")),
            count=int(payload.get("count", 0)),
            sample=str(payload.get("sample", "")),
        )


@dataclass(frozen=True)
class AuditEntry:
    """Immutable description of one enforcement action."""

    scope_id: str
    owner_id: str
    shift_id: str
    entity_id: str
    entity_kind: str
    action: EnforcementAction
    severity: Severity
    timestamp: datetime
    findings: tuple[Finding, ...] = field(default_factory=tuple)
    document_path: str | None = None
    dedupe_key: str | None = None

    def to_record(self) -> dict[str, Any]:
        """Render using the audit collection schema."""
        return {
            "scopeId": self.scope_id,
            "ownerId": self.owner_id,
            "shiftId": self.shift_id,
            "entityId": self.entity_id,
            "entityKind": self.entity_kind,
            "timestampServer": self.timestamp.isoformat(),
            "findings": [finding.to_dict() for finding in self.findings],
            "action": self.action.value,
            "severity": self.severity.value,
        }


@runtime_checkable
class AuditTrailPort(Protocol):
    """Append-only sink for audit entries."""

    def append(self, entry: AuditEntry) -> AuditWriteStatus:
        """Persist one entry.

        Returns APPENDED, or DUPLICATE when an entry with the same dedupe key
        already exists. Raises AuditWriteError when the write fails.
        """

    def list_entries(
        self,
        *,
        scope_id: str | None = None,
        owner_id: str | None = None,
        limit: int = 100,
    ) -> list[AuditEntry]:
        """Return the most recent entries first."""


__all__ = [
    "AuditEntry",
    "AuditTrailPort",
    "AuditWriteStatus",
    "EnforcementAction",
    "Finding",
    "Severity",
]
