"""Pure enforcement decisions for create and update events.

No I/O happens here: the functions scan a record and describe the corrective
action to take. ``EnforcementService`` performs the store and audit writes.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from shift_guard.phi.ports import EnforcementAction, Finding
from shift_guard.phi.profile import ScanProfile


class OutcomeStatus(str, Enum):
    APPROVED = "approved"
    BLOCKED = "blocked"
    ROLLED_BACK = "rolled_back"


@dataclass(frozen=True)
class Outcome:
    status: OutcomeStatus
    findings: tuple[Finding, ...] = field(default_factory=tuple)
    action: EnforcementAction | None = None
    # Full replacement value for a rollback; None for approvals and deletions.
    restore_to: Mapping[str, Any] | None = None
    reason: str | None = None

    @property
    def violated(self) -> bool:
        return self.status is not OutcomeStatus.APPROVED

    @property
    def field_paths(self) -> list[str]:
        return list(dict.fromkeys(finding.field for finding in self.findings))

    @property
    def detectors(self) -> list[str]:
        return list(dict.fromkeys(finding.detector for finding in self.findings))

    def to_marker(self) -> dict[str, Any]:
        """Result returned by the handler: field paths only, never content."""
        if not self.violated:
            return {"status": self.status.value}
        return {
            "status": self.status.value,
            "reason": self.reason,
            "findings": self.field_paths,
        }


def evaluate_create(record: Mapping[str, Any] | None, profile: ScanProfile) -> Outcome:
    findings = tuple(profile.scan(record))
    if not findings:
        return Outcome(status=OutcomeStatus.APPROVED)
    return Outcome(
        status=OutcomeStatus.BLOCKED,
        findings=findings,
        action=EnforcementAction.REJECTED,
        reason="PHI detected",
    )


def evaluate_update(
    new_record: Mapping[str, Any] | None,
    prior_record: Mapping[str, Any] | None,
    profile: ScanProfile,
) -> Outcome:
    """Decide on an update; only the new value is scanned for the verdict.

    A tainted new value rolls back to the prior value verbatim. When the
    prior value is missing or itself tainted, restoring it would keep PHI
    live, so the record is rejected (deleted) instead.
    """
    findings = tuple(profile.scan(new_record))
    if not findings:
        return Outcome(status=OutcomeStatus.APPROVED)

    if prior_record is None or profile.scan(prior_record):
        return Outcome(
            status=OutcomeStatus.BLOCKED,
            findings=findings,
            action=EnforcementAction.REJECTED,
            reason="PHI detected in update; prior version not restorable",
        )

    return Outcome(
        status=OutcomeStatus.ROLLED_BACK,
        findings=findings,
        action=EnforcementAction.ROLLED_BACK,
        restore_to=copy.deepcopy(dict(prior_record)),
        reason="PHI detected in update",
    )


__all__ = ["Outcome", "OutcomeStatus", "evaluate_create", "evaluate_update"]
