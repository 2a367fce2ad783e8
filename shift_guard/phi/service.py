"""EnforcementService applies enforcement outcomes to committed documents.

The decision itself comes from ``shift_guard.phi.enforcement``; this service
issues the corrective write through the document store, then appends the
audit entry. The two writes are sequential, not atomic: an audit failure is
reported but never undoes the corrective action.
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from typing import Any, Callable

from observability.enforcement_metrics import EnforcementMetrics
from observability.logging_config import get_logger
from observability.timing import timed
from shift_guard.common.exceptions import AuditWriteError, CorrectiveActionError, StoreError
from shift_guard.infra.safe_logging import canonical_json, content_digest, safe_log_text
from shift_guard.phi.enforcement import Outcome, OutcomeStatus, evaluate_create, evaluate_update
from shift_guard.phi.ports import (
    AuditEntry,
    AuditTrailPort,
    AuditWriteStatus,
    EnforcementAction,
    Severity,
)
from shift_guard.phi.profile import ScanProfile
from shift_guard.store.base import DocumentChange, DocumentStore
from shift_guard.store.paths import EntityRef

logger = get_logger("phi_enforcement")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def audit_dedupe_key(path: str, value: Any, commit_time: datetime) -> str:
    """Key identifying re-deliveries of one committed write.

    A re-delivered event carries the same path, value and commit time; a
    resubmission of identical content is a new write with a new commit time.
    """
    raw = f"{path}|{content_digest(value)}|{commit_time.isoformat()}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


class EnforcementService:
    """Create and update handlers for entity documents."""

    def __init__(
        self,
        store: DocumentStore,
        audit_trail: AuditTrailPort,
        profile: ScanProfile,
        *,
        entity_kind: str = "baby",
        severity: Severity = Severity.HIGH,
        audit_dedupe: bool = True,
        clock: Callable[[], datetime] | None = None,
    ):
        self._store = store
        self._audit_trail = audit_trail
        self._profile = profile
        self._entity_kind = entity_kind
        self._severity = Severity(severity)
        self._audit_dedupe = audit_dedupe
        self._clock = clock or _utcnow

    @property
    def profile(self) -> ScanProfile:
        return self._profile

    def on_create(self, change: DocumentChange) -> dict[str, Any]:
        with timed(EnforcementMetrics.SCAN_LATENCY, {"trigger": "create"}):
            outcome = evaluate_create(change.after, self._profile)
        return self._apply(change, outcome, trigger="create")

    def on_update(self, change: DocumentChange) -> dict[str, Any]:
        with timed(EnforcementMetrics.SCAN_LATENCY, {"trigger": "update"}):
            outcome = evaluate_update(change.after, change.before, self._profile)
        return self._apply(change, outcome, trigger="update")

    def _apply(self, change: DocumentChange, outcome: Outcome, *, trigger: str) -> dict[str, Any]:
        EnforcementMetrics.record_scan(trigger, outcome.status.value, len(outcome.findings))
        if not outcome.violated:
            logger.info("phi_scan_approved", extra={"path": change.path, "trigger": trigger})
            return outcome.to_marker()

        action = outcome.action or EnforcementAction.REJECTED
        logger.warning(
            "phi_violation_detected",
            extra={
                "path": change.path,
                "trigger": trigger,
                "action": action.value,
                "fields": outcome.field_paths,
                "detectors": outcome.detectors,
                "value": safe_log_text(canonical_json(change.after)),
            },
        )
        EnforcementMetrics.record_violation(action.value, outcome.detectors)

        self._correct(change.path, outcome, action)

        marker = outcome.to_marker()
        marker["audit"] = self._record(change, outcome, action).value
        return marker

    def _correct(self, path: str, outcome: Outcome, action: EnforcementAction) -> None:
        try:
            if outcome.status is OutcomeStatus.ROLLED_BACK and outcome.restore_to is not None:
                self._store.set(path, outcome.restore_to)
            else:
                self._store.delete(path)
        except StoreError as exc:
            logger.error(
                "phi_corrective_action_failed",
                extra={"path": path, "action": action.value, "error_type": type(exc).__name__},
            )
            EnforcementMetrics.record_corrective_action_failure(action.value)
            raise CorrectiveActionError(
                f"corrective {action.value} failed for {path}", action=action.value, path=path
            ) from exc

    def _record(self, change: DocumentChange, outcome: Outcome, action: EnforcementAction) -> AuditWriteStatus:
        ref = EntityRef.from_params(change.params)
        entry = AuditEntry(
            scope_id=ref.scope_id,
            owner_id=ref.owner_id,
            shift_id=ref.shift_id,
            entity_id=ref.entity_id,
            entity_kind=self._entity_kind,
            action=action,
            severity=self._severity,
            timestamp=self._clock(),
            findings=outcome.findings,
            document_path=change.path,
            dedupe_key=(
                audit_dedupe_key(change.path, change.after, change.commit_time)
                if self._audit_dedupe
                else None
            ),
        )
        try:
            status = self._audit_trail.append(entry)
        except AuditWriteError as exc:
            logger.error(
                "phi_audit_write_failed",
                extra={"path": change.path, "action": action.value, "error": str(exc)},
            )
            EnforcementMetrics.record_audit_write_failure(action.value)
            return AuditWriteStatus.FAILED

        if status is AuditWriteStatus.DUPLICATE:
            logger.info("phi_audit_duplicate_suppressed", extra={"path": change.path})
            EnforcementMetrics.record_audit_duplicate(action.value)
        return status


__all__ = ["EnforcementService", "audit_dedupe_key"]
