"""PHI detection and enforcement."""

from shift_guard.phi.enforcement import Outcome, OutcomeStatus, evaluate_create, evaluate_update
from shift_guard.phi.ports import (
    AuditEntry,
    AuditTrailPort,
    AuditWriteStatus,
    EnforcementAction,
    Finding,
    Severity,
)
from shift_guard.phi.profile import ScanProfile, build_scan_profile, profile_from_allow_list

__all__ = [
    "AuditEntry",
    "AuditTrailPort",
    "AuditWriteStatus",
    "EnforcementAction",
    "Finding",
    "Outcome",
    "OutcomeStatus",
    "ScanProfile",
    "Severity",
    "build_scan_profile",
    "evaluate_create",
    "evaluate_update",
    "profile_from_allow_list",
]
