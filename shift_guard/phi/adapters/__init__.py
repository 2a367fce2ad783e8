"""Adapters for the audit trail port."""

from shift_guard.phi.adapters.audit_trail_db import DatabaseAuditTrail
from shift_guard.phi.adapters.audit_trail_memory import InMemoryAuditTrail

__all__ = ["DatabaseAuditTrail", "InMemoryAuditTrail"]
