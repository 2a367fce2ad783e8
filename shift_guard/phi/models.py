"""PHI violation audit trail model.

Rows are append-only: the application inserts them and never updates or
deletes them. Only redacted samples are stored, never matched text.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String

from shift_guard.phi.db import Base, JSONType, UUIDType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PHIViolation(Base):
    """One enforcement action taken against a document."""

    __tablename__ = "phi_violations"

    id = Column(UUIDType, primary_key=True, default=uuid.uuid4)

    scope_id = Column(String(255), nullable=False, index=True)
    owner_id = Column(String(255), nullable=False, index=True)
    shift_id = Column(String(255), nullable=False)
    entity_id = Column(String(255), nullable=False)
    entity_kind = Column(String(50), nullable=False)
    document_path = Column(String(1024), nullable=True)

    timestamp_server = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    findings = Column(JSONType, nullable=False, default=list)
    action = Column(String(32), nullable=False)
    severity = Column(String(16), nullable=False)

    # sha256(document path | new value digest | commit time); NULL disables dedupe
    dedupe_key = Column(String(64), nullable=True, unique=True)


__all__ = ["PHIViolation"]
