"""Database-backed audit trail for PHI enforcement actions.

Each append runs in its own session so a failure here can never roll back
the corrective write that preceded it.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from shift_guard.common.exceptions import AuditWriteError
from shift_guard.phi.models import PHIViolation
from shift_guard.phi.ports import (
    AuditEntry,
    AuditTrailPort,
    AuditWriteStatus,
    EnforcementAction,
    Finding,
    Severity,
)


class DatabaseAuditTrail(AuditTrailPort):
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def append(self, entry: AuditEntry) -> AuditWriteStatus:
        row = PHIViolation(
            scope_id=entry.scope_id,
            owner_id=entry.owner_id,
            shift_id=entry.shift_id,
            entity_id=entry.entity_id,
            entity_kind=entry.entity_kind,
            document_path=entry.document_path,
            timestamp_server=entry.timestamp,
            findings=[finding.to_dict() for finding in entry.findings],
            action=entry.action.value,
            severity=entry.severity.value,
            dedupe_key=entry.dedupe_key,
        )
        try:
            with self._session_factory() as session:
                session.add(row)
                try:
                    session.commit()
                except IntegrityError:
                    session.rollback()
                    if entry.dedupe_key and self._exists(session, entry.dedupe_key):
                        return AuditWriteStatus.DUPLICATE
                    raise
        except SQLAlchemyError as exc:
            raise AuditWriteError(f"audit append failed: {type(exc).__name__}") from exc
        return AuditWriteStatus.APPENDED

    @staticmethod
    def _exists(session, dedupe_key: str) -> bool:
        stmt = select(PHIViolation.id).where(PHIViolation.dedupe_key == dedupe_key)
        return session.execute(stmt).first() is not None

    def list_entries(
        self,
        *,
        scope_id: str | None = None,
        owner_id: str | None = None,
        limit: int = 100,
    ) -> list[AuditEntry]:
        stmt = select(PHIViolation).order_by(PHIViolation.timestamp_server.desc()).limit(limit)
        if scope_id is not None:
            stmt = stmt.where(PHIViolation.scope_id == scope_id)
        if owner_id is not None:
            stmt = stmt.where(PHIViolation.owner_id == owner_id)
        with self._session_factory() as session:
            return [_to_entry(row) for row in session.scalars(stmt)]


def _to_entry(row: PHIViolation) -> AuditEntry:
    return AuditEntry(
        scope_id=row.scope_id,
        owner_id=row.owner_id,
        shift_id=row.shift_id,
        entity_id=row.entity_id,
        entity_kind=row.entity_kind,
        action=EnforcementAction(row.action),
        severity=Severity(row.severity),
        timestamp=row.timestamp_server,
        findings=tuple(Finding.from_dict(item) for item in row.findings or []),
        document_path=row.document_path,
        dedupe_key=row.dedupe_key,
    )


__all__ = ["DatabaseAuditTrail"]
