"""SQLAlchemy model for stored documents.

Documents are addressed by their full path; ``collection_path`` is indexed so
a shift's babies can be listed in one query.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String

from shift_guard.phi.db import Base, JSONType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoredDocument(Base):
    __tablename__ = "documents"

    path = Column(String(1024), primary_key=True)
    collection_path = Column(String(1024), nullable=False, index=True)
    doc_id = Column(String(255), nullable=False)

    data = Column(JSONType, nullable=False, default=dict)

    create_time = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    update_time = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


__all__ = ["StoredDocument"]
