"""SQLAlchemy-backed implementation of the DocumentStore interface.

Writes are serialized per store instance, so one process sees a consistent
prior version; several processes sharing a database are not coordinated.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from shift_guard.common.exceptions import StoreError
from shift_guard.store.base import DocumentStore
from shift_guard.store.models import StoredDocument
from shift_guard.store.paths import split_document_path


class SqlDocumentStore(DocumentStore):
    """Each primitive runs in its own short session and commits immediately."""

    def __init__(self, session_factory: sessionmaker, clock=None):
        super().__init__(clock=clock)
        self._session_factory = session_factory

    def _read(self, path: str) -> dict[str, Any] | None:
        try:
            with self._session_factory() as session:
                row = session.get(StoredDocument, path.strip("/"))
                return dict(row.data) if row is not None else None
        except SQLAlchemyError as exc:
            raise StoreError(f"read failed: {exc}", operation="read", path=path) from exc

    def _write(self, path: str, data: dict[str, Any], *, commit_time: datetime) -> None:
        path = path.strip("/")
        collection_path, doc_id = split_document_path(path)
        try:
            with self._session_factory() as session:
                row = session.get(StoredDocument, path)
                if row is None:
                    row = StoredDocument(
                        path=path,
                        collection_path=collection_path,
                        doc_id=doc_id,
                        create_time=commit_time,
                    )
                    session.add(row)
                row.data = data
                row.update_time = commit_time
                session.commit()
        except SQLAlchemyError as exc:
            raise StoreError(f"write failed: {exc}", operation="write", path=path) from exc

    def _remove(self, path: str) -> None:
        try:
            with self._session_factory() as session:
                row = session.get(StoredDocument, path.strip("/"))
                if row is not None:
                    session.delete(row)
                    session.commit()
        except SQLAlchemyError as exc:
            raise StoreError(f"delete failed: {exc}", operation="delete", path=path) from exc

    def _list(self, collection_path: str) -> list[tuple[str, dict[str, Any]]]:
        stmt = (
            select(StoredDocument)
            .where(StoredDocument.collection_path == collection_path)
            .order_by(StoredDocument.create_time, StoredDocument.path)
        )
        try:
            with self._session_factory() as session:
                return [(row.doc_id, dict(row.data)) for row in session.scalars(stmt)]
        except SQLAlchemyError as exc:
            raise StoreError(f"list failed: {exc}", operation="list", path=collection_path) from exc


__all__ = ["SqlDocumentStore"]
