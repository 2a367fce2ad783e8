"""Document store interface with post-commit change notification.

Adapters implement the storage primitives; this base class owns the write
semantics shared by every backend: full-replace ``set``, top-level merge
``update``, idempotent ``delete``, and one ``DocumentChange`` delivered to
subscribers after each committed write that actually changed the document.
"""

from __future__ import annotations

import copy
import json
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable, Mapping

from shift_guard.common.exceptions import DocumentNotFound
from shift_guard.store.paths import split_document_path


class ChangeKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class DocumentChange:
    """One committed write, as seen by trigger handlers."""

    path: str
    before: dict[str, Any] | None
    after: dict[str, Any] | None
    commit_time: datetime
    params: dict[str, str] = field(default_factory=dict)

    @property
    def kind(self) -> ChangeKind:
        if self.before is None:
            return ChangeKind.CREATE
        if self.after is None:
            return ChangeKind.DELETE
        return ChangeKind.UPDATE


ChangeListener = Callable[[DocumentChange], Any]


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return str(value)


def to_document_data(data: Mapping[str, Any]) -> dict[str, Any]:
    """Normalize a payload to plain JSON values (timestamps become ISO strings)."""
    return json.loads(json.dumps(dict(data), default=_json_default))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DocumentStore(ABC):
    def __init__(self, clock: Callable[[], datetime] | None = None):
        self._clock = clock or _utcnow
        self._listeners: list[ChangeListener] = []
        # Held from the read of the prior version through the write; released
        # before listeners run so handlers can write back.
        self._write_lock = threading.RLock()

    # ------------------------------------------------------------------
    # Storage primitives
    # ------------------------------------------------------------------

    @abstractmethod
    def _read(self, path: str) -> dict[str, Any] | None:
        ...

    @abstractmethod
    def _write(self, path: str, data: dict[str, Any], *, commit_time: datetime) -> None:
        ...

    @abstractmethod
    def _remove(self, path: str) -> None:
        ...

    @abstractmethod
    def _list(self, collection_path: str) -> list[tuple[str, dict[str, Any]]]:
        ...

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def subscribe(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def get(self, path: str) -> dict[str, Any] | None:
        data = self._read(path)
        return copy.deepcopy(data) if data is not None else None

    def exists(self, path: str) -> bool:
        return self._read(path) is not None

    def list_collection(self, collection_path: str) -> list[tuple[str, dict[str, Any]]]:
        """Return (document id, data) pairs in creation order."""
        return [(doc_id, copy.deepcopy(data)) for doc_id, data in self._list(collection_path.strip("/"))]

    def set(self, path: str, data: Mapping[str, Any]) -> DocumentChange | None:
        """Replace the whole document (no merge)."""
        split_document_path(path)
        after = to_document_data(data)
        with self._write_lock:
            before = self._read(path)
            if before == after:
                return None
            commit_time = self._clock()
            self._write(path, after, commit_time=commit_time)
        return self._commit(path, before, after, commit_time)

    def update(self, path: str, fields: Mapping[str, Any]) -> DocumentChange | None:
        """Merge top-level fields into an existing document."""
        changes = to_document_data(fields)
        with self._write_lock:
            before = self._read(path)
            if before is None:
                raise DocumentNotFound(f"document not found: {path}", operation="update", path=path)
            merged = copy.deepcopy(before)
            merged.update(changes)
            if merged == before:
                return None
            commit_time = self._clock()
            self._write(path, merged, commit_time=commit_time)
        return self._commit(path, before, merged, commit_time)

    def add(self, collection_path: str, data: Mapping[str, Any], doc_id: str | None = None) -> str:
        """Create a document under a collection; returns its path."""
        path = f"{collection_path.strip('/')}/{doc_id or uuid.uuid4().hex}"
        self.set(path, data)
        return path

    def delete(self, path: str) -> DocumentChange | None:
        """Delete a document; deleting a missing document is a no-op."""
        with self._write_lock:
            before = self._read(path)
            if before is None:
                return None
            commit_time = self._clock()
            self._remove(path)
        return self._commit(path, before, None, commit_time)

    def _commit(
        self,
        path: str,
        before: dict[str, Any] | None,
        after: dict[str, Any] | None,
        commit_time: datetime,
    ) -> DocumentChange:
        change = DocumentChange(
            path=path,
            before=copy.deepcopy(before),
            after=copy.deepcopy(after),
            commit_time=commit_time,
        )
        for listener in list(self._listeners):
            listener(change)
        return change


__all__ = ["ChangeKind", "ChangeListener", "DocumentChange", "DocumentStore", "to_document_data"]
