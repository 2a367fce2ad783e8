"""In-memory implementation of the DocumentStore interface.

Suitable for development, tests and single-process demos. The base class
serializes each read-compare-write; the primitives here only guard the dict.
"""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Any

from shift_guard.store.base import DocumentStore
from shift_guard.store.paths import split_document_path


class InMemoryDocumentStore(DocumentStore):
    def __init__(self, clock=None):
        super().__init__(clock=clock)
        self._lock = threading.RLock()
        self._documents: dict[str, dict[str, Any]] = {}

    def _read(self, path: str) -> dict[str, Any] | None:
        with self._lock:
            return self._documents.get(path.strip("/"))

    def _write(self, path: str, data: dict[str, Any], *, commit_time: datetime) -> None:
        with self._lock:
            self._documents[path.strip("/")] = data

    def _remove(self, path: str) -> None:
        with self._lock:
            self._documents.pop(path.strip("/"), None)

    def _list(self, collection_path: str) -> list[tuple[str, dict[str, Any]]]:
        with self._lock:
            items = list(self._documents.items())
        documents = []
        for path, data in items:
            parent, doc_id = split_document_path(path)
            if parent == collection_path:
                documents.append((doc_id, data))
        return documents

    def clear(self) -> None:
        with self._lock:
            self._documents.clear()


__all__ = ["InMemoryDocumentStore"]
