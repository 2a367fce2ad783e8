"""In-memory audit trail for tests and demos."""

from __future__ import annotations

import threading

from shift_guard.phi.ports import AuditEntry, AuditTrailPort, AuditWriteStatus


class InMemoryAuditTrail(AuditTrailPort):
    def __init__(self):
        self._lock = threading.Lock()
        self._entries: list[AuditEntry] = []
        self._keys: set[str] = set()

    def append(self, entry: AuditEntry) -> AuditWriteStatus:
        with self._lock:
            if entry.dedupe_key is not None:
                if entry.dedupe_key in self._keys:
                    return AuditWriteStatus.DUPLICATE
                self._keys.add(entry.dedupe_key)
            self._entries.append(entry)
        return AuditWriteStatus.APPENDED

    def list_entries(
        self,
        *,
        scope_id: str | None = None,
        owner_id: str | None = None,
        limit: int = 100,
    ) -> list[AuditEntry]:
        with self._lock:
            entries = list(reversed(self._entries))
        if scope_id is not None:
            entries = [entry for entry in entries if entry.scope_id == scope_id]
        if owner_id is not None:
            entries = [entry for entry in entries if entry.owner_id == owner_id]
        return entries[:limit]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["InMemoryAuditTrail"]
