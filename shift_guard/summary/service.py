"""Remote-callable shift summary procedure.

Checks run in a fixed order: caller identity, then arguments, then shift
existence. Any other failure is reported as ``internal`` with a generic
message; the cause is logged, never returned.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from observability.enforcement_metrics import EnforcementMetrics
from observability.logging_config import get_logger
from shift_guard.common.exceptions import CallableError
from shift_guard.store.base import DocumentStore
from shift_guard.store.paths import babies_collection, shift_path
from shift_guard.summary.formatter import ShiftSummaryFormatter

logger = get_logger("shift_summary")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Caller:
    uid: str


@dataclass(frozen=True)
class SummaryRequest:
    scope_id: str | None = None
    shift_id: str | None = None


@dataclass(frozen=True)
class ShiftSummary:
    summary_text: str
    generated_at: datetime
    entity_count: int

    @property
    def generated_at_iso(self) -> str:
        return self.generated_at.isoformat()

    def to_payload(self) -> dict[str, Any]:
        return {
            "summaryText": self.summary_text,
            "generatedAtIso": self.generated_at_iso,
            "entityCount": self.entity_count,
        }


def _blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


class ShiftSummaryService:
    def __init__(
        self,
        store: DocumentStore,
        formatter: ShiftSummaryFormatter | None = None,
        *,
        fetch_workers: int = 2,
        clock: Callable[[], datetime] | None = None,
    ):
        self._store = store
        self._formatter = formatter or ShiftSummaryFormatter()
        self._fetch_workers = max(1, fetch_workers)
        self._clock = clock or _utcnow

    def generate(self, request: SummaryRequest, caller: Caller | None) -> ShiftSummary:
        started = time.perf_counter()
        try:
            summary = self._generate(request, caller)
        except CallableError as exc:
            EnforcementMetrics.record_summary(exc.kind, (time.perf_counter() - started) * 1000)
            logger.info("shift_summary_rejected", extra={"kind": exc.kind})
            raise
        except Exception as exc:
            EnforcementMetrics.record_summary(CallableError.INTERNAL, (time.perf_counter() - started) * 1000)
            logger.error(
                "shift_summary_failed",
                extra={"shift_id": request.shift_id, "error_type": type(exc).__name__},
                exc_info=True,
            )
            raise CallableError(CallableError.INTERNAL, "Failed to generate shift summary") from exc

        EnforcementMetrics.record_summary("ok", (time.perf_counter() - started) * 1000)
        return summary

    def _generate(self, request: SummaryRequest, caller: Caller | None) -> ShiftSummary:
        if caller is None or _blank(caller.uid):
            raise CallableError(
                CallableError.UNAUTHENTICATED, "User must be authenticated to generate summaries"
            )
        if _blank(request.scope_id) or _blank(request.shift_id):
            raise CallableError(CallableError.INVALID_ARGUMENT, "scopeId and shiftId are required")
        if "/" in request.scope_id or "/" in request.shift_id:
            raise CallableError(
                CallableError.INVALID_ARGUMENT, "scopeId and shiftId must be single path segments"
            )

        path = shift_path(request.scope_id, caller.uid, request.shift_id)
        with ThreadPoolExecutor(max_workers=self._fetch_workers) as pool:
            shift_future = pool.submit(self._store.get, path)
            babies_future = pool.submit(
                self._store.list_collection,
                babies_collection(request.scope_id, caller.uid, request.shift_id),
            )
            shift = shift_future.result()
            babies = babies_future.result()

        if shift is None:
            raise CallableError(CallableError.NOT_FOUND, "Shift not found")

        records = [{"id": doc_id, **data} for doc_id, data in babies]
        generated_at = self._clock()
        text = self._formatter.render(shift, records, generated_at)

        summary = ShiftSummary(summary_text=text, generated_at=generated_at, entity_count=len(records))
        self._store.update(
            path,
            {"cachedSummary": summary.summary_text, "summaryGeneratedAt": summary.generated_at_iso},
        )
        logger.info(
            "shift_summary_generated",
            extra={"shift_id": request.shift_id, "entity_count": summary.entity_count},
        )
        return summary


__all__ = ["Caller", "ShiftSummary", "ShiftSummaryService", "SummaryRequest"]
