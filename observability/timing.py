"""Timing utilities for performance measurement."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Generator

from .metrics import get_metrics_client


class TimingContext:
    """Context manager for timing code blocks."""

    def __init__(self, name: str, tags: dict[str, str] | None = None, emit_metric: bool = True):
        self.name = name
        self.tags = tags or {}
        self.emit_metric = emit_metric
        self.start_time: float = 0
        self.elapsed_ms: float = 0

    def __enter__(self) -> "TimingContext":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.elapsed_ms = (time.perf_counter() - self.start_time) * 1000
        if self.emit_metric:
            get_metrics_client().timing(self.name, self.elapsed_ms, self.tags)


@contextmanager
def timed(
    name: str, tags: dict[str, str] | None = None, emit_metric: bool = True
) -> Generator[TimingContext, None, None]:
    """Time a block and emit it as a histogram observation.

    Usage:
        with timed("phi.scan_latency_ms") as t:
            scan_record(record, library, allow_list)
        print(f"Took {t.elapsed_ms:.2f}ms")
    """
    ctx = TimingContext(name, tags, emit_metric)
    with ctx:
        yield ctx
