"""Metrics client abstraction and implementations.

This module provides:
- MetricsClient: Abstract base class for metrics emission
- NullMetricsClient: No-op implementation (default)
- StdoutMetricsClient: JSON lines on stderr for debugging
- RegistryMetricsClient: In-process registry with Prometheus text export

The backend is chosen by ``METRICS_BACKEND`` (null|stdout|registry|prometheus).
"""

from __future__ import annotations

import json
import os
import sys
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

DEFAULT_PREFIX = "shift_guard"

# Histogram buckets for timing metrics (milliseconds)
DEFAULT_TIMING_BUCKETS = (5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000)


class MetricsClient(ABC):
    """Abstract base class for metrics emission."""

    @abstractmethod
    def incr(self, name: str, tags: dict[str, str] | None = None, value: int = 1) -> None:
        """Increment a counter metric."""
        ...

    @abstractmethod
    def observe(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        """Record a gauge observation."""
        ...

    @abstractmethod
    def timing(self, name: str, value_ms: float, tags: dict[str, str] | None = None) -> None:
        """Record a timing value in milliseconds."""
        ...


class NullMetricsClient(MetricsClient):
    """No-op metrics client for when metrics are disabled."""

    def incr(self, name: str, tags: dict[str, str] | None = None, value: int = 1) -> None:
        pass

    def observe(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        pass

    def timing(self, name: str, value_ms: float, tags: dict[str, str] | None = None) -> None:
        pass


class StdoutMetricsClient(MetricsClient):
    """Emit metrics as JSON lines for development/debugging."""

    def __init__(self, prefix: str = DEFAULT_PREFIX):
        self.prefix = prefix

    def _emit(self, metric_type: str, name: str, value: Any, tags: dict[str, str] | None) -> None:
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "type": metric_type,
            "metric": f"{self.prefix}.{name}",
            "value": value,
            "tags": tags or {},
        }
        print(json.dumps(record), file=sys.stderr)

    def incr(self, name: str, tags: dict[str, str] | None = None, value: int = 1) -> None:
        self._emit("counter", name, value, tags)

    def observe(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        self._emit("gauge", name, value, tags)

    def timing(self, name: str, value_ms: float, tags: dict[str, str] | None = None) -> None:
        self._emit("timing", name, value_ms, tags)


def _labels(tags: dict[str, str] | None) -> str:
    """Render tags as a Prometheus label string (sorted, stable)."""
    if not tags:
        return ""
    return "{" + ",".join(f'{k}="{v}"' for k, v in sorted(tags.items())) + "}"


def _metric_name(prefix: str, name: str) -> str:
    return f"{prefix}_{name.replace('.', '_').replace('-', '_')}"


class RegistryMetricsClient(MetricsClient):
    """In-process metrics registry with Prometheus text export.

    Usage:
        client = RegistryMetricsClient()
        client.incr("enforcement.violations", {"action": "rejected"})
        text = client.export_prometheus()
    """

    def __init__(self, prefix: str = DEFAULT_PREFIX, buckets: tuple[float, ...] = DEFAULT_TIMING_BUCKETS):
        self.prefix = prefix
        self.buckets = buckets
        self._lock = threading.Lock()
        self._counters: dict[str, dict[str, float]] = defaultdict(lambda: defaultdict(float))
        self._gauges: dict[str, dict[str, float]] = defaultdict(dict)
        self._timings: dict[str, dict[str, list[float]]] = defaultdict(lambda: defaultdict(list))

    def incr(self, name: str, tags: dict[str, str] | None = None, value: int = 1) -> None:
        with self._lock:
            self._counters[name][_labels(tags)] += value

    def observe(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        with self._lock:
            self._gauges[name][_labels(tags)] = value

    def timing(self, name: str, value_ms: float, tags: dict[str, str] | None = None) -> None:
        with self._lock:
            self._timings[name][_labels(tags)].append(value_ms)

    def counter_value(self, name: str, tags: dict[str, str] | None = None) -> float:
        """Return the current value of one counter series (0 if unseen)."""
        with self._lock:
            return self._counters.get(name, {}).get(_labels(tags), 0.0)

    def counter_total(self, name: str) -> float:
        """Return the sum of a counter across all label sets."""
        with self._lock:
            return sum(self._counters.get(name, {}).values())

    def export_prometheus(self) -> str:
        """Export all metrics in Prometheus text exposition format."""
        lines: list[str] = []
        with self._lock:
            for name, series in sorted(self._counters.items()):
                metric = _metric_name(self.prefix, name) + "_total"
                lines.append(f"# TYPE {metric} counter")
                lines.extend(f"{metric}{labels} {value}" for labels, value in sorted(series.items()))

            for name, series in sorted(self._gauges.items()):
                metric = _metric_name(self.prefix, name)
                lines.append(f"# TYPE {metric} gauge")
                lines.extend(f"{metric}{labels} {value}" for labels, value in sorted(series.items()))

            for name, series in sorted(self._timings.items()):
                metric = _metric_name(self.prefix, name)
                lines.append(f"# TYPE {metric} histogram")
                for labels, values in sorted(series.items()):
                    inner = labels[1:-1] + "," if labels else ""
                    for bucket in self.buckets:
                        count = sum(1 for v in values if v <= bucket)
                        lines.append(f'{metric}_bucket{{{inner}le="{bucket}"}} {count}')
                    lines.append(f'{metric}_bucket{{{inner}le="+Inf"}} {len(values)}')
                    lines.append(f"{metric}_sum{labels} {sum(values)}")
                    lines.append(f"{metric}_count{labels} {len(values)}")

        return "\n".join(lines) + "\n"

    def export_json(self) -> dict[str, Any]:
        """Export metrics as JSON for debugging."""
        with self._lock:
            return {
                "counters": {name: dict(series) for name, series in self._counters.items()},
                "gauges": {name: dict(series) for name, series in self._gauges.items()},
                "timings": {
                    name: {labels: {"count": len(v), "sum": sum(v)} for labels, v in series.items()}
                    for name, series in self._timings.items()
                },
            }

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        with self._lock:
            self._counters.clear()
            self._gauges.clear()
            self._timings.clear()


# Global singleton
_metrics_client: MetricsClient | None = None


def get_metrics_client() -> MetricsClient:
    """Get the global metrics client, initializing it from ``METRICS_BACKEND``."""
    global _metrics_client
    if _metrics_client is None:
        backend = os.getenv("METRICS_BACKEND", "null").lower()
        if backend in ("registry", "prometheus"):
            _metrics_client = RegistryMetricsClient()
        elif backend == "stdout":
            _metrics_client = StdoutMetricsClient()
        else:
            _metrics_client = NullMetricsClient()
    return _metrics_client


def set_metrics_client(client: MetricsClient) -> None:
    """Set the global metrics client."""
    global _metrics_client
    _metrics_client = client


def reset_metrics_client() -> None:
    """Forget the global client; the next lookup re-reads the environment."""
    global _metrics_client
    _metrics_client = None
