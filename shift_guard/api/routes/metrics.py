"""Metrics endpoints.

``/metrics`` serves Prometheus text format when ``METRICS_BACKEND`` is
``registry`` or ``prometheus``. ``METRICS_ENABLED`` forces the endpoints on
or off regardless of backend.
"""

from __future__ import annotations

import os
from typing import Any

from fastapi import APIRouter, Response
from fastapi.responses import PlainTextResponse

from observability.enforcement_metrics import EnforcementMetrics
from observability.metrics import RegistryMetricsClient, get_metrics_client

router = APIRouter()

PROMETHEUS_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


def _is_metrics_enabled() -> bool:
    backend = os.getenv("METRICS_BACKEND", "null").lower()
    explicit = os.getenv("METRICS_ENABLED", "").lower()
    if explicit in ("true", "1", "yes"):
        return True
    if explicit in ("false", "0", "no"):
        return False
    return backend in ("registry", "prometheus")


@router.get("/metrics", response_class=PlainTextResponse, summary="Prometheus metrics endpoint")
def get_metrics() -> Response:
    if not _is_metrics_enabled():
        return PlainTextResponse(
            content="# Metrics endpoint disabled. Set METRICS_BACKEND=prometheus to enable.\n",
            status_code=404,
        )

    client = get_metrics_client()
    if isinstance(client, RegistryMetricsClient):
        return Response(content=client.export_prometheus(), media_type=PROMETHEUS_CONTENT_TYPE)
    return PlainTextResponse(
        content=(
            "# Metrics collection is not using registry backend.\n"
            f"# Current backend: {type(client).__name__}\n"
        )
    )


@router.get("/metrics/json", summary="Metrics as JSON")
def get_metrics_json() -> dict[str, Any]:
    if not _is_metrics_enabled():
        return {"error": "Metrics disabled", "enabled": False}

    client = get_metrics_client()
    if isinstance(client, RegistryMetricsClient):
        return {"enabled": True, "backend": "registry", **client.export_json()}
    return {
        "enabled": True,
        "backend": type(client).__name__,
        "counters": {},
        "gauges": {},
        "timings": {},
        "note": "JSON export only available with registry backend",
    }


@router.get("/metrics/enforcement", summary="Enforcement totals")
def get_enforcement_summary() -> dict[str, Any]:
    """Totals across all tag combinations, for a quick look without Prometheus."""
    if not _is_metrics_enabled():
        return {"error": "Metrics disabled", "enabled": False}

    client = get_metrics_client()
    if not isinstance(client, RegistryMetricsClient):
        return {"enabled": True, "backend": type(client).__name__, "totals": {}}

    names = (
        EnforcementMetrics.SCANS_TOTAL,
        EnforcementMetrics.VIOLATIONS_TOTAL,
        EnforcementMetrics.CORRECTIVE_ACTION_FAILURES,
        EnforcementMetrics.AUDIT_WRITE_FAILURES,
        EnforcementMetrics.AUDIT_DUPLICATES_SUPPRESSED,
        EnforcementMetrics.INVOCATION_TIMEOUTS,
        EnforcementMetrics.SUMMARY_REQUESTS,
    )
    return {
        "enabled": True,
        "backend": "registry",
        "totals": {name: client.counter_total(name) for name in names},
    }
