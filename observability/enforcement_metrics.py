"""Enforcement-specific metrics.

This module provides high-level helpers for tracking:
- Scans performed and their outcome
- Violations by detector and corrective action
- Corrective-action and audit-write failures (monitoring signals)
- Summary callable results
"""

from __future__ import annotations

from .metrics import get_metrics_client


class EnforcementMetrics:
    """High-level metrics for the PHI enforcement handlers."""

    # Counter metric names
    SCANS_TOTAL = "enforcement.scans_total"
    VIOLATIONS_TOTAL = "enforcement.violations_total"
    FINDINGS_TOTAL = "enforcement.findings_total"
    CORRECTIVE_ACTION_FAILURES = "enforcement.corrective_action_failures"
    AUDIT_WRITE_FAILURES = "enforcement.audit_write_failures"
    AUDIT_DUPLICATES_SUPPRESSED = "enforcement.audit_duplicates_suppressed"
    INVOCATION_TIMEOUTS = "enforcement.invocation_timeouts"
    SUMMARY_REQUESTS = "summary.requests_total"

    # Timing/histogram metric names
    SCAN_LATENCY = "enforcement.scan_latency_ms"
    SUMMARY_LATENCY = "summary.latency_ms"

    @staticmethod
    def record_scan(trigger: str, outcome: str, findings: int) -> None:
        """Record one completed scan.

        Args:
            trigger: "create" or "update"
            outcome: Outcome status ("approved", "blocked", "rolled_back")
            findings: Number of findings that survived filtering
        """
        client = get_metrics_client()
        client.incr(EnforcementMetrics.SCANS_TOTAL, {"trigger": trigger, "outcome": outcome})
        if findings:
            client.incr(EnforcementMetrics.FINDINGS_TOTAL, {"trigger": trigger}, findings)

    @staticmethod
    def record_violation(action: str, detectors: list[str]) -> None:
        """Record a violation, tagged per detector that contributed."""
        client = get_metrics_client()
        for detector in sorted(set(detectors)):
            client.incr(EnforcementMetrics.VIOLATIONS_TOTAL, {"action": action, "detector": detector})

    @staticmethod
    def record_corrective_action_failure(action: str) -> None:
        get_metrics_client().incr(EnforcementMetrics.CORRECTIVE_ACTION_FAILURES, {"action": action})

    @staticmethod
    def record_audit_write_failure(action: str) -> None:
        get_metrics_client().incr(EnforcementMetrics.AUDIT_WRITE_FAILURES, {"action": action})

    @staticmethod
    def record_audit_duplicate(action: str) -> None:
        get_metrics_client().incr(EnforcementMetrics.AUDIT_DUPLICATES_SUPPRESSED, {"action": action})

    @staticmethod
    def record_invocation_timeout(trigger: str) -> None:
        get_metrics_client().incr(EnforcementMetrics.INVOCATION_TIMEOUTS, {"trigger": trigger})

    @staticmethod
    def record_summary(result: str, latency_ms: float | None = None) -> None:
        """Record a summary callable invocation by result kind ("ok" or an error kind)."""
        client = get_metrics_client()
        client.incr(EnforcementMetrics.SUMMARY_REQUESTS, {"result": result})
        if latency_ms is not None:
            client.timing(EnforcementMetrics.SUMMARY_LATENCY, latency_ms, {"result": result})


__all__ = ["EnforcementMetrics"]
