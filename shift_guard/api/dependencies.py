"""FastAPI dependency providers backed by the app's service container."""

from __future__ import annotations

from fastapi import Request

from shift_guard.api.auth import TokenVerifier
from shift_guard.bootstrap import ShiftGuardContainer
from shift_guard.phi.profile import ScanProfile
from shift_guard.summary.service import ShiftSummaryService


def get_container(request: Request) -> ShiftGuardContainer:
    return request.app.state.container


def get_summary_service(request: Request) -> ShiftSummaryService:
    return get_container(request).summaries


def get_token_verifier(request: Request) -> TokenVerifier:
    return get_container(request).tokens


def get_scan_profile(request: Request) -> ScanProfile:
    return get_container(request).profile


__all__ = [
    "get_container",
    "get_scan_profile",
    "get_summary_service",
    "get_token_verifier",
]
