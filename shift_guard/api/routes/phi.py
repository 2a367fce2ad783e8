"""Advisory PHI pre-check.

Nothing is persisted. Post-commit enforcement on the store stays
authoritative; this endpoint only lets a client warn before submitting.
"""

from __future__ import annotations

from typing import Any, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from observability.logging_config import get_logger
from shift_guard.api.dependencies import get_scan_profile
from shift_guard.infra.safe_logging import canonical_json, safe_log_text
from shift_guard.phi.profile import ScanProfile

router = APIRouter(prefix="/v1/phi", tags=["phi"])
logger = get_logger("phi_api")
_scan_profile_dep = Depends(get_scan_profile)


class ScanRequest(BaseModel):
    record: dict[str, Any] = Field(..., description="Record to check, same shape as a stored document")


class FindingModel(BaseModel):
    field: str
    detector: str
    count: int
    sample: str


class ScanResponse(BaseModel):
    clean: bool
    allow_list_version: str
    findings: List[FindingModel]


@router.post("/scan", response_model=ScanResponse)
def scan_record_endpoint(payload: ScanRequest, profile: ScanProfile = _scan_profile_dep) -> ScanResponse:
    findings = profile.scan(payload.record)
    logger.info(
        "phi_precheck",
        extra={
            "findings": len(findings),
            "fields": sorted({finding.field for finding in findings}),
            "record": safe_log_text(canonical_json(payload.record)),
        },
    )
    return ScanResponse(
        clean=not findings,
        allow_list_version=profile.allow_list.version,
        findings=[FindingModel(**finding.to_dict()) for finding in findings],
    )
