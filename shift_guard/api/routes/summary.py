"""Remote-callable procedures.

Errors are returned as ``{kind, message}`` with an HTTP status per kind so
clients can branch on ``kind`` without parsing text.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from shift_guard.api.auth import TokenVerifier, bearer_token
from shift_guard.api.dependencies import get_summary_service, get_token_verifier
from shift_guard.common.exceptions import AuthenticationError, CallableError
from shift_guard.summary.service import Caller, ShiftSummaryService, SummaryRequest

router = APIRouter(prefix="/v1/callable", tags=["callable"])

_summary_service_dep = Depends(get_summary_service)
_token_verifier_dep = Depends(get_token_verifier)

ERROR_STATUS = {
    CallableError.UNAUTHENTICATED: 401,
    CallableError.INVALID_ARGUMENT: 400,
    CallableError.NOT_FOUND: 404,
    CallableError.INTERNAL: 500,
}


class ShiftSummaryRequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Optional so a missing field reaches the service as invalid-argument.
    scope_id: Optional[str] = Field(default=None, alias="scopeId")
    shift_id: Optional[str] = Field(default=None, alias="shiftId")


class ShiftSummaryResponseModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    summary_text: str = Field(alias="summaryText")
    generated_at_iso: str = Field(alias="generatedAtIso")
    entity_count: int = Field(alias="entityCount")


class CallableErrorModel(BaseModel):
    kind: str
    message: str


def _error_response(exc: CallableError) -> JSONResponse:
    return JSONResponse(status_code=ERROR_STATUS.get(exc.kind, 500), content=exc.to_payload())


def _resolve_caller(verifier: TokenVerifier, authorization: Optional[str]) -> Caller | None:
    token = bearer_token(authorization)
    if token is None:
        return None
    try:
        return verifier.verify(token)
    except AuthenticationError:
        return None


@router.post(
    "/generateShiftSummary",
    response_model=ShiftSummaryResponseModel,
    responses={code: {"model": CallableErrorModel} for code in (400, 401, 404, 500)},
)
def generate_shift_summary(
    payload: ShiftSummaryRequestModel,
    authorization: Optional[str] = Header(default=None),
    service: ShiftSummaryService = _summary_service_dep,
    verifier: TokenVerifier = _token_verifier_dep,
):
    caller = _resolve_caller(verifier, authorization)
    try:
        summary = service.generate(
            SummaryRequest(scope_id=payload.scope_id, shift_id=payload.shift_id), caller
        )
    except CallableError as exc:
        return _error_response(exc)
    return JSONResponse(content=summary.to_payload())
