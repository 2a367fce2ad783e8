"""HTTP delivery of document change events from an externally hosted store.

The body describes a change that has already been committed; the handlers
bound for the path run exactly as they would for an in-process write.
"""

from __future__ import annotations

import hmac
from datetime import datetime, timezone
from typing import Any, List, Literal, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from shift_guard.api.dependencies import get_container
from shift_guard.bootstrap import ShiftGuardContainer
from shift_guard.store.base import DocumentChange

router = APIRouter(prefix="/v1/triggers", tags=["triggers"])
_container_dep = Depends(get_container)


class ChangeEventModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    path: str
    before: Optional[dict[str, Any]] = None
    after: Optional[dict[str, Any]] = None
    commit_time: Optional[datetime] = Field(default=None, alias="commitTime")


class DeliveryModel(BaseModel):
    binding: str
    trigger: str
    status: str
    attempts: int
    result: Optional[dict[str, Any]] = None
    error: Optional[str] = None


class DeliveryResponse(BaseModel):
    delivered: int
    results: List[DeliveryModel]


def _check_secret(container: ShiftGuardContainer, provided: Optional[str]) -> None:
    expected = container.settings.auth.trigger_secret
    if not expected:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Trigger delivery disabled")
    if not provided or not hmac.compare_digest(provided, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid trigger secret")


@router.post("/{event}", response_model=DeliveryResponse)
def deliver_change(
    event: Literal["create", "update"],
    payload: ChangeEventModel,
    x_trigger_secret: Optional[str] = Header(default=None),
    container: ShiftGuardContainer = _container_dep,
) -> DeliveryResponse:
    _check_secret(container, x_trigger_secret)

    if payload.after is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="after is required")
    if event == "create" and payload.before is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="create events have no before")
    if event == "update" and payload.before is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="update events need before")

    commit_time = payload.commit_time or datetime.now(timezone.utc)
    if commit_time.tzinfo is None:
        commit_time = commit_time.replace(tzinfo=timezone.utc)
    change = DocumentChange(
        path=payload.path.strip("/"),
        before=payload.before,
        after=payload.after,
        commit_time=commit_time,
    )
    results = container.runtime.deliver(change)
    return DeliveryResponse(
        delivered=len(results),
        results=[
            DeliveryModel(
                binding=result.binding,
                trigger=result.trigger,
                status=result.status,
                attempts=result.attempts,
                result=result.result if isinstance(result.result, dict) else None,
                error=result.error,
            )
            for result in results
        ],
    )
