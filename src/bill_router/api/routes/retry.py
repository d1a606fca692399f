"""Single-call retry route."""
from __future__ import annotations
from typing import Any
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from ...models.internal import RetryRequest, ServiceType
from ...pipeline import BillRoutingPipeline
from .deps import get_pipeline

router = APIRouter()


class RetryInput(BaseModel):
    type: str | None = None
    endpoint: str | None = None
    payload: dict[str, Any] | None = None
    phone: str | None = None
    file_path: str | None = None
    file_url: str | None = None


@router.post("/retry")
async def retry_call(body: RetryInput, pipeline: BillRoutingPipeline = Depends(get_pipeline)):
    """Resubmit one failed billing call.

    Answers 200 whether or not the downstream call succeeded; check ``ok``.
    """
    if not body.type or not body.endpoint:
        raise HTTPException(status_code=400, detail="Missing type or endpoint")
    try:
        service = ServiceType(body.type)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Unknown service type: {body.type}") from exc

    result = await pipeline.retry(RetryRequest(
        type=service,
        endpoint=body.endpoint,
        payload=body.payload or {},
        phone=body.phone,
        file_path=body.file_path,
        file_url=body.file_url,
    ))
    return result.model_dump(exclude_none=True)
