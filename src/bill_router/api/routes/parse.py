"""Bill parsing and routing routes."""
from __future__ import annotations
from typing import Any
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from ...classification.classifier import normalize_phone
from ...pipeline import BillRoutingPipeline
from ...storage.files import FileReference
from .deps import get_pipeline

router = APIRouter()


class ParseInput(BaseModel):
    phone: str | None = None
    file_path: str | None = None
    image_url: str | None = None

    def file_reference(self) -> FileReference:
        return FileReference(file_url=self.image_url, file_path=self.file_path)


class RouteInput(ParseInput):
    extraction: dict[str, Any] | None = None


def _require_phone(phone: str | None) -> str:
    if not normalize_phone(phone):
        raise HTTPException(status_code=400, detail="phone is required")
    return phone


@router.post("/parse")
async def parse_bill(body: ParseInput, pipeline: BillRoutingPipeline = Depends(get_pipeline)):
    """Extract an uploaded bill with the vision model and route it."""
    phone = _require_phone(body.phone)
    ref = body.file_reference()
    if ref.is_empty():
        raise HTTPException(status_code=400, detail="file_path or image_url is required")
    try:
        outcome = await pipeline.parse(phone, ref)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return outcome.to_response()


@router.post("/route")
async def route_extraction(body: RouteInput, pipeline: BillRoutingPipeline = Depends(get_pipeline)):
    """Route a previously extracted document without calling the vision model."""
    phone = _require_phone(body.phone)
    if body.extraction is None:
        raise HTTPException(status_code=400, detail="extraction is required")
    ref = body.file_reference()
    outcome = await pipeline.route(body.extraction, phone, None if ref.is_empty() else ref,
                                   input_type="extraction")
    return outcome.to_response()
