"""Shared route dependencies."""
from __future__ import annotations
from fastapi import HTTPException, Request
from ...pipeline import BillRoutingPipeline
from ...storage import database


def get_pipeline(request: Request) -> BillRoutingPipeline:
    return request.app.state.pipeline


async def require_session():
    """Yield a session, or 503 when no configuration database is set up."""
    if not database.is_configured():
        raise HTTPException(status_code=503, detail="Endpoint configuration store is not configured")
    async for session in database.get_session():
        yield session
