"""Endpoint configuration store routes."""
from __future__ import annotations
from typing import Any
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from ...models.internal import ServiceType
from ...storage.models import ApiEndpointConfig
from ...storage.repositories import ApiEndpointConfigRepo
from .deps import require_session

router = APIRouter()


class EndpointUpdate(BaseModel):
    name: str | None = None
    endpoint_url: str | None = None
    service_type: ServiceType | None = None
    parameters: dict[str, Any] | None = None
    is_active: bool | None = None


def _serialize(config: ApiEndpointConfig) -> dict:
    return {
        "id": str(config.id),
        "name": config.name,
        "endpoint_url": config.endpoint_url,
        "service_type": config.service_type,
        "parameters": config.parameters or {},
        "is_active": config.is_active,
        "created_at": config.created_at.isoformat() if config.created_at else None,
        "updated_at": config.updated_at.isoformat() if config.updated_at else None,
    }


@router.get("")
async def list_endpoints(service_type: ServiceType | None = None, session=Depends(require_session)):
    repo = ApiEndpointConfigRepo(session)
    configs = await repo.list_all(service_type=service_type.value if service_type else None)
    return {"items": [_serialize(c) for c in configs]}


@router.put("/{config_id}")
async def update_endpoint(config_id: UUID, body: EndpointUpdate, session=Depends(require_session)):
    changes = body.model_dump(exclude_none=True)
    if "service_type" in changes:
        changes["service_type"] = changes["service_type"].value
    repo = ApiEndpointConfigRepo(session)
    config = await repo.update(config_id, **changes)
    if config is None:
        raise HTTPException(status_code=404, detail="Endpoint configuration not found")
    await session.commit()
    return _serialize(config)
