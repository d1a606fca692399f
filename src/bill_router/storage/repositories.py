"""Async repositories for the endpoint configuration store."""

from __future__ import annotations

from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bill_router.routing.endpoints import Endpoints, resolve_endpoints
from bill_router.storage.models import ApiEndpointConfig

logger = structlog.get_logger(__name__)

_UPDATABLE_FIELDS = ("name", "endpoint_url", "service_type", "parameters", "is_active")


class ApiEndpointConfigRepo:
    """CRUD operations for the ``api_configs`` table."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, config: ApiEndpointConfig) -> ApiEndpointConfig:
        self._session.add(config)
        await self._session.flush()
        await self._session.refresh(config)
        return config

    async def get_by_id(self, config_id: UUID) -> ApiEndpointConfig | None:
        stmt = select(ApiEndpointConfig).where(ApiEndpointConfig.id == config_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_all(self, *, service_type: str | None = None) -> list[ApiEndpointConfig]:
        """All rows, newest first."""
        stmt = select(ApiEndpointConfig)
        if service_type is not None:
            stmt = stmt.where(ApiEndpointConfig.service_type == service_type)
        stmt = stmt.order_by(ApiEndpointConfig.created_at.desc())
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def update(self, config_id: UUID, **changes) -> ApiEndpointConfig | None:
        """Apply *changes* to a row; unknown keys raise ``ValueError``."""
        unknown = set(changes) - set(_UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")

        config = await self.get_by_id(config_id)
        if config is None:
            return None
        for key, value in changes.items():
            if value is not None:
                setattr(config, key, value)
        await self._session.flush()
        await self._session.refresh(config)
        logger.info("endpoint_config_updated", config_id=str(config_id), fields=sorted(changes))
        return config


class EndpointRegistry:
    """Resolves the endpoint per service from the store, over the defaults."""

    def __init__(self, defaults: Endpoints):
        self._defaults = defaults

    @property
    def defaults(self) -> Endpoints:
        return self._defaults

    async def resolve(self, session: AsyncSession) -> Endpoints:
        rows = await ApiEndpointConfigRepo(session).list_all()
        endpoints = resolve_endpoints(self._defaults, rows)
        logger.debug("endpoints_resolved", rows=len(rows), **endpoints.model_dump())
        return endpoints
