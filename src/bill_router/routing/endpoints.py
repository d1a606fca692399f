"""Billing endpoint resolution.

Hard-coded endpoints from :class:`~bill_router.config.Settings` can be
overridden per service type by rows in the ``api_configs`` table.  For a
service type that has rows, only active rows count: if none is active the
service is disabled and no call is made for it.
"""

from __future__ import annotations

from typing import Iterable, Protocol

import structlog
from pydantic import BaseModel, ConfigDict

from bill_router.config import Settings
from bill_router.models.internal import ServiceType

logger = structlog.get_logger(__name__)


class EndpointRow(Protocol):
    service_type: str
    endpoint_url: str
    is_active: bool


class Endpoints(BaseModel):
    """Endpoint URL per service; ``None`` means the service is disabled."""

    model_config = ConfigDict(frozen=True)

    electricity: str | None = None
    gas: str | None = None
    meter: str | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> Endpoints:
        return cls(
            electricity=settings.electricity_endpoint or None,
            gas=settings.gas_endpoint or None,
            meter=settings.meter_endpoint or None,
        )

    def for_service(self, service: ServiceType) -> str | None:
        return getattr(self, service.value)


def resolve_endpoints(defaults: Endpoints, rows: Iterable[EndpointRow]) -> Endpoints:
    """Overlay configuration rows on *defaults*.

    Rows are expected newest first; the first active row per service wins.
    """
    resolved = defaults.model_dump()
    seen: set[str] = set()
    active: dict[str, str] = {}

    for row in rows:
        service = (row.service_type or "").strip().lower()
        if service not in resolved:
            logger.warning("endpoint_config_unknown_service", service_type=row.service_type)
            continue
        seen.add(service)
        if row.is_active and service not in active:
            active[service] = row.endpoint_url

    for service in seen:
        resolved[service] = active.get(service)
        if service not in active:
            logger.info("endpoint_service_disabled", service_type=service)

    return Endpoints(**resolved)
