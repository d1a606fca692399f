"""Billing API client: multipart POSTs to the electricity, gas and meter endpoints."""

from __future__ import annotations

import asyncio
import time

import httpx
import structlog

from bill_router.exceptions import ConfigurationError
from bill_router.models.internal import ApiCallResult, ApiCallSpec
from bill_router.storage.files import OriginalFile

logger = structlog.get_logger(__name__)

MAX_BODY_LENGTH = 4096


def truncate(text: str, limit: int = MAX_BODY_LENGTH) -> str:
    return text[:limit]


class BillingApiClient:
    """Sends billing calls over a shared ``httpx.AsyncClient``.

    Each call in :meth:`dispatch_all` is independent: a failure is recorded in
    that call's result and never cancels its siblings.
    """

    def __init__(self, api_key: str, client: httpx.AsyncClient):
        if not api_key:
            raise ConfigurationError("ONEBILL API key is not configured")
        self._api_key = api_key
        self._client = client

    async def post_form(
        self,
        endpoint: str,
        fields: dict[str, str],
        file: OriginalFile | None,
    ) -> httpx.Response:
        """POST *fields* (and *file*, when given) as ``multipart/form-data``.

        Transport errors propagate as ``httpx.HTTPError``.
        """
        files = {"file": file.as_multipart()} if file is not None else None
        return await self._client.post(
            endpoint,
            headers={"Authorization": f"Bearer {self._api_key}"},
            data=fields,
            files=files,
        )

    async def send(self, spec: ApiCallSpec, file: OriginalFile | None) -> ApiCallResult:
        """Issue one call, capturing any failure in the returned result."""
        logger.info("billing_api_call", service=spec.service_type.value, endpoint=spec.endpoint,
                    fields=sorted(spec.payload))
        start = time.monotonic()
        try:
            response = await self.post_form(spec.endpoint, spec.payload, file)
        except httpx.HTTPError as exc:
            logger.error("billing_api_call_error", service=spec.service_type.value, error=str(exc))
            return ApiCallResult.failure(spec, truncate(str(exc) or type(exc).__name__))

        body = truncate(response.text)
        duration = int((time.monotonic() - start) * 1000)
        logger.info("billing_api_response", service=spec.service_type.value, status=response.status_code,
                    duration_ms=duration, body_preview=body[:200])
        return ApiCallResult(
            type=spec.service_type,
            endpoint=spec.endpoint,
            status=response.status_code,
            ok=response.is_success,
            response=body,
            payload=dict(spec.payload),
        )

    async def dispatch_all(
        self,
        specs: list[ApiCallSpec],
        file: OriginalFile | None,
    ) -> list[ApiCallResult]:
        """Issue every call concurrently and collect one result per spec, in order."""
        outcomes = await asyncio.gather(
            *(self.send(spec, file) for spec in specs),
            return_exceptions=True,
        )
        results: list[ApiCallResult] = []
        for spec, outcome in zip(specs, outcomes):
            if isinstance(outcome, BaseException):
                logger.error("billing_api_call_crashed", service=spec.service_type.value, error=str(outcome))
                outcome = ApiCallResult.failure(spec, truncate(str(outcome) or type(outcome).__name__))
            results.append(outcome)
        return results
