"""Resubmission of a single failed billing call with bounded backoff."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

import httpx
import structlog

from bill_router.classification.classifier import normalize_phone
from bill_router.exceptions import FileFetchError, RetryValidationError
from bill_router.models.internal import RetryRequest, RetryResult, ServiceType
from bill_router.routing.dispatcher import BillingApiClient, truncate
from bill_router.storage.files import FileReference, OriginalFile, fetch_file

logger = structlog.get_logger(__name__)

MAX_ATTEMPTS = 3
BASE_DELAY = 0.5  # seconds; doubles per attempt


def is_retryable_status(status: int) -> bool:
    """5xx and 429 are transient; everything else is final."""
    return status >= 500 or status == 429


class RetryCoordinator:
    """Re-executes one call, retrying only server and rate-limit failures.

    Never raises for downstream failures: the last observed status and body
    come back in a :class:`RetryResult` whose ``ok`` the caller checks.
    """

    def __init__(
        self,
        api: BillingApiClient,
        http_client: httpx.AsyncClient,
        file_base_url: str = "",
        *,
        max_attempts: int = MAX_ATTEMPTS,
        base_delay: float = BASE_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._api = api
        self._http = http_client
        self._file_base_url = file_base_url
        self._max_attempts = max_attempts
        self._base_delay = base_delay
        self._sleep = sleep

    def backoff_delay(self, attempt: int) -> float:
        return self._base_delay * (2 ** attempt)

    def _build_fields(self, request: RetryRequest) -> dict[str, str]:
        if request.type == ServiceType.METER:
            if not request.phone:
                raise RetryValidationError("Phone is required for meter retry")
            return {"phone": normalize_phone(request.phone)}
        return {key: "" if value is None else str(value) for key, value in request.payload.items()}

    async def _load_file(self, request: RetryRequest) -> OriginalFile | None:
        ref = FileReference(file_url=request.file_url, file_path=request.file_path)
        if ref.is_empty():
            return None
        try:
            return await fetch_file(self._http, ref, self._file_base_url)
        except FileFetchError as exc:
            # The call is still attempted without the attachment
            logger.error("retry_file_fetch_failed", service=request.type.value, error=str(exc))
            return None

    async def retry(self, request: RetryRequest) -> RetryResult:
        """Resend *request*, backing off between retryable failures.

        Raises:
            RetryValidationError: for a meter retry without a phone, before any
                call is attempted.
        """
        fields = self._build_fields(request)
        file = await self._load_file(request)

        last_status = 0
        last_text = ""
        attempts = 0

        for attempt in range(self._max_attempts):
            attempts = attempt + 1
            is_last = attempt == self._max_attempts - 1
            try:
                response = await self._api.post_form(request.endpoint, fields, file)
            except httpx.HTTPError as exc:
                last_status = 500
                last_text = str(exc) or type(exc).__name__
                logger.warning("retry_attempt_error", service=request.type.value, attempt=attempts, error=last_text)
                if not is_last:
                    await self._sleep(self.backoff_delay(attempt))
                continue

            last_status = response.status_code
            last_text = response.text

            if response.is_success:
                logger.info("retry_succeeded", service=request.type.value, attempt=attempts, status=last_status)
                return RetryResult(ok=True, status=last_status, response=truncate(last_text), attempts=attempts)

            if not is_last and is_retryable_status(last_status):
                delay = self.backoff_delay(attempt)
                logger.warning("retry_attempt_failed", service=request.type.value, attempt=attempts,
                               status=last_status, delay=delay)
                await self._sleep(delay)
                continue

            break

        logger.error("retry_exhausted", service=request.type.value, attempts=attempts, status=last_status)
        return RetryResult(ok=False, status=last_status, error=truncate(last_text), attempts=attempts)
