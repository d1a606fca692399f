"""Routing pipeline: extract → validate → classify → score → dispatch."""
from __future__ import annotations

import time
from dataclasses import dataclass, field

import httpx
import structlog

from .classification.classifier import classify_document, normalize_phone
from .classification.consistency import validate_consistency
from .classification.date_correlation import bill_date_warnings
from .config import Settings
from .exceptions import FileFetchError
from .llm.base import VisionExtractor
from .llm.openai_client import OpenAIVisionExtractor
from .models.confidence import ConfidenceBreakdown, compute_confidence
from .models.extraction import ExtractionResult, normalize_extraction
from .models.internal import (
    ApiCallResult,
    ApiCallSpec,
    ClassificationDecision,
    ClearedBranch,
    RetryRequest,
    RetryResult,
    RoutingOutcome,
)
from .models.policy import DEFAULT_POLICY, RoutingPolicy
from .routing.dispatcher import BillingApiClient
from .routing.endpoints import Endpoints
from .routing.payloads import build_api_calls
from .routing.retry import RetryCoordinator
from .storage import database
from .storage.files import FileReference, OriginalFile, fetch_file
from .storage.repositories import EndpointRegistry

logger = structlog.get_logger(__name__)


@dataclass
class RoutingPlan:
    """Everything decided about a document before any call goes out."""

    extraction: ExtractionResult
    cleared: list[ClearedBranch]
    decision: ClassificationDecision
    confidence: ConfidenceBreakdown
    api_calls: list[ApiCallSpec] = field(default_factory=list)
    electricity_date_warnings: list[str] = field(default_factory=list)
    gas_date_warnings: list[str] = field(default_factory=list)

    @property
    def has_broadband(self) -> bool:
        return bool(self.extraction.broadband)

    def to_outcome(self, api_calls: list[ApiCallResult], input_type: str | None = None) -> RoutingOutcome:
        return RoutingOutcome(
            ok=bool(api_calls) and all(call.ok for call in api_calls),
            confidence_score=self.confidence.score,
            decision=self.decision,
            has_broadband=self.has_broadband,
            electricity_date_warnings=self.electricity_date_warnings,
            gas_date_warnings=self.gas_date_warnings,
            cleared_branches=self.cleared,
            api_calls=api_calls,
            extraction=self.extraction,
            input_type=input_type,
        )


def plan_routing(
    raw: dict | ExtractionResult | None,
    phone: str,
    endpoints: Endpoints,
    policy: RoutingPolicy = DEFAULT_POLICY,
) -> RoutingPlan:
    """Pure routing decision for one extraction; performs no I/O."""
    extraction = normalize_extraction(raw)
    report = validate_consistency(extraction, policy)
    validated = report.extraction

    decision = classify_document(validated, policy)
    confidence = compute_confidence(validated, decision.has_electricity, decision.has_gas)
    elec_warnings = bill_date_warnings(validated.electricity_bill)
    gas_warnings = bill_date_warnings(validated.gas_bill)
    if elec_warnings or gas_warnings:
        logger.warning(
            "meter_reading_date_warnings",
            electricity=len(elec_warnings),
            gas=len(gas_warnings),
        )

    return RoutingPlan(
        extraction=validated,
        cleared=report.cleared,
        decision=decision,
        confidence=confidence,
        api_calls=build_api_calls(decision, validated, phone, endpoints),
        electricity_date_warnings=elec_warnings,
        gas_date_warnings=gas_warnings,
    )


class BillRoutingPipeline:
    """Orchestrates extraction, classification and the billing API calls.

    The ``httpx.AsyncClient`` is shared by file downloads and billing calls;
    when the pipeline creates it, :meth:`aclose` closes it.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        extractor: VisionExtractor | None = None,
        http_client: httpx.AsyncClient | None = None,
        policy: RoutingPolicy | None = None,
    ):
        self.settings = settings
        self.policy = policy or RoutingPolicy.from_settings(settings)
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=settings.http_timeout)
        self._extractor = extractor
        self._registry = EndpointRegistry(Endpoints.from_settings(settings))

    @property
    def extractor(self) -> VisionExtractor:
        if self._extractor is None:
            self._extractor = OpenAIVisionExtractor(
                api_key=self.settings.llm_api_key.get_secret_value(),
                model=self.settings.extraction_model,
                base_url=self.settings.llm_base_url,
                temperature=self.settings.llm_temperature,
                timeout=self.settings.llm_timeout,
            )
        return self._extractor

    def _billing_client(self) -> BillingApiClient:
        return BillingApiClient(self.settings.onebill_api_key.get_secret_value(), self._http)

    async def aclose(self):
        if self._owns_client:
            await self._http.aclose()

    async def resolve_endpoints(self) -> Endpoints:
        """Defaults from settings, overridden by the config store when one is set up."""
        if not database.is_configured():
            return self._registry.defaults
        async with database.AsyncSessionLocal() as session:
            return await self._registry.resolve(session)

    async def parse(self, phone: str, file_ref: FileReference) -> RoutingOutcome:
        """Extract a bill with the vision model, then route it."""
        if not normalize_phone(phone):
            raise ValueError("phone is required")
        url = file_ref.resolve_url(self.settings.file_base_url)
        if url is None:
            raise ValueError("file_path or image_url is required")

        start = time.monotonic()
        raw = await self.extractor.extract([url], is_pdf=file_ref.is_pdf)
        logger.info(
            "extraction_complete",
            model=self.extractor.get_model_name(),
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        return await self.route(raw, phone, file_ref, input_type="pdf" if file_ref.is_pdf else "image")

    async def route(
        self,
        raw: dict | ExtractionResult | None,
        phone: str,
        file_ref: FileReference | None = None,
        *,
        input_type: str | None = None,
    ) -> RoutingOutcome:
        """Route an already-extracted document and send the billing calls."""
        endpoints = await self.resolve_endpoints()
        plan = plan_routing(raw, phone, endpoints, self.policy)

        results: list[ApiCallResult] = []
        if plan.api_calls:
            results = await self._dispatch(plan.api_calls, file_ref)

        outcome = plan.to_outcome(results, input_type=input_type)
        logger.info(
            "routing_complete",
            ok=outcome.ok,
            kind=plan.decision.document_kind.value,
            confidence_score=outcome.confidence_score,
            calls=[(r.type.value, r.status) for r in results],
        )
        return outcome

    async def _dispatch(
        self,
        specs: list[ApiCallSpec],
        file_ref: FileReference | None,
    ) -> list[ApiCallResult]:
        file: OriginalFile | None = None
        if file_ref is not None and not file_ref.is_empty():
            try:
                file = await fetch_file(self._http, file_ref, self.settings.file_base_url)
            except FileFetchError as exc:
                return [ApiCallResult.failure(spec, str(exc)) for spec in specs]

        return await self._billing_client().dispatch_all(specs, file)

    async def retry(self, request: RetryRequest) -> RetryResult:
        coordinator = RetryCoordinator(
            self._billing_client(),
            self._http,
            self.settings.file_base_url,
            max_attempts=self.settings.retry_max_attempts,
            base_delay=self.settings.retry_base_delay,
        )
        return await coordinator.retry(request)
