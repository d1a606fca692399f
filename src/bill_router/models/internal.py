"""Request-scoped models passed between the routing stages.

Nothing here is persisted; each instance lives for one uploaded document.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field

from bill_router.models.extraction import ExtractionResult


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ServiceType(StrEnum):
    ELECTRICITY = "electricity"
    GAS = "gas"
    METER = "meter"


class DocumentKind(StrEnum):
    COMBINED_BILL = "combined_bill"
    ELECTRICITY_BILL = "electricity_bill"
    GAS_BILL = "gas_bill"
    METER_PHOTO = "meter_photo"
    METER_READING = "meter_reading"


# ---------------------------------------------------------------------------
# Consistency validation
# ---------------------------------------------------------------------------


class ClearedBranch(BaseModel):
    """A utility branch the consistency validator dropped, and why."""

    service: ServiceType
    rule: str
    reason: str


class ConsistencyReport(BaseModel):
    extraction: ExtractionResult
    cleared: list[ClearedBranch] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


class ClassificationDecision(BaseModel):
    """Which downstream services a document is routed to."""

    model_config = ConfigDict(frozen=True)

    has_electricity: bool
    has_gas: bool
    electricity_indicators: int = 0
    gas_indicators: int = 0
    has_electricity_identifier: bool = False
    has_gas_identifier: bool = False
    classifier_version: str = ""

    @computed_field
    @property
    def default_to_meter(self) -> bool:
        return not self.has_electricity and not self.has_gas

    @property
    def document_kind(self) -> DocumentKind:
        if self.has_electricity and self.has_gas:
            return DocumentKind.COMBINED_BILL
        if self.has_electricity:
            return DocumentKind.ELECTRICITY_BILL
        if self.has_gas:
            return DocumentKind.GAS_BILL
        if self.has_electricity_identifier or self.has_gas_identifier:
            return DocumentKind.METER_PHOTO
        return DocumentKind.METER_READING

    @property
    def services(self) -> list[ServiceType]:
        if self.default_to_meter:
            return [ServiceType.METER]
        services = []
        if self.has_electricity:
            services.append(ServiceType.ELECTRICITY)
        if self.has_gas:
            services.append(ServiceType.GAS)
        return services


# ---------------------------------------------------------------------------
# Downstream calls
# ---------------------------------------------------------------------------


class ApiCallSpec(BaseModel):
    """One outbound billing API request, built once and never mutated."""

    model_config = ConfigDict(frozen=True)

    endpoint: str
    service_type: ServiceType
    payload: dict[str, str] = Field(default_factory=dict)
    requires_file: bool = True


class ApiCallResult(BaseModel):
    """Outcome of a single billing API call."""

    type: ServiceType
    endpoint: str
    status: int
    ok: bool
    response: str | None = None
    error: str | None = None
    payload: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def failure(cls, spec: ApiCallSpec, message: str, status: int = 500) -> ApiCallResult:
        return cls(
            type=spec.service_type,
            endpoint=spec.endpoint,
            status=status,
            ok=False,
            error=message,
            payload=dict(spec.payload),
        )


# ---------------------------------------------------------------------------
# Retry
# ---------------------------------------------------------------------------


class RetryRequest(BaseModel):
    """A previously failed call, possibly with a corrected payload."""

    type: ServiceType
    endpoint: str
    payload: dict[str, Any] = Field(default_factory=dict)
    phone: str | None = None
    file_path: str | None = None
    file_url: str | None = None


class RetryResult(BaseModel):
    ok: bool
    status: int
    response: str | None = None
    error: str | None = None
    attempts: int = 0


# ---------------------------------------------------------------------------
# Aggregate outcome
# ---------------------------------------------------------------------------


class RoutingOutcome(BaseModel):
    """Everything the routing engine hands back for one document."""

    ok: bool
    confidence_score: int
    decision: ClassificationDecision
    has_broadband: bool = False
    electricity_date_warnings: list[str] = Field(default_factory=list)
    gas_date_warnings: list[str] = Field(default_factory=list)
    cleared_branches: list[ClearedBranch] = Field(default_factory=list)
    api_calls: list[ApiCallResult] = Field(default_factory=list)
    extraction: ExtractionResult
    input_type: str | None = None

    def to_response(self) -> dict:
        return {
            "ok": self.ok,
            "confidence_score": self.confidence_score,
            "parsed_data": self.extraction.to_bills_dict(),
            "classification": {
                "electricity": self.decision.has_electricity,
                "gas": self.decision.has_gas,
                "meter": self.decision.default_to_meter,
                "broadband": self.has_broadband,
            },
            "classification_details": {
                "document_kind": self.decision.document_kind.value,
                "classifier_version": self.decision.classifier_version,
                "electricity_indicators": self.decision.electricity_indicators,
                "gas_indicators": self.decision.gas_indicators,
                "electricity_date_warnings": self.electricity_date_warnings,
                "gas_date_warnings": self.gas_date_warnings,
                "cleared_branches": [c.model_dump(mode="json") for c in self.cleared_branches],
            },
            "api_calls": [c.model_dump(mode="json", exclude_none=True) for c in self.api_calls],
            "input_type": self.input_type,
        }
