"""Build one outbound request per classified service."""

from __future__ import annotations

import structlog

from bill_router.classification.classifier import normalize_phone, prefix_dg, prefix_mcc
from bill_router.models.extraction import ExtractionResult
from bill_router.models.internal import ApiCallSpec, ClassificationDecision, ServiceType
from bill_router.routing.endpoints import Endpoints

logger = structlog.get_logger(__name__)

CONTENT_TYPES_BY_EXTENSION: dict[str, str] = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".pdf": "application/pdf",
    ".csv": "text/csv",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def resolve_content_type(header: str | None, filename: str) -> str:
    """Use the upstream ``Content-Type`` header, else infer from the extension."""
    if header:
        return header
    lowered = filename.lower().split("?", 1)[0]
    for extension, content_type in CONTENT_TYPES_BY_EXTENSION.items():
        if lowered.endswith(extension):
            return content_type
    return DEFAULT_CONTENT_TYPE


def build_meter_payload(phone: str) -> dict[str, str]:
    return {"phone": normalize_phone(phone)}


def build_electricity_payload(extraction: ExtractionResult, phone: str) -> dict[str, str]:
    bill = extraction.electricity_bill
    meter = bill.electricity_details.meter_details if bill is not None else None
    return {
        "phone": normalize_phone(phone),
        "mprn": meter.mprn if meter else "",
        "mcc_type": prefix_mcc(meter.mcc if meter else ""),
        "dg_type": prefix_dg(meter.dg if meter else ""),
    }


def build_gas_payload(extraction: ExtractionResult, phone: str) -> dict[str, str]:
    bill = extraction.gas_bill
    return {
        "phone": normalize_phone(phone),
        "gprn": bill.identifier if bill is not None else "",
    }


def build_api_calls(
    decision: ClassificationDecision,
    extraction: ExtractionResult,
    phone: str,
    endpoints: Endpoints,
) -> list[ApiCallSpec]:
    """Return one :class:`ApiCallSpec` per applicable, enabled service.

    Meter calls carry only the phone number: at that confidence no extracted
    identifier is trusted.  Every call attaches the same original file.
    """
    calls: list[ApiCallSpec] = []
    for service in decision.services:
        endpoint = endpoints.for_service(service)
        if not endpoint:
            logger.warning("service_endpoint_disabled", service=service.value)
            continue

        if service == ServiceType.ELECTRICITY:
            payload = build_electricity_payload(extraction, phone)
        elif service == ServiceType.GAS:
            payload = build_gas_payload(extraction, phone)
        else:
            payload = build_meter_payload(phone)

        calls.append(ApiCallSpec(endpoint=endpoint, service_type=service, payload=payload, requires_file=True))

    return calls
