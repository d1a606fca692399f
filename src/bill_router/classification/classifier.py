"""Document classification: which billing services a document is routed to."""

from __future__ import annotations

import re

import structlog

from bill_router.classification.indicators import (
    count_billing_indicators,
    has_electricity_identifier,
    has_gas_identifier,
)
from bill_router.models.extraction import ExtractionResult
from bill_router.models.internal import ClassificationDecision
from bill_router.models.policy import DEFAULT_POLICY, RoutingPolicy

logger = structlog.get_logger(__name__)

CLASSIFIER_VERSION = "2025.11-indicators-v3"


def classify_document(
    extraction: ExtractionResult,
    policy: RoutingPolicy = DEFAULT_POLICY,
) -> ClassificationDecision:
    """Classify a validated extraction.

    A utility counts as present only when its identifier (MPRN or DG for
    electricity, GPRN for gas) is present *and* it reaches
    ``policy.indicator_threshold`` billing indicators.  A bare identifier is
    common on meter photos and must not trigger a full bill submission.  When
    neither utility qualifies the document goes to the meter endpoint.
    """
    elec_bill = extraction.electricity_bill
    gas_bill = extraction.gas_bill

    elec_count = count_billing_indicators(elec_bill)
    gas_count = count_billing_indicators(gas_bill)
    elec_id = has_electricity_identifier(elec_bill)
    gas_id = has_gas_identifier(gas_bill)

    decision = ClassificationDecision(
        has_electricity=elec_id and elec_count >= policy.indicator_threshold,
        has_gas=gas_id and gas_count >= policy.indicator_threshold,
        electricity_indicators=elec_count,
        gas_indicators=gas_count,
        has_electricity_identifier=elec_id,
        has_gas_identifier=gas_id,
        classifier_version=CLASSIFIER_VERSION,
    )

    logger.info(
        "document_classified",
        kind=decision.document_kind.value,
        electricity_indicators=elec_count,
        gas_indicators=gas_count,
        electricity_identifier=elec_id,
        gas_identifier=gas_id,
    )
    return decision


# ---------------------------------------------------------------------------
# Identifier normalisation
# ---------------------------------------------------------------------------


def _prefix(value: str | None, prefix: str) -> str:
    if not value:
        return ""
    upper = value.upper()
    return upper if upper.startswith(prefix) else f"{prefix}{upper}"


def prefix_mcc(value: str | None) -> str:
    """``"01"`` -> ``"MCC01"``; already prefixed or empty values pass through upper-cased."""
    return _prefix(value, "MCC")


def prefix_dg(value: str | None) -> str:
    """``"1"`` -> ``"DG1"``; already prefixed or empty values pass through upper-cased."""
    return _prefix(value, "DG")


def normalize_phone(phone: str | None) -> str:
    """Strip all whitespace from a phone number."""
    if not phone:
        return ""
    return re.sub(r"\s+", "", phone)
