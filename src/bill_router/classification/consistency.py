"""Cross-checks between the electricity and gas branches of an extraction.

Most Irish bills are single-service, yet vision models regularly populate the
other utility with a stray identifier or a copied account number.  The rules
below drop a branch when it looks more like cross-contamination than billing
data.  They run in order on a copy of the extraction and each one sees the
clears made by the rules before it.
"""

from __future__ import annotations

import structlog

from bill_router.classification.indicators import (
    count_billing_indicators,
    has_any_data,
    has_billing_fields,
)
from bill_router.models.extraction import ExtractionResult
from bill_router.models.internal import ClearedBranch, ConsistencyReport, ServiceType
from bill_router.models.policy import DEFAULT_POLICY, RoutingPolicy

logger = structlog.get_logger(__name__)

RULE_ASYMMETRIC_STRENGTH = "asymmetric_strength"
RULE_SINGLE_SERVICE_SUPPLIER = "single_service_supplier"
RULE_IDENTIFIER_WITHOUT_BILLING = "identifier_without_billing_fields"


def _clear(extraction: ExtractionResult, service: ServiceType, rule: str, reason: str,
           cleared: list[ClearedBranch]) -> None:
    if service == ServiceType.ELECTRICITY:
        extraction.electricity = []
    else:
        extraction.gas = []
    cleared.append(ClearedBranch(service=service, rule=rule, reason=reason))
    logger.warning("consistency_branch_cleared", service=service.value, rule=rule, reason=reason)


def apply_asymmetric_strength(extraction: ExtractionResult, policy: RoutingPolicy,
                              cleared: list[ClearedBranch]) -> None:
    """Clear a weak branch sitting next to a strong one."""
    elec = count_billing_indicators(extraction.electricity_bill)
    gas = count_billing_indicators(extraction.gas_bill)

    if elec >= policy.strong_indicator_min and 0 < gas <= policy.weak_indicator_max:
        _clear(extraction, ServiceType.GAS, RULE_ASYMMETRIC_STRENGTH,
               f"electricity has {elec} indicators, gas only {gas}", cleared)
    elif gas >= policy.strong_indicator_min and 0 < elec <= policy.weak_indicator_max:
        _clear(extraction, ServiceType.ELECTRICITY, RULE_ASYMMETRIC_STRENGTH,
               f"gas has {gas} indicators, electricity only {elec}", cleared)


def apply_single_service_supplier(extraction: ExtractionResult, policy: RoutingPolicy,
                                  cleared: list[ClearedBranch]) -> None:
    """Clear the other branch when the named supplier only sells one utility."""
    elec_bill = extraction.electricity_bill
    gas_bill = extraction.gas_bill
    elec_supplier = elec_bill.supplier_details.name if elec_bill else ""
    gas_supplier = gas_bill.supplier_details.name if gas_bill else ""

    if policy.is_electricity_only_supplier(elec_supplier) and has_any_data(gas_bill):
        _clear(extraction, ServiceType.GAS, RULE_SINGLE_SERVICE_SUPPLIER,
               f"supplier '{elec_supplier}' is electricity-only", cleared)
    elif policy.is_gas_only_supplier(gas_supplier) and has_any_data(elec_bill):
        _clear(extraction, ServiceType.ELECTRICITY, RULE_SINGLE_SERVICE_SUPPLIER,
               f"supplier '{gas_supplier}' is gas-only", cleared)


def apply_identifier_without_billing(extraction: ExtractionResult, policy: RoutingPolicy,
                                     cleared: list[ClearedBranch]) -> None:
    """Clear branches that carry an identifier but nothing a bill would have.

    This is the meter photo case: an MPRN/GPRN printed on the meter leaked into
    the extraction without any invoice, account or billing period.
    """
    for service, bill in (
        (ServiceType.ELECTRICITY, extraction.electricity_bill),
        (ServiceType.GAS, extraction.gas_bill),
    ):
        if bill is None or not bill.has_identifier() or has_billing_fields(bill):
            continue
        count = count_billing_indicators(bill)
        if count <= policy.meter_photo_indicator_max:
            _clear(extraction, service, RULE_IDENTIFIER_WITHOUT_BILLING,
                   f"identifier present with {count} indicators and no billing fields", cleared)


def validate_consistency(
    extraction: ExtractionResult,
    policy: RoutingPolicy = DEFAULT_POLICY,
) -> ConsistencyReport:
    """Run all consistency rules on a copy of *extraction*."""
    validated = extraction.model_copy(deep=True)
    cleared: list[ClearedBranch] = []

    apply_asymmetric_strength(validated, policy, cleared)
    apply_single_service_supplier(validated, policy, cleared)
    apply_identifier_without_billing(validated, policy, cleared)

    logger.info(
        "consistency_validation_complete",
        cleared=[c.service.value for c in cleared],
        electricity_indicators=count_billing_indicators(validated.electricity_bill),
        gas_indicators=count_billing_indicators(validated.gas_bill),
    )
    return ConsistencyReport(extraction=validated, cleared=cleared)
