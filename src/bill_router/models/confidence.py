"""Confidence scoring for an extraction and its classification.

The score (0-100) is the sum of three independently capped parts:

* key fields, capped at 40
* data completeness, capped at 35
* date consistency, starting at 25 and losing points per problem, floored at 0

Only utilities the classifier marked present contribute their bill fields.
The date check here expects ``DD/MM/YYYY - DD/MM/YYYY`` billing periods and is
unrelated to the ISO-based warnings of
:mod:`bill_router.classification.date_correlation`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field as dc_field
from datetime import date

from bill_router.models.extraction import (
    ElectricityBill,
    ExtractionResult,
    GasBill,
    UtilityBill,
    is_known_date,
)

KEY_FIELDS_CAP = 40
COMPLETENESS_CAP = 35
DATE_CONSISTENCY_MAX = 25

# ---------------------------------------------------------------------------
# Weights
# ---------------------------------------------------------------------------

CUSTOMER_WEIGHTS: dict[str, int] = {"customer_name": 5, "address": 5}

BILL_KEY_WEIGHTS: dict[str, int] = {"invoice_number": 7, "account_number": 7, "identifier": 8}

COMPLETENESS_WEIGHTS: dict[str, int] = {
    "billing_period": 5,
    "issue_date": 3,
    "meter_readings": 8,
    "usage_detail": 6,
    "total_due": 6,
}

ELECTRICITY_EXTRA_WEIGHTS: dict[str, int] = {"dg": 4, "mcc": 3}
GAS_EXTRA_WEIGHTS: dict[str, int] = {"conversion_factor": 3, "calorific_value": 4}

DATE_PENALTIES: dict[str, int] = {
    "missing_billing_period": 5,
    "unparseable_billing_period": 3,
    "invalid_period_range": 5,
    "reading_outside_period": 3,
    "issued_before_period_end": 2,
}

_DMY_DATE = re.compile(r"(\d{2})/(\d{2})/(\d{4})")
_DMY_PERIOD = re.compile(r"(\d{2}/\d{2}/\d{4})\s*-\s*(\d{2}/\d{2}/\d{4})")


@dataclass
class ConfidenceBreakdown:
    """Sub-scores and the penalties that shaped them."""

    key_fields: int
    completeness: int
    date_consistency: int
    penalties: list[str] = dc_field(default_factory=list)

    @property
    def score(self) -> int:
        total = self.key_fields + self.completeness + self.date_consistency
        return round(min(total, 100))


def parse_dmy_date(text: str) -> date | None:
    """Parse the first ``DD/MM/YYYY`` date in *text*; ``None`` when absent or invalid."""
    if not text:
        return None
    match = _DMY_DATE.search(text)
    if not match:
        return None
    day, month, year = (int(g) for g in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Sub-scores
# ---------------------------------------------------------------------------


def key_field_score(
    extraction: ExtractionResult,
    has_electricity: bool,
    has_gas: bool,
) -> int:
    score = 0
    customer = extraction.customer
    if customer is not None:
        if customer.customer_name:
            score += CUSTOMER_WEIGHTS["customer_name"]
        if not customer.address.is_empty():
            score += CUSTOMER_WEIGHTS["address"]

    bills: list[UtilityBill | None] = []
    if has_electricity:
        bills.append(extraction.electricity_bill)
    if has_gas:
        bills.append(extraction.gas_bill)

    for bill in bills:
        if bill is None:
            continue
        if bill.details.invoice_number:
            score += BILL_KEY_WEIGHTS["invoice_number"]
        if bill.details.account_number:
            score += BILL_KEY_WEIGHTS["account_number"]
        if bill.identifier:
            score += BILL_KEY_WEIGHTS["identifier"]

    return min(score, KEY_FIELDS_CAP)


def _common_completeness(bill: UtilityBill) -> int:
    score = 0
    if bill.supplier_details.billing_period:
        score += COMPLETENESS_WEIGHTS["billing_period"]
    if is_known_date(bill.supplier_details.issue_date):
        score += COMPLETENESS_WEIGHTS["issue_date"]
    if bill.charges_and_usage.meter_readings:
        score += COMPLETENESS_WEIGHTS["meter_readings"]
    if bill.charges_and_usage.usage_detail:
        score += COMPLETENESS_WEIGHTS["usage_detail"]
    if bill.financial_information.total_due > 0:
        score += COMPLETENESS_WEIGHTS["total_due"]
    return score


def completeness_score(
    extraction: ExtractionResult,
    has_electricity: bool,
    has_gas: bool,
) -> int:
    score = 0

    elec: ElectricityBill | None = extraction.electricity_bill if has_electricity else None
    if elec is not None:
        score += _common_completeness(elec)
        meter = elec.electricity_details.meter_details
        if meter.dg:
            score += ELECTRICITY_EXTRA_WEIGHTS["dg"]
        if meter.mcc:
            score += ELECTRICITY_EXTRA_WEIGHTS["mcc"]

    gas: GasBill | None = extraction.gas_bill if has_gas else None
    if gas is not None:
        score += _common_completeness(gas)
        if gas.gas_details.conversion_factor:
            score += GAS_EXTRA_WEIGHTS["conversion_factor"]
        if gas.gas_details.calorific_value:
            score += GAS_EXTRA_WEIGHTS["calorific_value"]

    return min(score, COMPLETENESS_CAP)


def _date_penalties(bill: UtilityBill | None, service: str) -> list[tuple[str, int]]:
    """Return ``(label, points)`` pairs for one bill's date problems."""
    period_text = bill.supplier_details.billing_period if bill is not None else ""
    if not period_text:
        return [(f"{service}:missing_billing_period", DATE_PENALTIES["missing_billing_period"])]

    match = _DMY_PERIOD.search(period_text)
    if not match:
        return [(f"{service}:unparseable_billing_period", DATE_PENALTIES["unparseable_billing_period"])]

    start = parse_dmy_date(match.group(1))
    end = parse_dmy_date(match.group(2))
    if start is None or end is None or start >= end:
        return [(f"{service}:invalid_period_range", DATE_PENALTIES["invalid_period_range"])]

    penalties: list[tuple[str, int]] = []
    for idx, reading in enumerate(bill.charges_and_usage.meter_readings):
        read_date = parse_dmy_date(reading.reading_date) if is_known_date(reading.reading_date) else None
        if read_date is not None and (read_date < start or read_date > end):
            penalties.append(
                (f"{service}:reading_{idx + 1}_outside_period", DATE_PENALTIES["reading_outside_period"])
            )

    issue_text = bill.supplier_details.issue_date
    issue = parse_dmy_date(issue_text) if is_known_date(issue_text) else None
    if issue is not None and issue < end:
        penalties.append((f"{service}:issued_before_period_end", DATE_PENALTIES["issued_before_period_end"]))

    return penalties


def date_consistency_score(
    extraction: ExtractionResult,
    has_electricity: bool,
    has_gas: bool,
    penalties: list[str] | None = None,
) -> int:
    score = DATE_CONSISTENCY_MAX
    found: list[tuple[str, int]] = []
    if has_electricity:
        found.extend(_date_penalties(extraction.electricity_bill, "electricity"))
    if has_gas:
        found.extend(_date_penalties(extraction.gas_bill, "gas"))

    for label, points in found:
        score -= points
        if penalties is not None:
            penalties.append(f"{label}:-{points}")

    return max(score, 0)


# ---------------------------------------------------------------------------
# Core scoring
# ---------------------------------------------------------------------------


def compute_confidence(
    extraction: ExtractionResult,
    has_electricity: bool,
    has_gas: bool,
) -> ConfidenceBreakdown:
    """Compute all three sub-scores for an extraction."""
    penalties: list[str] = []
    return ConfidenceBreakdown(
        key_fields=key_field_score(extraction, has_electricity, has_gas),
        completeness=completeness_score(extraction, has_electricity, has_gas),
        date_consistency=date_consistency_score(extraction, has_electricity, has_gas, penalties),
        penalties=penalties,
    )


def compute_confidence_score(
    extraction: ExtractionResult,
    has_electricity: bool,
    has_gas: bool,
) -> int:
    """Single 0-100 confidence score for an extraction and its classification."""
    return compute_confidence(extraction, has_electricity, has_gas).score
