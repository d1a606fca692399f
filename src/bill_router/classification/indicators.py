"""Billing indicator scoring.

A bill is scored on six signals that only a real bill (not a meter photo)
carries.  The count is a pure function of the bill and must be recomputed
whenever the bill changes.
"""

from __future__ import annotations

from bill_router.models.extraction import ElectricityBill, ExtractionResult, GasBill, UtilityBill

BILLING_INDICATORS: tuple[str, ...] = (
    "invoice_number",
    "account_number",
    "billing_period",
    "total_due",
    "meter_readings",
    "unit_rates",
)


def present_indicators(bill: UtilityBill | None) -> list[str]:
    """Return the names of the billing indicators *bill* carries."""
    if bill is None:
        return []
    checks = {
        "invoice_number": bool(bill.details.invoice_number),
        "account_number": bool(bill.details.account_number),
        "billing_period": bool(bill.supplier_details.billing_period),
        "total_due": bill.financial_information.total_due > 0,
        "meter_readings": len(bill.charges_and_usage.meter_readings) > 0,
        "unit_rates": bill.charges_and_usage.unit_rates is not None,
    }
    return [name for name in BILLING_INDICATORS if checks[name]]


def count_billing_indicators(bill: UtilityBill | None) -> int:
    """Score *bill* from 0 to 6."""
    return len(present_indicators(bill))


def has_billing_fields(bill: UtilityBill | None) -> bool:
    """Whether any of invoice number, account number or billing period is present."""
    if bill is None:
        return False
    return bool(
        bill.details.invoice_number
        or bill.details.account_number
        or bill.supplier_details.billing_period
    )


def has_any_data(bill: UtilityBill | None) -> bool:
    """Whether the branch holds anything at all: an identifier or an indicator."""
    if bill is None:
        return False
    return bill.has_identifier() or count_billing_indicators(bill) > 0


def electricity_indicators(extraction: ExtractionResult) -> int:
    return count_billing_indicators(extraction.electricity_bill)


def gas_indicators(extraction: ExtractionResult) -> int:
    return count_billing_indicators(extraction.gas_bill)


def has_electricity_identifier(bill: ElectricityBill | None) -> bool:
    return bill is not None and bill.has_identifier()


def has_gas_identifier(bill: GasBill | None) -> bool:
    return bill is not None and bill.has_identifier()
