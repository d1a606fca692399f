"""Test data factories for building extraction documents."""
from bill_router.models.extraction import ExtractionResult, normalize_extraction


def make_electricity_bill_dict(
    *,
    mprn: str = "10001234567",
    dg: str = "",
    mcc: str = "",
    invoice_number: str = "INV-1001",
    account_number: str = "ACC-2002",
    billing_period: str = "2024-01-01 to 2024-02-01",
    total_due: float = 123.45,
    meter_readings: list[dict] | None = None,
    unit_rates: dict | None = None,
    supplier: str = "Bord Gáis Energy",
    issue_date: str = "",
) -> dict:
    """Electricity branch in tool-call shape. Defaults carry 5 of the 6 billing indicators (no unit rates)."""
    if meter_readings is None:
        meter_readings = [{"reading_type": "A", "date": "2024-01-31", "day_reading": 12345}]
    charges: dict = {"meter_readings": meter_readings}
    if unit_rates is not None:
        charges["unit_rates"] = unit_rates
    return {
        "electricity_details": {
            "invoice_number": invoice_number,
            "account_number": account_number,
            "meter_details": {"mprn": mprn, "dg": dg, "mcc": mcc},
        },
        "supplier_details": {
            "name": supplier,
            "billing_period": billing_period,
            "issue_date": issue_date,
        },
        "charges_and_usage": charges,
        "financial_information": {"total_due": total_due},
    }


def make_gas_bill_dict(
    *,
    gprn: str = "1234567",
    invoice_number: str = "GINV-3003",
    account_number: str = "GACC-4004",
    billing_period: str = "2024-01-01 to 2024-02-01",
    total_due: float = 88.10,
    meter_readings: list[dict] | None = None,
    unit_rates: dict | None = None,
    supplier: str = "Bord Gáis Energy",
    calorific_value: float | None = None,
    conversion_factor: float | None = None,
) -> dict:
    """Gas branch in tool-call shape. Defaults carry 5 of the 6 billing indicators (no unit rates)."""
    if meter_readings is None:
        meter_readings = [{"meter_type": "A", "date": "2024-01-30", "reading": 2331}]
    charges: dict = {"meter_readings": meter_readings}
    if unit_rates is not None:
        charges["unit_rates"] = unit_rates
    details: dict = {
        "invoice_number": invoice_number,
        "account_number": account_number,
        "meter_details": {"gprn": gprn},
    }
    if calorific_value is not None:
        details["calorific_value"] = calorific_value
    if conversion_factor is not None:
        details["conversion_factor"] = conversion_factor
    return {
        "gas_details": details,
        "supplier_details": {"name": supplier, "billing_period": billing_period},
        "charges_and_usage": charges,
        "financial_information": {"total_due": total_due},
    }


def make_meter_photo_dict(*, mprn: str = "", gprn: str = "") -> dict:
    """A meter photo: identifiers only, no billing data."""
    electricity = [{"electricity_details": {"meter_details": {"mprn": mprn}}}] if mprn else []
    gas = [{"gas_details": {"meter_details": {"gprn": gprn}}}] if gprn else []
    return make_extraction_dict(electricity=electricity, gas=gas)


def make_customer_dict(name: str = "Mary Murphy", line_1: str = "1 Main Street", city: str = "Cork") -> dict:
    return {
        "details": {
            "customer_name": name,
            "address": {"line_1": line_1, "city": city, "county": "Cork", "eircode": "T12 AB34"},
        },
        "services": {"electricity": True, "gas": False, "broadband": False},
    }


def make_extraction_dict(
    *,
    electricity: list[dict] | None = None,
    gas: list[dict] | None = None,
    broadband: list[dict] | None = None,
    customer: dict | None = None,
) -> dict:
    return {
        "bills": {
            "cus_details": [customer] if customer else [],
            "electricity": electricity or [],
            "gas": gas or [],
            "broadband": broadband or [],
        }
    }


def make_extraction(**kwargs) -> ExtractionResult:
    return normalize_extraction(make_extraction_dict(**kwargs))
