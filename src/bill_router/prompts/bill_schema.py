"""JSON schema for the ``parse_irish_bill`` tool the vision model is forced to call."""

from __future__ import annotations

TOOL_NAME = "parse_irish_bill"
TOOL_DESCRIPTION = "Parse Irish utility bill and return structured data"

_S = {"type": "string"}
_N = {"type": "number"}
_B = {"type": "boolean"}
_CURRENCY = {"type": "string", "enum": ["cent", "euro"]}
_PERIOD = {"type": "string", "enum": ["daily", "annual"]}


def _obj(**properties) -> dict:
    return {"type": "object", "properties": properties}


def _arr(items: dict) -> dict:
    return {"type": "array", "items": items}


_SUPPLIER = _obj(name=_S, tariff_name=_S, issue_date=_S, billing_period=_S)
_FINANCIAL = _obj(total_due=_N, amount_due=_N, due_date=_S, payment_due_date=_S)

_CUSTOMER = _obj(
    details=_obj(
        customer_name=_S,
        address=_obj(line_1=_S, line_2=_S, city=_S, county=_S, eircode=_S),
    ),
    services=_obj(gas=_B, broadband=_B, electricity=_B),
)

_ELECTRICITY = {
    **_obj(
        electricity_details=_obj(
            invoice_number=_S,
            account_number=_S,
            contract_end_date=_S,
            meter_details=_obj(mprn=_S, dg=_S, mcc=_S, profile=_S),
        ),
        supplier_details=_SUPPLIER,
        charges_and_usage=_obj(
            meter_readings=_arr(_obj(
                reading_type=_S, date=_S, nsh_reading=_N, day_reading=_N, night_reading=_N, peak_reading=_N,
            )),
            detailed_kWh_usage=_arr(_obj(
                start_read_date=_S, end_read_date=_S, day_kWh=_N, night_kWh=_N, peak_kWh=_N, ev_kWh=_N,
            )),
            unit_rates=_obj(**{
                "24_hour_rate": _N, "day": _N, "night": _N, "peak": _N, "ev": _N, "nsh": _N,
                "rate_currency": _CURRENCY, "rate_discount_percentage": _N,
            }),
            standing_charge=_N,
            standing_charge_currency=_CURRENCY,
            standing_charge_period=_PERIOD,
            nsh_standing_charge=_N,
            nsh_standing_charge_currency=_CURRENCY,
            nsh_standing_charge_period=_PERIOD,
            pso_levy=_N,
        ),
        financial_information=_FINANCIAL,
    ),
    "additionalProperties": False,
}

_GAS = {
    **_obj(
        gas_details=_obj(
            invoice_number=_S,
            account_number=_S,
            contract_end_date=_S,
            calorific_value=_N,
            conversion_factor=_N,
            meter_details=_obj(gprn=_S),
        ),
        supplier_details=_SUPPLIER,
        charges_and_usage=_obj(
            meter_readings=_arr(_obj(meter_type=_S, date=_S, reading=_N)),
            gas_usage=_arr(_obj(start_read_date=_S, end_read_date=_S, units_m3=_N, kWh=_N)),
            unit_rates=_obj(rate=_N, rate_currency=_CURRENCY),
            standing_charge=_N,
            standing_charge_currency=_CURRENCY,
            standing_charge_period=_PERIOD,
            carbon_tax=_N,
        ),
        financial_information=_FINANCIAL,
    ),
    "additionalProperties": False,
}

_BROADBAND = {
    **_obj(
        broadband_details=_obj(account_number=_S, phone_numbers=_arr(_S)),
        supplier_details=_SUPPLIER,
        service_details=_obj(
            broadband_number=_S,
            uan_number=_S,
            connection_type=_S,
            home_phone_number=_S,
            mobile_phone_numbers=_arr(_S),
            utility_types=_arr(_S),
        ),
        package_information=_obj(
            package_name=_S,
            contract_changes=_S,
            contract_end_date=_S,
            what_s_included=_obj(
                calls=_S, usage=_S, bandwidth=_S, usage_minutes=_S, int_call_packages=_S, local_national_calls=_S,
            ),
        ),
        financial_information=_obj(
            previous_bill_amount=_N,
            total_due=_N,
            amount_due=_N,
            due_date=_S,
            payment_due_date=_S,
            payment_method=_S,
            payments_received=_S,
            bank_details=_obj(iban=_S, bic=_S),
        ),
    ),
    "additionalProperties": False,
}

BILL_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "bills": {
            "type": "object",
            "properties": {
                "cus_details": _arr(_CUSTOMER),
                "electricity": _arr(_ELECTRICITY),
                "gas": _arr(_GAS),
                "broadband": _arr(_BROADBAND),
            },
            "required": ["cus_details", "electricity", "gas", "broadband"],
            "additionalProperties": True,
        },
    },
    "required": ["bills"],
    "additionalProperties": False,
}


def bill_tool() -> dict:
    """The tool definition in chat-completions format."""
    return {
        "type": "function",
        "function": {
            "name": TOOL_NAME,
            "description": TOOL_DESCRIPTION,
            "parameters": BILL_SCHEMA,
        },
    }
