"""Normalised extraction result returned by the vision model.

The model answers with a best-effort JSON document shaped by the
``parse_irish_bill`` tool schema.  Sections may be missing, ``null``, of the
wrong scalar type or of the wrong shape (a string where a list or object
belongs).  :func:`normalize_extraction` is the single boundary where
that is repaired: past it, every list exists, every number is a float
(``0`` when unknown) and every date is a string (``"0000-00-00"`` when
unknown), so downstream code never has to guard against ``None``.
"""

from __future__ import annotations

import re
from typing import Annotated, Any, TypeVar

import structlog
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError, model_validator

from bill_router.exceptions import ExtractionError

logger = structlog.get_logger(__name__)

UNKNOWN_DATE = "0000-00-00"


# ---------------------------------------------------------------------------
# Scalar coercion
# ---------------------------------------------------------------------------


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else ""
    return str(value).strip()


def _as_amount(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        cleaned = re.sub(r"[€£,\s]", "", value)
        try:
            return float(cleaned)
        except ValueError:
            return 0.0
    return 0.0


def _as_date(value: Any) -> str:
    text = _as_text(value)
    return text or UNKNOWN_DATE


def _as_period(value: Any) -> str:
    """Billing periods are free text; structured ``{start_date, end_date}`` is flattened."""
    if isinstance(value, dict):
        start = _as_text(value.get("start_date") or value.get("start"))
        end = _as_text(value.get("end_date") or value.get("end"))
        if start and end:
            return f"{start} to {end}"
        return start or end
    return _as_text(value)


def _as_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "y", "1")
    return False


def _as_records(value: Any) -> list:
    """A list of objects; a lone object is wrapped and scalar items are dropped."""
    if isinstance(value, (dict, BaseModel)):
        value = [value]
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, (dict, BaseModel))]


def _as_text_list(value: Any) -> list:
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        return [value]
    if not isinstance(value, list):
        return []
    return [item for item in value if item is not None]


def _as_mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _as_optional_mapping(value: Any) -> dict | None:
    return value if isinstance(value, dict) else None


Text = Annotated[str, BeforeValidator(_as_text)]
Amount = Annotated[float, BeforeValidator(_as_amount)]
DateText = Annotated[str, BeforeValidator(_as_date)]
PeriodText = Annotated[str, BeforeValidator(_as_period)]
Flag = Annotated[bool, BeforeValidator(_as_flag)]
TextList = Annotated[list[Text], BeforeValidator(_as_text_list)]
Mapping = Annotated[dict[str, Any], BeforeValidator(_as_mapping)]
OptionalMapping = Annotated[dict[str, Any] | None, BeforeValidator(_as_optional_mapping)]

T = TypeVar("T")
Records = Annotated[list[T], BeforeValidator(_as_records)]


def is_known_date(value: str) -> bool:
    return bool(value) and value != UNKNOWN_DATE


class _Section(BaseModel):
    """Base for every extracted section: unknown keys are kept, nulls fall back to defaults."""

    model_config = ConfigDict(extra="allow")

    @classmethod
    def _from_scalar(cls, value: Any) -> dict:
        """Fields recovered from a non-object value; most sections keep nothing."""
        return {}

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, BaseModel):
            return data
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        if data is None:
            return {}
        return cls._from_scalar(data)


# ---------------------------------------------------------------------------
# Customer
# ---------------------------------------------------------------------------


class Address(_Section):
    line_1: Text = ""
    line_2: Text = ""
    city: Text = ""
    county: Text = ""
    eircode: Text = ""

    def is_empty(self) -> bool:
        return not any((self.line_1, self.line_2, self.city, self.county, self.eircode))

    @classmethod
    def _from_scalar(cls, value: Any) -> dict:
        # A one-line address lands in line_1
        return {"line_1": value} if isinstance(value, str) else {}


class ServiceFlags(_Section):
    gas: Flag = False
    electricity: Flag = False
    broadband: Flag = False


class CustomerRecord(_Section):
    customer_name: Text = ""
    address: Address = Field(default_factory=Address)
    services: ServiceFlags = Field(default_factory=ServiceFlags)

    @model_validator(mode="before")
    @classmethod
    def _flatten_details(cls, data: Any) -> Any:
        # Tool output nests name/address under ``details``
        if isinstance(data, dict) and isinstance(data.get("details"), dict):
            flattened = {k: v for k, v in data.items() if k != "details"}
            for key, value in data["details"].items():
                flattened.setdefault(key, value)
            return flattened
        return data


# ---------------------------------------------------------------------------
# Shared bill sections
# ---------------------------------------------------------------------------


class SupplierDetails(_Section):
    name: Text = ""
    tariff_name: Text = ""
    issue_date: DateText = UNKNOWN_DATE
    billing_period: PeriodText = ""


class FinancialInformation(_Section):
    total_due: Amount = 0.0
    amount_due: Amount = 0.0
    due_date: DateText = UNKNOWN_DATE
    payment_due_date: DateText = UNKNOWN_DATE


class AccountDetails(_Section):
    invoice_number: Text = ""
    account_number: Text = ""
    contract_end_date: DateText = UNKNOWN_DATE


class MeterReading(_Section):
    reading_type: Text = ""
    date: DateText = UNKNOWN_DATE
    read_date: DateText = UNKNOWN_DATE

    @property
    def reading_date(self) -> str:
        """The reading's date, whichever of ``date``/``read_date`` the model filled in."""
        return self.date if is_known_date(self.date) else self.read_date


class ChargesAndUsage(_Section):
    unit_rates: OptionalMapping = None
    standing_charge: Amount = 0.0
    standing_charge_currency: Text = ""
    standing_charge_period: Text = ""


# ---------------------------------------------------------------------------
# Electricity
# ---------------------------------------------------------------------------


class ElectricityMeterDetails(_Section):
    mprn: Text = ""
    dg: Text = ""
    mcc: Text = ""
    profile: Text = ""


class ElectricityDetails(AccountDetails):
    meter_details: ElectricityMeterDetails = Field(default_factory=ElectricityMeterDetails)


class ElectricityMeterReading(MeterReading):
    nsh_reading: Amount = 0.0
    day_reading: Amount = 0.0
    night_reading: Amount = 0.0
    peak_reading: Amount = 0.0


class ElectricityChargesAndUsage(ChargesAndUsage):
    meter_readings: Records[ElectricityMeterReading] = Field(default_factory=list)
    detailed_kWh_usage: Records[dict[str, Any]] = Field(default_factory=list)
    nsh_standing_charge: Amount = 0.0
    nsh_standing_charge_currency: Text = ""
    nsh_standing_charge_period: Text = ""
    pso_levy: Amount = 0.0

    @property
    def usage_detail(self) -> list[dict[str, Any]]:
        return self.detailed_kWh_usage


class ElectricityBill(_Section):
    electricity_details: ElectricityDetails = Field(default_factory=ElectricityDetails)
    supplier_details: SupplierDetails = Field(default_factory=SupplierDetails)
    charges_and_usage: ElectricityChargesAndUsage = Field(default_factory=ElectricityChargesAndUsage)
    financial_information: FinancialInformation = Field(default_factory=FinancialInformation)

    @property
    def details(self) -> ElectricityDetails:
        return self.electricity_details

    @property
    def identifier(self) -> str:
        """Primary supply identifier (MPRN)."""
        return self.electricity_details.meter_details.mprn

    def has_identifier(self) -> bool:
        meter = self.electricity_details.meter_details
        return bool(meter.mprn or meter.dg)


# ---------------------------------------------------------------------------
# Gas
# ---------------------------------------------------------------------------


class GasMeterDetails(_Section):
    gprn: Text = ""


class GasDetails(AccountDetails):
    meter_details: GasMeterDetails = Field(default_factory=GasMeterDetails)
    calorific_value: Amount = 0.0
    conversion_factor: Amount = 0.0


class GasMeterReading(MeterReading):
    meter_type: Text = ""
    reading: Amount = 0.0


class GasChargesAndUsage(ChargesAndUsage):
    meter_readings: Records[GasMeterReading] = Field(default_factory=list)
    gas_usage: Records[dict[str, Any]] = Field(default_factory=list)
    carbon_tax: Amount = 0.0

    @property
    def usage_detail(self) -> list[dict[str, Any]]:
        return self.gas_usage


class GasBill(_Section):
    gas_details: GasDetails = Field(default_factory=GasDetails)
    supplier_details: SupplierDetails = Field(default_factory=SupplierDetails)
    charges_and_usage: GasChargesAndUsage = Field(default_factory=GasChargesAndUsage)
    financial_information: FinancialInformation = Field(default_factory=FinancialInformation)

    @property
    def details(self) -> GasDetails:
        return self.gas_details

    @property
    def identifier(self) -> str:
        """Primary supply identifier (GPRN)."""
        return self.gas_details.meter_details.gprn

    def has_identifier(self) -> bool:
        return bool(self.gas_details.meter_details.gprn)


UtilityBill = ElectricityBill | GasBill


# ---------------------------------------------------------------------------
# Broadband (extracted for display only, never routed)
# ---------------------------------------------------------------------------


class BroadbandDetails(_Section):
    account_number: Text = ""
    phone_numbers: TextList = Field(default_factory=list)


class BroadbandFinancialInformation(FinancialInformation):
    previous_bill_amount: Amount = 0.0
    payment_method: Text = ""
    payments_received: Text = ""
    bank_details: Mapping = Field(default_factory=dict)


class BroadbandBill(_Section):
    broadband_details: BroadbandDetails = Field(default_factory=BroadbandDetails)
    supplier_details: SupplierDetails = Field(default_factory=SupplierDetails)
    service_details: Mapping = Field(default_factory=dict)
    package_information: Mapping = Field(default_factory=dict)
    financial_information: BroadbandFinancialInformation = Field(
        default_factory=BroadbandFinancialInformation
    )


# ---------------------------------------------------------------------------
# Top level
# ---------------------------------------------------------------------------


class ExtractionResult(_Section):
    """The structured bill document, normalised."""

    customer: CustomerRecord | None = None
    electricity: Records[ElectricityBill] = Field(default_factory=list)
    gas: Records[GasBill] = Field(default_factory=list)
    broadband: Records[BroadbandBill] = Field(default_factory=list)

    @property
    def electricity_bill(self) -> ElectricityBill | None:
        return self.electricity[0] if self.electricity else None

    @property
    def gas_bill(self) -> GasBill | None:
        return self.gas[0] if self.gas else None

    def to_bills_dict(self) -> dict:
        """Serialise back into the tool-call shape (``{"bills": {...}}``)."""
        data = self.model_dump(mode="json")
        customer = data.pop("customer")
        cus_details = []
        if customer is not None:
            cus_details.append({
                "details": {
                    "customer_name": customer.pop("customer_name"),
                    "address": customer.pop("address"),
                },
                "services": customer.pop("services"),
                **customer,
            })
        return {"bills": {"cus_details": cus_details, **data}}


def normalize_extraction(raw: dict | ExtractionResult | None) -> ExtractionResult:
    """Build an :class:`ExtractionResult` from raw model output.

    Accepts either the tool-call shape ``{"bills": {"cus_details": [...], ...}}``
    or the flattened shape ``{"customer": {...}, "electricity": [...], ...}``.
    Missing, ``null`` or mis-shaped sections become empty; a non-dict input
    yields an empty result.

    Raises:
        ExtractionError: if the document still cannot be validated.
    """
    if isinstance(raw, ExtractionResult):
        return raw
    if not isinstance(raw, dict):
        return ExtractionResult()

    bills = raw.get("bills") if isinstance(raw.get("bills"), dict) else raw
    data: dict[str, Any] = {section: bills.get(section) for section in ("electricity", "gas", "broadband")}

    customer = bills.get("customer")
    if customer is None:
        customer = bills.get("cus_details")
    if isinstance(customer, list):
        customer = next((c for c in customer if isinstance(c, dict)), None)
    if isinstance(customer, dict):
        data["customer"] = customer

    try:
        return ExtractionResult.model_validate(data)
    except ValidationError as exc:
        logger.error("extraction_validation_failed", errors=exc.error_count())
        raise ExtractionError("Unusable structured data returned from AI", details=str(exc)[:500]) from exc
