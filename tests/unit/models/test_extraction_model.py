"""Test normalisation of raw vision model output."""
import pytest
from pydantic import TypeAdapter
from bill_router.exceptions import ExtractionError
from bill_router.models.extraction import (
    UNKNOWN_DATE,
    ExtractionResult,
    is_known_date,
    normalize_extraction,
)
from tests.factories import make_customer_dict, make_electricity_bill_dict, make_extraction_dict


class TestNormalizeExtraction:
    def test_none_gives_empty_result(self):
        result = normalize_extraction(None)
        assert result.electricity == []
        assert result.gas == []
        assert result.broadband == []
        assert result.customer is None

    def test_existing_result_passes_through(self):
        original = ExtractionResult()
        assert normalize_extraction(original) is original

    def test_bills_shape(self):
        raw = make_extraction_dict(electricity=[make_electricity_bill_dict()], customer=make_customer_dict())
        result = normalize_extraction(raw)
        assert len(result.electricity) == 1
        assert result.electricity_bill.identifier == "10001234567"
        assert result.customer.customer_name == "Mary Murphy"
        assert result.customer.address.city == "Cork"
        assert result.customer.services.electricity is True

    def test_flat_shape(self):
        result = normalize_extraction({
            "customer": {"customer_name": "Sean"},
            "gas": [{"gas_details": {"meter_details": {"gprn": "7654321"}}}],
        })
        assert result.customer.customer_name == "Sean"
        assert result.gas_bill.identifier == "7654321"
        assert result.electricity == []

    def test_null_sections_become_empty(self):
        result = normalize_extraction({"bills": {"electricity": None, "gas": None, "cus_details": None}})
        assert result.electricity == []
        assert result.gas == []
        assert result.customer is None

    def test_single_dict_section_is_wrapped(self):
        result = normalize_extraction({"bills": {"electricity": make_electricity_bill_dict()}})
        assert len(result.electricity) == 1

    def test_non_dict_entries_dropped(self):
        result = normalize_extraction({"bills": {"gas": ["oops", None, {"gas_details": None}]}})
        assert len(result.gas) == 1
        assert result.gas_bill.identifier == ""

    def test_nulls_fall_back_to_defaults(self):
        result = normalize_extraction({"bills": {"electricity": [{
            "electricity_details": {"invoice_number": None, "meter_details": None},
            "supplier_details": {"issue_date": None, "billing_period": None},
            "charges_and_usage": {"meter_readings": None, "unit_rates": None},
            "financial_information": {"total_due": None},
        }]}})
        bill = result.electricity_bill
        assert bill.details.invoice_number == ""
        assert bill.identifier == ""
        assert bill.supplier_details.issue_date == UNKNOWN_DATE
        assert bill.supplier_details.billing_period == ""
        assert bill.charges_and_usage.meter_readings == []
        assert bill.charges_and_usage.unit_rates is None
        assert bill.financial_information.total_due == 0.0

    def test_amounts_are_coerced(self):
        raw = make_electricity_bill_dict()
        raw["financial_information"] = {"total_due": "€1,234.50", "amount_due": "n/a"}
        bill = normalize_extraction({"bills": {"electricity": [raw]}}).electricity_bill
        assert bill.financial_information.total_due == 1234.5
        assert bill.financial_information.amount_due == 0.0

    def test_structured_billing_period_is_flattened(self):
        raw = make_electricity_bill_dict()
        raw["supplier_details"]["billing_period"] = {"start_date": "2024-01-01", "end_date": "2024-02-01"}
        bill = normalize_extraction({"bills": {"electricity": [raw]}}).electricity_bill
        assert bill.supplier_details.billing_period == "2024-01-01 to 2024-02-01"

    def test_numeric_identifier_becomes_text(self):
        raw = make_electricity_bill_dict()
        raw["electricity_details"]["meter_details"]["mprn"] = 10001234567
        bill = normalize_extraction({"bills": {"electricity": [raw]}}).electricity_bill
        assert bill.identifier == "10001234567"

    def test_unknown_keys_are_kept(self):
        raw = make_electricity_bill_dict()
        raw["electricity_details"]["meter_details"]["meter_serial"] = "SN-99"
        bill = normalize_extraction({"bills": {"electricity": [raw]}}).electricity_bill
        dumped = bill.model_dump()
        assert dumped["electricity_details"]["meter_details"]["meter_serial"] == "SN-99"

    def test_reading_date_falls_back_to_read_date(self):
        raw = make_electricity_bill_dict(meter_readings=[{"read_date": "2024-01-20"}])
        bill = normalize_extraction({"bills": {"electricity": [raw]}}).electricity_bill
        assert bill.charges_and_usage.meter_readings[0].reading_date == "2024-01-20"

    def test_dg_alone_is_an_identifier(self):
        raw = make_electricity_bill_dict(mprn="", dg="DG1")
        bill = normalize_extraction({"bills": {"electricity": [raw]}}).electricity_bill
        assert bill.has_identifier()
        assert bill.identifier == ""


class TestToBillsDict:
    def test_tool_call_shape(self):
        raw = make_extraction_dict(electricity=[make_electricity_bill_dict()], customer=make_customer_dict())
        data = normalize_extraction(raw).to_bills_dict()
        bills = data["bills"]
        assert set(bills) >= {"cus_details", "electricity", "gas", "broadband"}
        assert bills["cus_details"][0]["details"]["customer_name"] == "Mary Murphy"
        assert bills["electricity"][0]["electricity_details"]["meter_details"]["mprn"] == "10001234567"
        assert bills["gas"] == []

    def test_no_customer(self):
        assert normalize_extraction(None).to_bills_dict()["bills"]["cus_details"] == []


def test_is_known_date():
    assert is_known_date("2024-01-01")
    assert not is_known_date(UNKNOWN_DATE)
    assert not is_known_date("")


class TestMisshapenOutput:
    def _bill(self, **charges):
        raw = make_electricity_bill_dict()
        raw["charges_and_usage"].update(charges)
        return normalize_extraction({"bills": {"electricity": [raw]}}).electricity_bill

    def test_unit_rates_list_becomes_none(self):
        assert self._bill(unit_rates=[]).charges_and_usage.unit_rates is None

    def test_unit_rates_scalar_becomes_none(self):
        assert self._bill(unit_rates="0.35").charges_and_usage.unit_rates is None

    def test_meter_readings_string_becomes_empty(self):
        assert self._bill(meter_readings="none").charges_and_usage.meter_readings == []

    def test_scalar_list_items_dropped(self):
        bill = self._bill(
            meter_readings=["2024-01-31", {"date": "2024-01-20"}],
            detailed_kWh_usage=["day 100"],
        )
        assert [r.date for r in bill.charges_and_usage.meter_readings] == ["2024-01-20"]
        assert bill.charges_and_usage.detailed_kWh_usage == []

    def test_string_section_becomes_defaults(self):
        raw = make_electricity_bill_dict()
        raw["financial_information"] = "see overleaf"
        bill = normalize_extraction({"bills": {"electricity": [raw]}}).electricity_bill
        assert bill.financial_information.total_due == 0.0
        assert bill.identifier == "10001234567"

    def test_string_address_kept_as_first_line(self):
        result = normalize_extraction({"bills": {"cus_details": [
            {"details": {"customer_name": "A", "address": "1 Main St, Dublin"}},
        ]}})
        assert result.customer.customer_name == "A"
        assert result.customer.address.line_1 == "1 Main St, Dublin"

    def test_service_flags_from_text(self):
        result = normalize_extraction({"customer": {"services": {"gas": "yes", "electricity": "unknown"}}})
        assert result.customer.services.gas is True
        assert result.customer.services.electricity is False

    def test_broadband_shapes(self):
        result = normalize_extraction({"bills": {"broadband": [{
            "broadband_details": {"phone_numbers": "01 234 5678"},
            "financial_information": {"bank_details": "IBAN on file"},
            "service_details": ["fibre"],
        }]}})
        bill = result.broadband[0]
        assert bill.broadband_details.phone_numbers == ["01 234 5678"]
        assert bill.financial_information.bank_details == {}
        assert bill.service_details == {}

    def test_validation_failure_becomes_extraction_error(self, monkeypatch):
        def reject(data):
            return TypeAdapter(int).validate_python("not a number")

        monkeypatch.setattr(ExtractionResult, "model_validate", reject)
        with pytest.raises(ExtractionError) as exc_info:
            normalize_extraction({"bills": {"electricity": []}})
        assert "not a number" in exc_info.value.details
