"""Test the 0-100 confidence score."""
from bill_router.models.confidence import (
    COMPLETENESS_CAP,
    DATE_CONSISTENCY_MAX,
    KEY_FIELDS_CAP,
    compute_confidence,
    compute_confidence_score,
    completeness_score,
    date_consistency_score,
    key_field_score,
    parse_dmy_date,
)
from tests.factories import (
    make_customer_dict,
    make_electricity_bill_dict,
    make_extraction,
    make_gas_bill_dict,
)

DMY_PERIOD = "01/01/2024 - 01/02/2024"


def _full_electricity() -> dict:
    bill = make_electricity_bill_dict(
        dg="DG1",
        mcc="MCC01",
        billing_period=DMY_PERIOD,
        issue_date="05/02/2024",
        meter_readings=[{"reading_type": "A", "date": "31/01/2024", "day_reading": 100}],
    )
    bill["charges_and_usage"]["detailed_kWh_usage"] = [{"day_kWh": 310}]
    return bill


def _full_gas() -> dict:
    bill = make_gas_bill_dict(
        billing_period=DMY_PERIOD,
        calorific_value=39.8,
        conversion_factor=1.02264,
        meter_readings=[{"meter_type": "A", "date": "30/01/2024", "reading": 2331}],
    )
    bill["charges_and_usage"]["gas_usage"] = [{"units_m3": 120, "kWh": 1300}]
    return bill


class TestKeyFields:
    def test_electricity_bill(self):
        extraction = make_extraction(electricity=[make_electricity_bill_dict()])
        # invoice 7 + account 7 + mprn 8
        assert key_field_score(extraction, True, False) == 22

    def test_customer_counts(self):
        extraction = make_extraction(customer=make_customer_dict())
        assert key_field_score(extraction, False, False) == 10

    def test_absent_utility_contributes_nothing(self):
        extraction = make_extraction(electricity=[make_electricity_bill_dict()])
        assert key_field_score(extraction, False, False) == 0
        assert completeness_score(extraction, False, False) == 0

    def test_capped(self):
        extraction = make_extraction(
            electricity=[_full_electricity()], gas=[_full_gas()], customer=make_customer_dict(),
        )
        assert key_field_score(extraction, True, True) == KEY_FIELDS_CAP


class TestCompleteness:
    def test_default_electricity(self):
        extraction = make_extraction(electricity=[make_electricity_bill_dict()])
        # billing period 5 + readings 8 + total due 6
        assert completeness_score(extraction, True, False) == 19

    def test_electricity_extras(self):
        extraction = make_extraction(electricity=[_full_electricity()])
        assert completeness_score(extraction, True, False) == 35

    def test_gas_extras(self):
        plain = make_extraction(gas=[make_gas_bill_dict()])
        enriched = make_extraction(gas=[make_gas_bill_dict(calorific_value=39.8, conversion_factor=1.02)])
        assert completeness_score(enriched, False, True) - completeness_score(plain, False, True) == 7

    def test_capped(self):
        extraction = make_extraction(electricity=[_full_electricity()], gas=[_full_gas()])
        assert completeness_score(extraction, True, True) == COMPLETENESS_CAP


class TestDateConsistency:
    def test_no_utilities_keeps_full_score(self):
        assert date_consistency_score(make_extraction(), False, False) == DATE_CONSISTENCY_MAX

    def test_iso_period_is_unparseable_here(self):
        extraction = make_extraction(electricity=[make_electricity_bill_dict()])
        penalties: list[str] = []
        assert date_consistency_score(extraction, True, False, penalties) == 22
        assert penalties == ["electricity:unparseable_billing_period:-3"]

    def test_missing_period(self):
        extraction = make_extraction(electricity=[make_electricity_bill_dict(billing_period="")])
        assert date_consistency_score(extraction, True, False) == 20

    def test_inverted_period(self):
        extraction = make_extraction(
            electricity=[make_electricity_bill_dict(billing_period="01/02/2024 - 01/01/2024")]
        )
        assert date_consistency_score(extraction, True, False) == 20

    def test_reading_outside_and_early_issue(self):
        bill = make_electricity_bill_dict(
            billing_period=DMY_PERIOD,
            issue_date="15/01/2024",
            meter_readings=[{"date": "15/03/2024"}, {"date": "10/01/2024"}],
        )
        penalties: list[str] = []
        score = date_consistency_score(make_extraction(electricity=[bill]), True, False, penalties)
        assert score == 25 - 3 - 2
        assert "electricity:reading_1_outside_period:-3" in penalties

    def test_floored_at_zero(self):
        bill = make_electricity_bill_dict(
            billing_period=DMY_PERIOD,
            meter_readings=[{"date": "15/06/2024"} for _ in range(12)],
        )
        assert date_consistency_score(make_extraction(electricity=[bill]), True, False) == 0


class TestOverallScore:
    def test_default_electricity_bill(self):
        extraction = make_extraction(electricity=[make_electricity_bill_dict()])
        assert compute_confidence_score(extraction, True, False) == 22 + 19 + 22

    def test_perfect_document(self):
        extraction = make_extraction(
            electricity=[_full_electricity()], gas=[_full_gas()], customer=make_customer_dict(),
        )
        breakdown = compute_confidence(extraction, True, True)
        assert breakdown.penalties == []
        assert breakdown.score == 100

    def test_bounds(self):
        for extraction, elec, gas in [
            (make_extraction(), False, False),
            (make_extraction(electricity=[make_electricity_bill_dict()]), True, False),
            (make_extraction(electricity=[_full_electricity()], gas=[_full_gas()]), True, True),
        ]:
            assert 0 <= compute_confidence_score(extraction, elec, gas) <= 100


class TestParseDmyDate:
    def test_valid(self):
        assert parse_dmy_date("31/01/2024").isoformat() == "2024-01-31"

    def test_invalid(self):
        assert parse_dmy_date("31/02/2024") is None
        assert parse_dmy_date("2024-01-31") is None
        assert parse_dmy_date("") is None
