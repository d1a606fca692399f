"""Test cross-branch consistency rules."""
from bill_router.classification.consistency import (
    RULE_ASYMMETRIC_STRENGTH,
    RULE_IDENTIFIER_WITHOUT_BILLING,
    RULE_SINGLE_SERVICE_SUPPLIER,
    validate_consistency,
)
from bill_router.models.internal import ServiceType
from bill_router.models.policy import RoutingPolicy
from tests.factories import (
    make_electricity_bill_dict,
    make_extraction,
    make_gas_bill_dict,
    make_meter_photo_dict,
)
from bill_router.models.extraction import normalize_extraction


def _weak_gas(**kwargs) -> dict:
    # account number only: 1 indicator
    return make_gas_bill_dict(invoice_number="", billing_period="", total_due=0, meter_readings=[], **kwargs)


class TestAsymmetricStrength:
    def test_weak_gas_next_to_strong_electricity_is_cleared(self):
        extraction = make_extraction(electricity=[make_electricity_bill_dict()], gas=[_weak_gas()])
        report = validate_consistency(extraction)
        assert report.extraction.gas == []
        assert len(report.extraction.electricity) == 1
        assert [(c.service, c.rule) for c in report.cleared] == [(ServiceType.GAS, RULE_ASYMMETRIC_STRENGTH)]

    def test_weak_electricity_next_to_strong_gas_is_cleared(self):
        weak_elec = make_electricity_bill_dict(account_number="", billing_period="", total_due=0, meter_readings=[])
        extraction = make_extraction(electricity=[weak_elec], gas=[make_gas_bill_dict()])
        report = validate_consistency(extraction)
        assert report.extraction.electricity == []
        assert report.cleared[0].service == ServiceType.ELECTRICITY

    def test_two_strong_branches_are_kept(self):
        extraction = make_extraction(electricity=[make_electricity_bill_dict()], gas=[make_gas_bill_dict()])
        report = validate_consistency(extraction)
        assert report.cleared == []
        assert len(report.extraction.electricity) == 1
        assert len(report.extraction.gas) == 1

    def test_thresholds_come_from_policy(self):
        extraction = make_extraction(electricity=[make_electricity_bill_dict()], gas=[_weak_gas()])
        report = validate_consistency(extraction, RoutingPolicy(strong_indicator_min=6))
        assert all(c.rule != RULE_ASYMMETRIC_STRENGTH for c in report.cleared)


class TestSingleServiceSupplier:
    def test_electricity_only_supplier_clears_gas(self):
        extraction = make_extraction(
            electricity=[make_electricity_bill_dict(supplier="Electric Ireland")],
            gas=[make_gas_bill_dict()],
        )
        report = validate_consistency(extraction)
        assert report.extraction.gas == []
        assert report.cleared[0].rule == RULE_SINGLE_SERVICE_SUPPLIER

    def test_gas_only_supplier_clears_electricity(self):
        extraction = make_extraction(
            electricity=[make_electricity_bill_dict()],
            gas=[make_gas_bill_dict(supplier="Flogas Natural Gas Ltd")],
        )
        report = validate_consistency(extraction)
        assert report.extraction.electricity == []
        assert report.cleared[0].service == ServiceType.ELECTRICITY

    def test_empty_other_branch_is_left_alone(self):
        extraction = make_extraction(electricity=[make_electricity_bill_dict(supplier="Energia")])
        assert validate_consistency(extraction).cleared == []

    def test_rules_see_earlier_clears(self):
        extraction = make_extraction(
            electricity=[make_electricity_bill_dict(supplier="ESB Networks")],
            gas=[_weak_gas()],
        )
        report = validate_consistency(extraction)
        assert [c.rule for c in report.cleared] == [RULE_ASYMMETRIC_STRENGTH]


class TestIdentifierWithoutBilling:
    def test_meter_photo_identifier_is_cleared(self):
        extraction = normalize_extraction(make_meter_photo_dict(gprn="1234567"))
        report = validate_consistency(extraction)
        assert report.extraction.gas == []
        assert report.cleared[0].rule == RULE_IDENTIFIER_WITHOUT_BILLING

    def test_identifier_with_billing_field_is_kept(self):
        bill = make_electricity_bill_dict(account_number="", billing_period="", total_due=0, meter_readings=[])
        report = validate_consistency(make_extraction(electricity=[bill]))
        assert report.cleared == []

    def test_identifier_with_other_indicators_is_kept(self):
        bill = make_electricity_bill_dict(
            invoice_number="", account_number="", billing_period="", total_due=10.0,
            meter_readings=[{"date": "2024-01-31"}],
        )
        report = validate_consistency(make_extraction(electricity=[bill]))
        assert report.cleared == []


def test_input_is_not_mutated():
    extraction = make_extraction(electricity=[make_electricity_bill_dict()], gas=[_weak_gas()])
    validate_consistency(extraction)
    assert len(extraction.gas) == 1
