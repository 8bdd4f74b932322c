"""Test discount request validation rules."""
from datetime import date

import pytest

from patterns.domain_config import CustomerType
from patterns.rules_engine import RuleResult, Severity, evaluate_rules
from verticals.storefront.calculator import DiscountCalculator
from verticals.storefront.rule_table import RuleTable
from verticals.storefront.rules import (
    RequestValidator,
    check_large_order,
    check_tier_bonus_minimum,
)

OFF_SEASON = date(2025, 6, 15)
BLACK_FRIDAY = date(2025, 11, 28)


@pytest.fixture
def table():
    return RuleTable()


@pytest.fixture
def validator(table):
    return RequestValidator(table)


def test_valid_request(validator):
    result = validator.validate("VIP", 250, OFF_SEASON)
    assert result.is_valid
    assert result.errors == []
    assert result.warnings == []


def test_all_errors_accumulate(validator):
    result = validator.validate("BOGUS", -5, OFF_SEASON)
    assert not result.is_valid
    assert len(result.errors) == 2
    assert "Order amount must be greater than zero" in result.errors
    assert any("Invalid customer type: BOGUS" in e for e in result.errors)


def test_zero_amount_is_an_error(validator):
    result = validator.validate("REGULAR", 0, OFF_SEASON)
    assert result.errors == ["Order amount must be greater than zero"]


def test_non_finite_amount_is_an_error(validator):
    result = validator.validate("REGULAR", float("nan"), OFF_SEASON)
    assert not result.is_valid


def test_customer_type_is_case_insensitive(validator):
    assert validator.validate("loyalty", 100, OFF_SEASON).is_valid


def test_enterprise_below_minimum_warns_and_downgrades(validator):
    result = validator.validate("ENTERPRISE", 1200, OFF_SEASON)
    assert result.is_valid
    assert result.warnings == [
        "Order below $5000 minimum for ENTERPRISE. Applying VIP pricing instead."
    ]
    assert validator.effective_customer_type("ENTERPRISE", 1200) is CustomerType.VIP


def test_enterprise_at_minimum_keeps_type(validator):
    assert validator.validate("ENTERPRISE", 5000, OFF_SEASON).warnings == []
    assert validator.effective_customer_type("ENTERPRISE", 5000) is CustomerType.ENTERPRISE


def test_downgraded_enterprise_prices_like_vip(table, validator):
    calculator = DiscountCalculator(table)
    effective = validator.effective_customer_type(CustomerType.ENTERPRISE, 3000)
    downgraded = calculator.compute_tiered_discount(effective, 3000, OFF_SEASON)
    vip = calculator.compute_tiered_discount(CustomerType.VIP, 3000, OFF_SEASON)
    assert downgraded == vip


def test_other_types_never_downgrade(validator):
    for customer_type in (CustomerType.REGULAR, CustomerType.LOYALTY, CustomerType.VIP):
        assert validator.effective_customer_type(customer_type, 10) is customer_type


def test_small_promotional_order_warns(validator):
    result = validator.validate("VIP", 50, BLACK_FRIDAY)
    assert result.is_valid
    assert result.warnings == [
        "Orders under $100 do not qualify for seasonal multiplier during promotions"
    ]
    assert validator.seasonal_period_for(50, BLACK_FRIDAY) is None


def test_qualifying_promotional_order(validator):
    assert validator.validate("VIP", 100, BLACK_FRIDAY).warnings == []
    assert validator.seasonal_period_for(100, BLACK_FRIDAY).name == "Black Friday Week"


def test_small_order_off_season_is_silent(validator):
    assert validator.validate("VIP", 50, OFF_SEASON).warnings == []


def test_below_tier_threshold_is_informational_only(validator):
    result = validator.validate("REGULAR", 200, OFF_SEASON)
    assert result.warnings == []
    tier_rule = next(r for r in result.results if r.rule_name == "tier_bonus_minimum")
    assert tier_rule.passed
    assert tier_rule.details["eligible"] is False


def test_large_order_flagged_but_valid(validator):
    result = validator.validate("ENTERPRISE", 60000, OFF_SEASON)
    assert result.is_valid
    assert len(result.warnings) == 1
    assert "manual review" in result.warnings[0]


def test_warnings_accumulate(validator):
    result = validator.validate("ENTERPRISE", 50, BLACK_FRIDAY)
    assert result.is_valid
    assert len(result.warnings) == 2


def test_errors_and_warnings_together(validator):
    result = validator.validate("ENTERPRISE", -10, BLACK_FRIDAY)
    assert result.errors == ["Order amount must be greater than zero"]
    assert len(result.warnings) == 2


def test_rule_functions_are_pure():
    assert check_large_order(50000, 50000).message == ""
    assert check_large_order(50000.01, 50000).severity is Severity.WARNING
    assert check_tier_bonus_minimum(500, 500).details["eligible"]


def test_evaluate_rules_folds_by_severity():
    result = evaluate_rules(
        RuleResult.ok("a"),
        RuleResult.warning("b", "careful"),
        RuleResult.error("c", "broken"),
    )
    assert result.errors == ["broken"]
    assert result.warnings == ["careful"]
    assert not result.is_valid
    assert result.to_dict() == {"isValid": False, "errors": ["broken"], "warnings": ["careful"]}
