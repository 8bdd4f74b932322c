"""Test promo code gate checks, discount math and usage counting."""
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest

from patterns.domain_config import CustomerType, PromoCode, PromoDiscountType
from verticals.storefront.promo_codes import (
    DISABLES_TIER_WARNING,
    NO_SEASONAL_STACK_WARNING,
    PromoCodeEngine,
)
from verticals.storefront.rule_table import RuleTable

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


def _promo(code="TEST", **overrides):
    values = dict(
        code=code,
        discount_type=PromoDiscountType.PERCENTAGE,
        discount_value=10,
        valid_from=NOW - timedelta(days=1),
        valid_until=NOW + timedelta(days=30),
    )
    values.update(overrides)
    return PromoCode(**values)


@pytest.fixture
def table():
    return RuleTable.from_config(now=NOW - timedelta(days=1))


@pytest.fixture
def engine(table):
    return PromoCodeEngine(table)


def test_valid_code(engine):
    result = engine.validate_promo_code("WELCOME10", CustomerType.REGULAR, 100, now=NOW)
    assert result.is_valid
    assert result.warnings == []
    assert result.promo_code.code == "WELCOME10"


def test_lookup_is_case_insensitive(engine):
    result = engine.validate_promo_code(" welcome10 ", CustomerType.REGULAR, 100, now=NOW)
    assert result.is_valid


def test_unknown_code(engine):
    result = engine.validate_promo_code("NOPE", CustomerType.VIP, 100, now=NOW)
    assert result.errors == ["Invalid promotional code"]
    assert result.promo_code is None


def test_inactive_code(table, engine):
    table.add_promo_code(_promo("RETIRED", active=False))
    result = engine.validate_promo_code("RETIRED", CustomerType.VIP, 100, now=NOW)
    assert result.errors == ["This promotional code is no longer active"]


def test_not_yet_valid(engine):
    result = engine.validate_promo_code(
        "WELCOME10", CustomerType.VIP, 100, now=NOW - timedelta(days=2)
    )
    assert result.errors == ["This promotional code is not yet valid"]


def test_expired(engine):
    result = engine.validate_promo_code(
        "WELCOME10", CustomerType.VIP, 100, now=NOW + timedelta(days=400)
    )
    assert result.errors == ["This promotional code has expired"]


def test_usage_limit_reached(table, engine):
    table.add_promo_code(_promo("ONCE", usage_limit=1, usage_count=1))
    result = engine.validate_promo_code("ONCE", CustomerType.VIP, 100, now=NOW)
    assert result.errors == ["This promotional code has reached its usage limit"]


def test_minimum_order(engine):
    result = engine.validate_promo_code("WELCOME10", CustomerType.VIP, 40, now=NOW)
    assert result.errors == ["Minimum order amount of $50 required for this code"]


def test_customer_type_restriction(engine):
    result = engine.validate_promo_code("VIP25", CustomerType.REGULAR, 300, now=NOW)
    assert result.errors == [
        "This promotional code is only available for VIP, ENTERPRISE customers"
    ]


def test_first_failing_gate_wins(engine):
    # Expired and below the minimum: only the date gate reports.
    result = engine.validate_promo_code(
        "VIP25", CustomerType.REGULAR, 10, now=NOW + timedelta(days=400)
    )
    assert result.errors == ["This promotional code has expired"]


def test_stacking_warnings(engine):
    result = engine.validate_promo_code("VIP25", CustomerType.VIP, 1000, now=NOW)
    assert result.is_valid
    assert result.warnings == [DISABLES_TIER_WARNING, NO_SEASONAL_STACK_WARNING]


def test_validation_never_counts_usage(table, engine):
    for _ in range(3):
        engine.validate_promo_code("BULK50", CustomerType.VIP, 600, now=NOW)
    assert table.get_promo_code("BULK50").usage_count == 0


def test_percentage_applies_to_tier_discounted_amount(engine):
    promo = engine.table.get_promo_code("WELCOME10")
    discount = engine.apply_discount(promo, 90)
    assert discount.discount_amount == pytest.approx(9)
    assert discount.discount_percentage == pytest.approx(10)
    assert discount.applied_after_tier_discount


def test_fixed_amount_clamped_to_order(engine):
    promo = engine.table.get_promo_code("SAVE20")
    assert engine.apply_discount(promo, 15).discount_amount == 15
    assert engine.apply_discount(promo, 150).discount_amount == 20


def test_percentage_clamped_to_max_discount(engine):
    promo = _promo(discount_value=50, max_discount_amount=5)
    discount = engine.apply_discount(promo, 100)
    assert discount.discount_amount == 5
    assert discount.discount_percentage == pytest.approx(5)


def test_zero_base_gives_zero_percentage(engine):
    discount = engine.apply_discount(_promo(), 0)
    assert discount.discount_amount == 0
    assert discount.discount_percentage == 0


def test_redeem_until_exhausted(table, engine):
    table.add_promo_code(_promo("TWICE", usage_limit=2))
    assert engine.redeem("TWICE", now=NOW).usage_count == 1
    assert engine.redeem("twice", now=NOW).usage_count == 2
    assert engine.redeem("TWICE", now=NOW) is None
    assert table.get_promo_code("TWICE").usage_count == 2

    result = engine.validate_promo_code("TWICE", CustomerType.VIP, 100, now=NOW)
    assert result.errors == ["This promotional code has reached its usage limit"]


def test_concurrent_redemption_never_exceeds_limit(table, engine):
    table.add_promo_code(_promo("RUSH", usage_limit=5))

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(lambda _: engine.redeem("RUSH", now=NOW), range(40)))

    assert sum(1 for o in outcomes if o is not None) == 5
    assert table.get_promo_code("RUSH").usage_count == 5


def test_list_active_hides_exhausted_and_expired(table, engine):
    table.add_promo_code(_promo("USEDUP", usage_limit=1, usage_count=1))
    table.add_promo_code(_promo("OLD", valid_until=NOW - timedelta(hours=1)))
    codes = {p.code for p in engine.list_active(now=NOW)}
    assert codes == {"WELCOME10", "SAVE20", "VIP25", "BULK50", "FREESHIP"}


def test_to_dict_is_camel_case(engine):
    data = engine.table.get_promo_code("VIP25").to_dict()
    assert data["allowedCustomerTypes"] == ["VIP", "ENTERPRISE"]
    assert data["disablesTierBonuses"] is True
    assert data["stacksWithSeasonalMultiplier"] is False


def test_redeem_refuses_code_outside_its_window(table, engine):
    table.add_promo_code(_promo("SHORT", valid_until=NOW + timedelta(hours=1), usage_limit=10))
    assert engine.redeem("SHORT", now=NOW + timedelta(hours=2)) is None
    assert engine.redeem("SHORT", now=NOW - timedelta(days=2)) is None
    assert table.get_promo_code("SHORT").usage_count == 0
    assert engine.redeem("SHORT", now=NOW).usage_count == 1
