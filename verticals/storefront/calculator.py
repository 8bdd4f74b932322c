"""Tiered discount calculation — pure functions over a RuleTable.

Formula, in this exact order:

    total = base_discount * seasonal_multiplier + tier_bonus
    total = min(total, cap)            # unless the tier is uncapped
    final = amount * (1 - total)

The seasonal multiplier scales ONLY the base discount. The tier bonus is
added after the multiplication and is never scaled.

The calculator never downgrades customer types and never decides whether an
order qualifies for the seasonal multiplier: both arrive already resolved in
the DiscountContext (see rules.RequestValidator).
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from patterns.domain_config import CustomerType, PromotionalPeriod
from verticals.storefront.rule_table import RuleTable, as_date

_CENTS = Decimal("0.01")


def round_half_up(value: float, places: Decimal = _CENTS) -> float:
    """Presentation rounding only. Internal math keeps full float precision."""
    return float(Decimal(str(value)).quantize(places, rounding=ROUND_HALF_UP))


def to_percentage(fraction: float) -> float:
    """0.325 -> 32.5, rounded to 2 decimals."""
    return round_half_up(fraction * 100)


# ---------------------------------------------------------------------------
# Input / output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DiscountContext:
    """Calculator input.

    promotional_period is the already-gated period: None when the date is
    outside every period OR the order does not qualify for the multiplier.
    """

    customer_type: CustomerType
    amount: float
    order_date: date
    promotional_period: Optional[PromotionalPeriod] = None

    @property
    def is_promotional_period(self) -> bool:
        return self.promotional_period is not None


@dataclass(frozen=True)
class DiscountResult:
    base_discount: float
    tier_bonus: float
    seasonal_multiplier: float
    total_discount: float
    applied_cap: bool
    original_amount: float
    final_amount: float
    savings_amount: float
    period_name: Optional[str] = None

    @property
    def discount_percentage(self) -> float:
        return to_percentage(self.total_discount)

    def to_dict(self) -> dict[str, Any]:
        return {
            "baseDiscount": self.base_discount,
            "tierBonus": self.tier_bonus,
            "seasonalMultiplier": self.seasonal_multiplier,
            "totalDiscount": self.total_discount,
            "appliedCap": self.applied_cap,
            "originalAmount": self.original_amount,
            "finalAmount": self.final_amount,
            "savingsAmount": self.savings_amount,
            "discountPercentage": self.discount_percentage,
            "promotionalPeriod": self.period_name,
        }


# ---------------------------------------------------------------------------
# Calculator
# ---------------------------------------------------------------------------

class DiscountCalculator:
    """Stateless apart from the injected rule table; safe to share."""

    def __init__(self, table: RuleTable):
        self.table = table

    def calculate(
        self,
        context: DiscountContext,
        *,
        apply_tier_bonus: bool = True,
        apply_seasonal: bool = True,
    ) -> DiscountResult:
        """Run the six-step formula on a resolved context.

        apply_tier_bonus / apply_seasonal let the pricing layer honour promo
        codes that disable tier bonuses or do not stack with seasonal pricing.
        """
        amount = context.amount

        base = self.table.base_discount_for(context.customer_type)
        tier = self.table.tier_bonus_for(amount) if apply_tier_bonus else 0.0

        period = context.promotional_period if apply_seasonal else None
        seasonal = period.seasonal_multiplier if period else 1.0

        total = base * seasonal + tier

        cap = self.table.max_discount_for(context.customer_type)
        applied_cap = cap is not None and total > cap
        if applied_cap:
            total = cap

        final_amount = amount * (1 - total)
        return DiscountResult(
            base_discount=base,
            tier_bonus=tier,
            seasonal_multiplier=seasonal,
            total_discount=total,
            applied_cap=applied_cap,
            original_amount=amount,
            final_amount=final_amount,
            savings_amount=amount - final_amount,
            period_name=period.name if period else None,
        )

    def compute_tiered_discount(
        self,
        customer_type: CustomerType | str,
        amount: float,
        order_date: date | datetime,
    ) -> DiscountResult:
        """Resolve the seasonal gate from the rule table, then calculate.

        An unrecognised customer type raises ValueError rather than silently
        pricing the order at the REGULAR rate. Downgrades are the caller's job.
        """
        context = DiscountContext(
            customer_type=CustomerType.parse(customer_type),
            amount=amount,
            order_date=as_date(order_date),
            promotional_period=self.table.qualifying_period_for(order_date, amount),
        )
        return self.calculate(context)

    def calculate_savings(
        self,
        customer_type: CustomerType | str,
        amount: float,
        order_date: date | datetime,
    ) -> float:
        return self.compute_tiered_discount(customer_type, amount, order_date).savings_amount
