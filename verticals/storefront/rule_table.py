"""Rule table — lookup layer over the discount configuration.

Read-mostly: every query is a pure lookup over the frozen DiscountConfig.
The single mutation path is the promo code usage counter, which is guarded
by a lock so that read-check-increment is atomic across concurrent requests.

Lookups hand out copies of promo codes, so callers work on a snapshot and
can never bump a counter behind the lock's back.
"""

import logging
import threading
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Iterable, Optional

from patterns.domain_config import (
    CategoryDiscount,
    CustomerType,
    CustomerTypeRule,
    DiscountConfig,
    PromoCode,
    PromotionalPeriod,
    TierBand,
)
from verticals.storefront.models.domain import default_promo_codes

logger = logging.getLogger(__name__)


def as_date(value: date | datetime) -> date:
    """Drop the time-of-day; promotional windows are date-granular."""
    if isinstance(value, datetime):
        return value.date()
    return value


class RuleTable:
    """Customer-type rules, tier bands, periods, category discounts and promo codes.

    Usage::

        table = RuleTable.from_config(DiscountConfig.from_env())
        period = table.active_period_for(order_date)
    """

    def __init__(
        self,
        config: Optional[DiscountConfig] = None,
        promo_codes: Iterable[PromoCode] = (),
    ):
        self.config = config or DiscountConfig.default()
        self._bands_desc: tuple[TierBand, ...] = tuple(
            sorted(self.config.tier_bands, key=lambda b: b.min_amount, reverse=True)
        )
        self._categories: dict[str, CategoryDiscount] = {
            c.category.upper(): c for c in self.config.category_discounts
        }
        self._promo_codes: dict[str, PromoCode] = {}
        self._lock = threading.Lock()
        for promo in promo_codes:
            self.add_promo_code(promo)

    @classmethod
    def from_config(
        cls, config: Optional[DiscountConfig] = None, now: Optional[datetime] = None
    ) -> "RuleTable":
        """Build a table with the configured promo codes.

        A config without a promo code section gets the reference codes,
        valid for a year from now.
        """
        config = config or DiscountConfig.default()
        if config.promo_codes is not None:
            return cls(config, config.promo_codes)
        return cls(config, default_promo_codes(now))

    # -- Customer types --

    def customer_rule(self, customer_type: CustomerType) -> CustomerTypeRule:
        return self.config.customer_rules[customer_type]

    def base_discount_for(self, customer_type: CustomerType) -> float:
        return self.customer_rule(customer_type).base_discount

    def max_discount_for(self, customer_type: CustomerType) -> Optional[float]:
        """Cap for the tier, or None when uncapped."""
        return self.customer_rule(customer_type).max_total_discount

    def minimum_order_for(self, customer_type: CustomerType) -> Optional[float]:
        return self.customer_rule(customer_type).minimum_order_amount

    # -- Tier bands --

    def tier_bonus_for(self, amount: float) -> float:
        for band in self._bands_desc:
            if band.matches(amount):
                return band.bonus
        return 0.0

    @property
    def tier_bonus_threshold(self) -> Optional[float]:
        """Smallest amount that earns any tier bonus."""
        if not self._bands_desc:
            return None
        return self._bands_desc[-1].min_amount

    # -- Promotional periods --

    def active_period_for(self, order_date: date | datetime) -> Optional[PromotionalPeriod]:
        """First enabled period, in configured order, containing the date."""
        if not self.config.seasonal_enabled:
            return None
        day = as_date(order_date)
        for period in self.config.promotional_periods:
            if period.enabled and period.contains(day):
                return period
        return None

    def qualifying_period_for(
        self, order_date: date | datetime, amount: float
    ) -> Optional[PromotionalPeriod]:
        """Active period, but only if the order meets the promotional minimum."""
        period = self.active_period_for(order_date)
        if period is None or amount < self.config.thresholds.promotional_minimum:
            return None
        return period

    def list_periods(self, enabled_only: bool = True) -> list[PromotionalPeriod]:
        return [
            p for p in self.config.promotional_periods if p.enabled or not enabled_only
        ]

    # -- Category discounts --

    def category_discount_for(self, category: str) -> Optional[CategoryDiscount]:
        """Active discount for a category, or None."""
        discount = self._categories.get(category.upper())
        if discount is None or not discount.active:
            return None
        return discount

    def category_percentage_for(self, category: str) -> float:
        discount = self.category_discount_for(category)
        return discount.discount_percentage if discount else 0.0

    def list_category_discounts(self, active_only: bool = False) -> list[CategoryDiscount]:
        return [c for c in self._categories.values() if c.active or not active_only]

    # -- Promo codes --

    def add_promo_code(self, promo: PromoCode) -> None:
        with self._lock:
            if promo.key in self._promo_codes:
                raise ValueError(f"Promo code already exists: {promo.code}")
            self._promo_codes[promo.key] = replace(promo)

    def get_promo_code(self, code: str) -> Optional[PromoCode]:
        """Case-insensitive lookup. Returns a snapshot copy."""
        with self._lock:
            promo = self._promo_codes.get(code.strip().upper())
            return replace(promo) if promo else None

    def list_active_promo_codes(self, now: Optional[datetime] = None) -> list[PromoCode]:
        now = now or datetime.now(timezone.utc)
        with self._lock:
            return [
                replace(p)
                for p in self._promo_codes.values()
                if p.active and p.is_current(now) and not p.is_exhausted
            ]

    def redeem_promo_code(
        self, code: str, now: Optional[datetime] = None
    ) -> Optional[PromoCode]:
        """Atomically check the code is still usable and count one use.

        Returns the updated snapshot, or None when the code is unknown,
        inactive, outside its validity window or already exhausted. Nothing
        is incremented in that case.
        """
        now = now or datetime.now(timezone.utc)
        with self._lock:
            promo = self._promo_codes.get(code.strip().upper())
            if (
                promo is None
                or not promo.active
                or not promo.is_current(now)
                or promo.is_exhausted
            ):
                return None
            promo.usage_count += 1
            logger.info(
                "Redeemed promo code %s (%d/%s)",
                promo.code,
                promo.usage_count,
                promo.usage_limit if promo.usage_limit is not None else "unlimited",
            )
            return replace(promo)

    # -- Startup checks --

    def check_consistency(self) -> list[str]:
        """Report latent misconfiguration. Never raises."""
        problems = []
        for customer_type, rule in self.config.customer_rules.items():
            if rule.max_total_discount is not None and rule.base_discount > rule.max_total_discount:
                problems.append(
                    f"{customer_type.value}: base discount {rule.base_discount} "
                    f"exceeds cap {rule.max_total_discount}"
                )
        missing = [t.value for t in CustomerType if t not in self.config.customer_rules]
        if missing:
            problems.append(f"No rules configured for: {', '.join(missing)}")

        bands = sorted(self.config.tier_bands, key=lambda b: b.min_amount)
        for lower, upper in zip(bands, bands[1:]):
            if lower.max_amount is None or lower.max_amount > upper.min_amount:
                problems.append(
                    f"Tier bands overlap: [{lower.min_amount}, {lower.max_amount}) "
                    f"and [{upper.min_amount}, {upper.max_amount})"
                )

        for problem in problems:
            logger.warning("Rule table inconsistency: %s", problem)
        return problems
