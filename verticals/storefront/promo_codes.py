"""Promo code validation and discount computation.

Validation is a chain of gate checks. Unlike request validation, the first
failing gate ends the check with a single error:

    exists -> active -> within dates -> under usage limit
           -> meets minimum order -> customer type allowed

Promo discounts apply AFTER the tier discount: percentage codes are computed
on the tier-discounted amount, never on the original order amount.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from patterns.domain_config import CustomerType, PromoCode, PromoDiscountType
from patterns.rules_engine import ValidationResult
from verticals.storefront.models.domain import format_amount
from verticals.storefront.rule_table import RuleTable

logger = logging.getLogger(__name__)

DISABLES_TIER_WARNING = (
    "This promotional code disables tier bonuses. Only base discount and promo code will apply."
)
NO_SEASONAL_STACK_WARNING = "This promotional code does not stack with seasonal multipliers."


@dataclass
class PromoValidation(ValidationResult):
    promo_code: Optional[PromoCode] = None

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["promoCode"] = self.promo_code.to_dict() if self.promo_code else None
        return data


@dataclass(frozen=True)
class PromoDiscount:
    promo_code: str
    discount_amount: float
    discount_percentage: float
    applied_after_tier_discount: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "promoCode": self.promo_code,
            "discountAmount": self.discount_amount,
            "discountPercentage": self.discount_percentage,
            "appliedAfterTierDiscount": self.applied_after_tier_discount,
        }


def _rejected(message: str) -> PromoValidation:
    return PromoValidation(errors=[message])


class PromoCodeEngine:
    """Validates codes and prices them. Usage counting goes through redeem()."""

    def __init__(self, table: RuleTable):
        self.table = table

    def validate_promo_code(
        self,
        code: str,
        customer_type: CustomerType,
        order_amount: float,
        now: Optional[datetime] = None,
    ) -> PromoValidation:
        """Gate-check a code against the order. Never mutates usage counts."""
        now = now or datetime.now(timezone.utc)
        promo = self.table.get_promo_code(code)

        if promo is None:
            return _rejected("Invalid promotional code")
        if not promo.active:
            return _rejected("This promotional code is no longer active")
        if now < promo.valid_from:
            return _rejected("This promotional code is not yet valid")
        if now > promo.valid_until:
            return _rejected("This promotional code has expired")
        if promo.is_exhausted:
            return _rejected("This promotional code has reached its usage limit")
        if promo.min_order_amount is not None and order_amount < promo.min_order_amount:
            return _rejected(
                f"Minimum order amount of ${format_amount(promo.min_order_amount)} "
                f"required for this code"
            )
        if promo.allowed_customer_types and customer_type not in promo.allowed_customer_types:
            allowed = ", ".join(t.value for t in promo.allowed_customer_types)
            return _rejected(f"This promotional code is only available for {allowed} customers")

        warnings = []
        if promo.disables_tier_bonuses:
            warnings.append(DISABLES_TIER_WARNING)
        if not promo.stacks_with_seasonal_multiplier:
            warnings.append(NO_SEASONAL_STACK_WARNING)
        return PromoValidation(warnings=warnings, promo_code=promo)

    def apply_discount(self, promo: PromoCode, amount_after_tier_discount: float) -> PromoDiscount:
        """Incremental discount on the tier-discounted amount.

        Clamped to max_discount_amount, then to the amount itself so the
        price never goes negative.
        """
        if promo.discount_type is PromoDiscountType.PERCENTAGE:
            discount = amount_after_tier_discount * (promo.discount_value / 100)
        else:
            discount = promo.discount_value

        if promo.max_discount_amount is not None:
            discount = min(discount, promo.max_discount_amount)
        discount = max(0.0, min(discount, amount_after_tier_discount))

        percentage = (
            discount / amount_after_tier_discount * 100 if amount_after_tier_discount > 0 else 0.0
        )
        return PromoDiscount(
            promo_code=promo.code,
            discount_amount=discount,
            discount_percentage=percentage,
        )

    def redeem(self, code: str, now: Optional[datetime] = None) -> Optional[PromoCode]:
        """Count one use of a code for a finalized order.

        Returns None when the code can no longer be redeemed (e.g. another
        request consumed the last use, or the code expired, since validation).
        """
        redeemed = self.table.redeem_promo_code(code, now)
        if redeemed is None:
            logger.warning("Promo code %s could not be redeemed", code)
        return redeemed

    def list_active(self, now: Optional[datetime] = None) -> list[PromoCode]:
        return self.table.list_active_promo_codes(now)
