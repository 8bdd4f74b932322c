"""Order pricing pipeline.

    RequestValidator -> DiscountCalculator -> PromoCodeEngine (optional)

Quoting is side-effect free. Redeeming a promo code happens only in
finalize(), when the caller is about to persist the order.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Optional

from patterns.domain_config import CustomerType, PromoCode
from patterns.rules_engine import ValidationResult
from verticals.storefront.calculator import (
    DiscountCalculator,
    DiscountContext,
    DiscountResult,
    round_half_up,
)
from verticals.storefront.promo_codes import PromoCodeEngine, PromoDiscount
from verticals.storefront.rule_table import RuleTable, as_date
from verticals.storefront.rules import RequestValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscountQuote:
    """Everything the caller needs to answer a calculate-discount request."""

    requested_type: str
    original_amount: float
    validation: ValidationResult
    effective_type: Optional[CustomerType] = None
    breakdown: Optional[DiscountResult] = None
    promo_code: Optional[PromoCode] = None
    promo_discount: Optional[PromoDiscount] = None
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.validation.is_valid and self.breakdown is not None

    @property
    def errors(self) -> list[str]:
        return self.validation.errors

    @property
    def discounted_amount(self) -> float:
        if self.breakdown is None:
            return self.original_amount
        promo = self.promo_discount.discount_amount if self.promo_discount else 0.0
        return self.breakdown.final_amount - promo

    @property
    def savings_amount(self) -> float:
        return self.original_amount - self.discounted_amount

    @property
    def discount_percentage(self) -> float:
        """Overall discount against the original amount, 2 dp half-up."""
        if self.original_amount <= 0:
            return 0.0
        return round_half_up(self.savings_amount / self.original_amount * 100)

    def to_dict(self) -> dict[str, Any]:
        return {
            "originalAmount": self.original_amount,
            "discountedAmount": self.discounted_amount,
            "discountPercentage": self.discount_percentage,
            "savingsAmount": self.savings_amount,
            "customerType": self.requested_type,
            "effectiveCustomerType": self.effective_type.value if self.effective_type else None,
            "breakdown": self.breakdown.to_dict() if self.breakdown else None,
            "promoCodeDiscount": self.promo_discount.to_dict() if self.promo_discount else None,
            "warnings": list(self.warnings),
        }


class PricingService:
    """Composes the engines over one injected rule table."""

    def __init__(self, table: RuleTable):
        self.table = table
        self.validator = RequestValidator(table)
        self.calculator = DiscountCalculator(table)
        self.promo_engine = PromoCodeEngine(table)

    def quote(
        self,
        customer_type: str,
        amount: float,
        order_date: Optional[date | datetime] = None,
        promo_code: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> DiscountQuote:
        now = now or datetime.now(timezone.utc)
        order_day = as_date(order_date) if order_date else now.date()

        validation = self.validator.validate(customer_type, amount, order_day)
        if not validation.is_valid:
            return DiscountQuote(
                requested_type=str(customer_type),
                original_amount=amount,
                validation=validation,
                warnings=list(validation.warnings),
            )

        requested = CustomerType.parse(customer_type)
        effective = self.validator.effective_customer_type(requested, amount)
        if effective is not requested:
            logger.info(
                "Pricing %s order of %.2f as %s", requested.value, amount, effective.value
            )

        warnings = list(validation.warnings)
        promo = None
        if promo_code:
            promo_validation = self.promo_engine.validate_promo_code(
                promo_code, requested, amount, now=now
            )
            if not promo_validation.is_valid:
                return DiscountQuote(
                    requested_type=requested.value,
                    original_amount=amount,
                    validation=validation.merge(promo_validation),
                    effective_type=effective,
                    warnings=warnings + promo_validation.warnings,
                )
            promo = promo_validation.promo_code
            warnings.extend(promo_validation.warnings)

        context = DiscountContext(
            customer_type=effective,
            amount=amount,
            order_date=order_day,
            promotional_period=self.validator.seasonal_period_for(amount, order_day),
        )
        breakdown = self.calculator.calculate(
            context,
            apply_tier_bonus=not (promo and promo.disables_tier_bonuses),
            apply_seasonal=promo is None or promo.stacks_with_seasonal_multiplier,
        )
        promo_discount = (
            self.promo_engine.apply_discount(promo, breakdown.final_amount) if promo else None
        )

        return DiscountQuote(
            requested_type=requested.value,
            original_amount=amount,
            validation=validation,
            effective_type=effective,
            breakdown=breakdown,
            promo_code=promo,
            promo_discount=promo_discount,
            warnings=warnings,
        )

    def finalize(self, quote: DiscountQuote, now: Optional[datetime] = None) -> bool:
        """Count the promo code use for an order that is being saved.

        Returns False if the code was exhausted by a concurrent request, or
        expired, after the quote was produced; the caller should not persist
        the order.
        """
        if not quote.is_valid:
            return False
        if quote.promo_code is None:
            return True
        return self.promo_engine.redeem(quote.promo_code.code, now) is not None
