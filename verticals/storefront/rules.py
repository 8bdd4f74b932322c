"""Discount request policy rules — pure functions.

Each check returns a RuleResult; RequestValidator runs all of them and folds
the results with evaluate_rules, so errors and warnings accumulate instead of
stopping at the first failure.

| Rule | Condition                                   | Severity |
|------|---------------------------------------------|----------|
| 1    | amount <= 0                                 | error    |
| 2    | unknown customer type                       | error    |
| 3    | ENTERPRISE below its minimum order          | warning  |
| 4    | promotional date but below promo minimum    | warning  |
| 5    | below the first tier band                   | info     |
| 6    | above the manual review threshold           | warning  |
"""

import logging
import math
from datetime import date, datetime
from typing import Any, Optional

from patterns.domain_config import CustomerType, PromotionalPeriod
from patterns.rules_engine import RuleResult, ValidationResult, evaluate_rules
from verticals.storefront.models.domain import format_amount
from verticals.storefront.rule_table import RuleTable

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Individual rules
# ---------------------------------------------------------------------------

def check_positive_amount(amount: float) -> RuleResult:
    if not math.isfinite(amount):
        return RuleResult.error("positive_amount", "Order amount must be a finite number", amount=amount)
    if amount <= 0:
        return RuleResult.error("positive_amount", "Order amount must be greater than zero", amount=amount)
    return RuleResult.ok("positive_amount", amount=amount)


def check_known_customer_type(customer_type: Any) -> RuleResult:
    if CustomerType.is_valid(customer_type):
        return RuleResult.ok("known_customer_type")
    return RuleResult.error(
        "known_customer_type",
        f"Invalid customer type: {customer_type}. "
        f"Must be one of: {', '.join(CustomerType.names())}",
        customer_type=customer_type,
    )


def check_enterprise_minimum(
    customer_type: Any,
    amount: float,
    minimum: Optional[float],
    downgrade_to: CustomerType = CustomerType.VIP,
) -> RuleResult:
    """ENTERPRISE orders under the minimum are priced as downgrade_to, not rejected."""
    is_enterprise = CustomerType.is_valid(customer_type) and (
        CustomerType.parse(customer_type) is CustomerType.ENTERPRISE
    )
    if not is_enterprise or minimum is None or amount >= minimum:
        return RuleResult.ok("enterprise_minimum")
    return RuleResult.warning(
        "enterprise_minimum",
        f"Order below ${format_amount(minimum)} minimum for ENTERPRISE. "
        f"Applying {downgrade_to.value} pricing instead.",
        minimum=minimum,
        effective_type=downgrade_to.value,
    )


def check_promotional_minimum(
    amount: float,
    period: Optional[PromotionalPeriod],
    minimum: float,
) -> RuleResult:
    if period is None or amount >= minimum:
        return RuleResult.ok("promotional_minimum")
    return RuleResult.warning(
        "promotional_minimum",
        f"Orders under ${format_amount(minimum)} do not qualify for seasonal "
        f"multiplier during promotions",
        period=period.name,
        minimum=minimum,
    )


def check_tier_bonus_minimum(amount: float, threshold: Optional[float]) -> RuleResult:
    """Informational: tier bonus resolves to zero below the first band."""
    eligible = threshold is not None and amount >= threshold
    return RuleResult.ok("tier_bonus_minimum", eligible=eligible, threshold=threshold)


def check_large_order(amount: float, threshold: float) -> RuleResult:
    if amount <= threshold:
        return RuleResult.ok("large_order")
    return RuleResult.warning(
        "large_order",
        "Large order flagged for manual review. Discount will be applied pending approval.",
        threshold=threshold,
    )


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------

class RequestValidator:
    """Policy checks that run before calculation.

    Usage::

        validator = RequestValidator(table)
        result = validator.validate("ENTERPRISE", 1200.0, order_date)
        if not result.is_valid:
            reject(result.errors)
        effective = validator.effective_customer_type("ENTERPRISE", 1200.0)  # VIP
    """

    def __init__(self, table: RuleTable):
        self.table = table

    def validate(
        self,
        customer_type: Any,
        amount: float,
        order_date: date | datetime,
    ) -> ValidationResult:
        thresholds = self.table.config.thresholds
        result = evaluate_rules(
            check_positive_amount(amount),
            check_known_customer_type(customer_type),
            check_enterprise_minimum(
                customer_type,
                amount,
                self.table.minimum_order_for(CustomerType.ENTERPRISE),
                thresholds.downgrade_target,
            ),
            check_promotional_minimum(
                amount,
                self.table.active_period_for(order_date),
                thresholds.promotional_minimum,
            ),
            check_tier_bonus_minimum(amount, self.table.tier_bonus_threshold),
            check_large_order(amount, thresholds.large_order_review),
        )
        if result.errors:
            logger.info("Discount request rejected: %s", "; ".join(result.errors))
        for warning in result.warnings:
            logger.info("Discount request warning: %s", warning)
        return result

    def effective_customer_type(
        self, customer_type: CustomerType | str, amount: float
    ) -> CustomerType:
        """Customer type to price with, after applying minimum-order downgrades."""
        requested = CustomerType.parse(customer_type)
        minimum = self.table.minimum_order_for(requested)
        if requested is CustomerType.ENTERPRISE and minimum is not None and amount < minimum:
            return self.table.config.thresholds.downgrade_target
        return requested

    def seasonal_period_for(
        self, amount: float, order_date: date | datetime
    ) -> Optional[PromotionalPeriod]:
        """The period to feed the calculator: set only when the order qualifies."""
        return self.table.qualifying_period_for(order_date, amount)
