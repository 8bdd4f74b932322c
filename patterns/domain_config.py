"""Dataclass-based discount rule configuration.

The rule set is declared as frozen dataclasses. This gives you:
- Type safety (IDE autocompletion, mypy checking)
- Default values (the reference rule table out-of-the-box)
- Immutability (frozen=True prevents accidental mutation)
- Easy overrides (from a JSON rules file or env vars)

Promo codes are declared here as well. Their usage counters are the one
piece of runtime state, and only verticals.storefront.rule_table changes
them.
"""

import json
import os
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Optional


# ---------------------------------------------------------------------------
# Customer types
# ---------------------------------------------------------------------------

class CustomerType(str, Enum):
    """Closed set of customer tiers, ordered by increasing base discount."""

    REGULAR = "REGULAR"
    LOYALTY = "LOYALTY"
    VIP = "VIP"
    ENTERPRISE = "ENTERPRISE"

    @classmethod
    def parse(cls, value: "str | CustomerType") -> "CustomerType":
        """Parse a boundary value. Raises ValueError for unknown types."""
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().upper())

    @classmethod
    def is_valid(cls, value: Any) -> bool:
        try:
            cls.parse(value)
        except ValueError:
            return False
        return True

    @classmethod
    def names(cls) -> list[str]:
        return [member.value for member in cls]


# ---------------------------------------------------------------------------
# Rule sections
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CustomerTypeRule:
    """Base rate and cap for one customer tier.

    max_total_discount of None means uncapped.
    """

    base_discount: float
    max_total_discount: Optional[float]
    minimum_order_amount: Optional[float] = None


@dataclass(frozen=True)
class TierBand:
    """Order-size bonus for amounts in [min_amount, max_amount)."""

    min_amount: float
    max_amount: Optional[float]
    bonus: float

    def matches(self, amount: float) -> bool:
        if amount < self.min_amount:
            return False
        return self.max_amount is None or amount < self.max_amount


@dataclass(frozen=True)
class PromotionalPeriod:
    """A seasonal window, inclusive on both ends at date granularity.

    Recurring periods compare month/day only and may wrap the year end
    (e.g. Dec 20 - Jan 5).
    """

    name: str
    start_date: date
    end_date: date
    seasonal_multiplier: float
    enabled: bool = True
    recurs_annually: bool = True

    def contains(self, day: date) -> bool:
        if not self.recurs_annually:
            return self.start_date <= day <= self.end_date

        key = (day.month, day.day)
        start = (self.start_date.month, self.start_date.day)
        end = (self.end_date.month, self.end_date.day)
        if start <= end:
            return start <= key <= end
        return key >= start or key <= end


@dataclass(frozen=True)
class CategoryDiscount:
    category: str
    discount_percentage: float
    description: str = ""
    active: bool = True


class PromoDiscountType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"


@dataclass
class PromoCode:
    """A promotional code.

    usage_count is the only field that changes after load, and only through
    RuleTable.redeem_promo_code.
    """

    code: str
    discount_type: PromoDiscountType
    discount_value: float
    valid_from: datetime
    valid_until: datetime
    min_order_amount: Optional[float] = None
    max_discount_amount: Optional[float] = None
    usage_limit: Optional[int] = None
    usage_count: int = 0
    allowed_customer_types: Optional[tuple[CustomerType, ...]] = None
    disables_tier_bonuses: bool = False
    stacks_with_seasonal_multiplier: bool = True
    description: str = ""
    active: bool = True

    @property
    def key(self) -> str:
        return self.code.upper()

    @property
    def is_exhausted(self) -> bool:
        return self.usage_limit is not None and self.usage_count >= self.usage_limit

    def is_current(self, now: datetime) -> bool:
        return self.valid_from <= now <= self.valid_until

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "discountType": self.discount_type.value,
            "discountValue": self.discount_value,
            "minOrderAmount": self.min_order_amount,
            "maxDiscountAmount": self.max_discount_amount,
            "validFrom": self.valid_from.isoformat(),
            "validUntil": self.valid_until.isoformat(),
            "usageLimit": self.usage_limit,
            "usageCount": self.usage_count,
            "allowedCustomerTypes": (
                [t.value for t in self.allowed_customer_types]
                if self.allowed_customer_types
                else None
            ),
            "disablesTierBonuses": self.disables_tier_bonuses,
            "stacksWithSeasonalMultiplier": self.stacks_with_seasonal_multiplier,
            "description": self.description,
            "active": self.active,
        }


@dataclass(frozen=True)
class ValidationThresholds:
    """Amounts that drive request validation policy."""

    promotional_minimum: float = 100.0
    large_order_review: float = 50000.0
    downgrade_target: CustomerType = CustomerType.VIP


# ---------------------------------------------------------------------------
# Reference rule table
# ---------------------------------------------------------------------------

def _default_customer_rules() -> dict[CustomerType, CustomerTypeRule]:
    return {
        CustomerType.REGULAR: CustomerTypeRule(base_discount=0.0, max_total_discount=0.40),
        CustomerType.LOYALTY: CustomerTypeRule(base_discount=0.05, max_total_discount=0.50),
        CustomerType.VIP: CustomerTypeRule(base_discount=0.10, max_total_discount=0.60),
        CustomerType.ENTERPRISE: CustomerTypeRule(
            base_discount=0.15,
            max_total_discount=None,
            minimum_order_amount=5000.0,
        ),
    }


def _default_tier_bands() -> tuple[TierBand, ...]:
    return (
        TierBand(min_amount=500.0, max_amount=1000.0, bonus=0.05),
        TierBand(min_amount=1000.0, max_amount=None, bonus=0.10),
    )


# Year 2000 is a placeholder for recurring windows (leap year, so Feb 29 parses).
def _default_periods() -> tuple[PromotionalPeriod, ...]:
    return (
        PromotionalPeriod("Black Friday Week", date(2000, 11, 24), date(2000, 11, 30), 2.0),
        PromotionalPeriod("Cyber Monday Week", date(2000, 12, 1), date(2000, 12, 5), 2.0),
        PromotionalPeriod("Holiday Season", date(2000, 12, 15), date(2000, 12, 31), 1.5),
    )


def _default_category_discounts() -> tuple[CategoryDiscount, ...]:
    return (
        CategoryDiscount("ELECTRONICS", 5, "Tech sale - 5% off all electronics"),
        CategoryDiscount("CLOTHING", 10, "Fashion week - 10% off all clothing"),
        CategoryDiscount("BOOKS", 15, "Reading promotion - 15% off all books"),
        CategoryDiscount("SPORTS", 8, "Fitness month - 8% off sports equipment"),
    )


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DiscountConfig:
    """Complete discount rule configuration.

    Usage::

        config = DiscountConfig.from_env()
        rule = config.customer_rules[CustomerType.VIP]
        if rule.max_total_discount is None:
            ...  # uncapped tier
    """

    customer_rules: dict[CustomerType, CustomerTypeRule] = field(
        default_factory=_default_customer_rules
    )
    tier_bands: tuple[TierBand, ...] = field(default_factory=_default_tier_bands)
    promotional_periods: tuple[PromotionalPeriod, ...] = field(default_factory=_default_periods)
    category_discounts: tuple[CategoryDiscount, ...] = field(
        default_factory=_default_category_discounts
    )
    thresholds: ValidationThresholds = field(default_factory=ValidationThresholds)
    # None means "use the reference promo catalogue"
    promo_codes: Optional[tuple[PromoCode, ...]] = None

    # Feature flags
    seasonal_enabled: bool = True

    @classmethod
    def default(cls) -> "DiscountConfig":
        """Create config with the reference rule table."""
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DiscountConfig":
        """Build a config from a plain mapping (e.g. a parsed JSON rules file).

        Sections that are missing keep their defaults; without "promoCodes"
        the reference promo catalogue is used. Example::

            {
              "customerRules": {"VIP": {"baseDiscount": 0.12, "maxTotalDiscount": 0.6}},
              "promotionalPeriods": [
                {"name": "Spring Sale", "startDate": "2000-03-01",
                 "endDate": "2000-03-07", "seasonalMultiplier": 1.25}
              ]
            }
        """
        defaults = cls()
        overrides: dict[str, Any] = {}

        if "customerRules" in data:
            rules = dict(defaults.customer_rules)
            for name, raw in data["customerRules"].items():
                rules[CustomerType.parse(name)] = CustomerTypeRule(
                    base_discount=float(raw["baseDiscount"]),
                    max_total_discount=_optional_float(raw.get("maxTotalDiscount")),
                    minimum_order_amount=_optional_float(raw.get("minimumOrderAmount")),
                )
            overrides["customer_rules"] = rules

        if "tierBands" in data:
            overrides["tier_bands"] = tuple(
                TierBand(
                    min_amount=float(raw["minAmount"]),
                    max_amount=_optional_float(raw.get("maxAmount")),
                    bonus=float(raw["bonus"]),
                )
                for raw in data["tierBands"]
            )

        if "promotionalPeriods" in data:
            overrides["promotional_periods"] = tuple(
                PromotionalPeriod(
                    name=raw["name"],
                    start_date=date.fromisoformat(raw["startDate"]),
                    end_date=date.fromisoformat(raw["endDate"]),
                    seasonal_multiplier=float(raw["seasonalMultiplier"]),
                    enabled=raw.get("enabled", True),
                    recurs_annually=raw.get("recursAnnually", True),
                )
                for raw in data["promotionalPeriods"]
            )

        if "categoryDiscounts" in data:
            overrides["category_discounts"] = tuple(
                CategoryDiscount(
                    category=raw["category"].upper(),
                    discount_percentage=float(raw["discountPercentage"]),
                    description=raw.get("description", ""),
                    active=raw.get("active", True),
                )
                for raw in data["categoryDiscounts"]
            )

        if "thresholds" in data:
            raw = data["thresholds"]
            overrides["thresholds"] = ValidationThresholds(
                promotional_minimum=float(
                    raw.get("promotionalMinimum", defaults.thresholds.promotional_minimum)
                ),
                large_order_review=float(
                    raw.get("largeOrderReview", defaults.thresholds.large_order_review)
                ),
            )

        if "promoCodes" in data:
            overrides["promo_codes"] = tuple(_promo_code(raw) for raw in data["promoCodes"])

        if "seasonalEnabled" in data:
            overrides["seasonal_enabled"] = bool(data["seasonalEnabled"])

        return cls(**overrides)

    @classmethod
    def from_file(cls, path: str | Path) -> "DiscountConfig":
        """Load a JSON rules file."""
        with open(path, encoding="utf-8") as fh:
            return cls.from_dict(json.load(fh))

    @classmethod
    def from_env(cls, prefix: str = "DISCOUNT_") -> "DiscountConfig":
        """Create config from environment variables.

        Example: DISCOUNT_RULES_FILE=/etc/storefront/rules.json
                 DISCOUNT_LARGE_ORDER_THRESHOLD=75000
        """
        rules_file = os.getenv(f"{prefix}RULES_FILE")
        config = cls.from_file(rules_file) if rules_file else cls.default()

        enterprise_min = os.getenv(f"{prefix}ENTERPRISE_MINIMUM")
        if enterprise_min:
            rules = dict(config.customer_rules)
            rules[CustomerType.ENTERPRISE] = replace(
                rules[CustomerType.ENTERPRISE], minimum_order_amount=float(enterprise_min)
            )
            config = replace(config, customer_rules=rules)

        thresholds = config.thresholds
        large_order = os.getenv(f"{prefix}LARGE_ORDER_THRESHOLD")
        if large_order:
            thresholds = replace(thresholds, large_order_review=float(large_order))
        promo_min = os.getenv(f"{prefix}PROMOTIONAL_MINIMUM")
        if promo_min:
            thresholds = replace(thresholds, promotional_minimum=float(promo_min))
        config = replace(config, thresholds=thresholds)

        seasonal = os.getenv(f"{prefix}SEASONAL_ENABLED")
        if seasonal:
            config = replace(config, seasonal_enabled=seasonal.lower() == "true")

        return config


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def _utc_datetime(value: str) -> datetime:
    """ISO timestamp or date; a missing offset is read as UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _promo_code(raw: dict[str, Any]) -> PromoCode:
    allowed = raw.get("allowedCustomerTypes")
    usage_limit = raw.get("usageLimit")
    return PromoCode(
        code=raw["code"].strip().upper(),
        discount_type=PromoDiscountType(str(raw["discountType"]).upper()),
        discount_value=float(raw["discountValue"]),
        valid_from=_utc_datetime(raw["validFrom"]),
        valid_until=_utc_datetime(raw["validUntil"]),
        min_order_amount=_optional_float(raw.get("minOrderAmount")),
        max_discount_amount=_optional_float(raw.get("maxDiscountAmount")),
        usage_limit=None if usage_limit is None else int(usage_limit),
        usage_count=int(raw.get("usageCount", 0)),
        allowed_customer_types=(
            tuple(CustomerType.parse(t) for t in allowed) if allowed else None
        ),
        disables_tier_bonuses=raw.get("disablesTierBonuses", False),
        stacks_with_seasonal_multiplier=raw.get("stacksWithSeasonalMultiplier", True),
        description=raw.get("description", ""),
        active=raw.get("active", True),
    )
