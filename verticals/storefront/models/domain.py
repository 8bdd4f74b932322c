"""Promo code helpers and the reference promo catalogue."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from patterns.domain_config import CustomerType, PromoCode, PromoDiscountType


def format_amount(value: float) -> str:
    """Render a dollar threshold for messages: 5000 -> '5000', 99.5 -> '99.50'."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"


def default_promo_codes(now: Optional[datetime] = None) -> list[PromoCode]:
    """Reference promo codes, valid for one year from load time."""
    start = now or datetime.now(timezone.utc)
    until = start + timedelta(days=365)

    return [
        PromoCode(
            code="WELCOME10",
            discount_type=PromoDiscountType.PERCENTAGE,
            discount_value=10,
            min_order_amount=50,
            valid_from=start,
            valid_until=until,
            description="Welcome discount - 10% off orders over $50",
        ),
        PromoCode(
            code="SAVE20",
            discount_type=PromoDiscountType.FIXED_AMOUNT,
            discount_value=20,
            min_order_amount=100,
            max_discount_amount=20,
            valid_from=start,
            valid_until=until,
            description="Save $20 on orders over $100",
        ),
        PromoCode(
            code="VIP25",
            discount_type=PromoDiscountType.PERCENTAGE,
            discount_value=25,
            min_order_amount=200,
            valid_from=start,
            valid_until=until,
            allowed_customer_types=(CustomerType.VIP, CustomerType.ENTERPRISE),
            disables_tier_bonuses=True,
            stacks_with_seasonal_multiplier=False,
            description="VIP exclusive - 25% off (disables tier bonuses)",
        ),
        PromoCode(
            code="BULK50",
            discount_type=PromoDiscountType.FIXED_AMOUNT,
            discount_value=50,
            min_order_amount=500,
            max_discount_amount=50,
            valid_from=start,
            valid_until=until,
            usage_limit=100,
            description="Bulk order discount - $50 off orders over $500",
        ),
        PromoCode(
            code="FREESHIP",
            discount_type=PromoDiscountType.FIXED_AMOUNT,
            discount_value=15,
            min_order_amount=75,
            max_discount_amount=15,
            valid_from=start,
            valid_until=until,
            description="Free shipping equivalent - $15 off orders over $75",
        ),
    ]
