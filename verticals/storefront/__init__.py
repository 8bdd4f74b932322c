"""Storefront vertical — discount pricing for an e-commerce platform.

Pieces, leaves first:
- RuleTable: configured rates, caps, tier bands, periods, category
  discounts and promo codes
- DiscountCalculator: base * seasonal + tier, capped per customer type
- RequestValidator: errors vs warnings, downgrades, seasonal qualification
- PromoCodeEngine: gate checks and post-tier promo discounts
- CartPricingEngine: category discounts per cart line
- PricingService: the request pipeline tying them together
"""

from verticals.storefront.calculator import DiscountCalculator, DiscountContext, DiscountResult
from verticals.storefront.cart import CartPricingEngine, CartSummary
from verticals.storefront.pricing import DiscountQuote, PricingService
from verticals.storefront.promo_codes import PromoCodeEngine, PromoDiscount, PromoValidation
from verticals.storefront.rule_table import RuleTable
from verticals.storefront.rules import RequestValidator

__all__ = [
    "CartPricingEngine",
    "CartSummary",
    "DiscountCalculator",
    "DiscountContext",
    "DiscountQuote",
    "DiscountResult",
    "PricingService",
    "PromoCodeEngine",
    "PromoDiscount",
    "PromoValidation",
    "RequestValidator",
    "RuleTable",
]
