"""Cart pricing — category discounts per line, aggregated per cart.

Orthogonal to customer-tier pricing. The summary's tier_discount and
promo_code_discount fields are always 0.0: composing tier and promo
discounts into a cart total is not implemented.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogEntry:
    """What the engine needs to know about a product."""

    product_id: str
    name: str
    category: str
    base_price: float


@dataclass(frozen=True)
class CartLine:
    product_id: str
    product_name: str
    quantity: int
    unit_price: float
    category_discount: float  # percentage, e.g. 10 for 10%
    discounted_unit_price: float
    subtotal: float

    @property
    def gross(self) -> float:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict[str, Any]:
        return {
            "productId": self.product_id,
            "productName": self.product_name,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
            "categoryDiscount": self.category_discount,
            "discountedUnitPrice": self.discounted_unit_price,
            "subtotal": self.subtotal,
        }


@dataclass(frozen=True)
class CartSummary:
    item_count: int
    subtotal: float
    category_discounts: float
    total_discount: float
    final_total: float
    tier_discount: float = 0.0
    promo_code_discount: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "itemCount": self.item_count,
            "subtotal": self.subtotal,
            "categoryDiscounts": self.category_discounts,
            "tierDiscount": self.tier_discount,
            "promoCodeDiscount": self.promo_code_discount,
            "totalDiscount": self.total_discount,
            "finalTotal": self.final_total,
        }


class CartPricingEngine:
    """Prices cart lines with a category-discount lookup.

    category_discount_for maps a category name to a percentage (0 if none).
    """

    def __init__(self, category_discount_for: Callable[[str], float]):
        self.category_discount_for = category_discount_for

    def price_line(self, product: CatalogEntry, quantity: int) -> CartLine:
        pct = self.category_discount_for(product.category)
        discounted = product.base_price * (1 - pct / 100)
        return CartLine(
            product_id=product.product_id,
            product_name=product.name,
            quantity=quantity,
            unit_price=product.base_price,
            category_discount=pct,
            discounted_unit_price=discounted,
            subtotal=discounted * quantity,
        )

    def price_product(self, product: CatalogEntry, quantity: int = 1) -> dict[str, float]:
        line = self.price_line(product, quantity)
        return {
            "basePrice": line.unit_price,
            "categoryDiscount": line.category_discount,
            "finalPrice": line.discounted_unit_price,
            "totalPrice": line.subtotal,
        }

    def price_cart(
        self,
        items: Iterable[tuple[str, int]],
        lookup: Callable[[str], Optional[CatalogEntry]],
    ) -> list[CartLine]:
        """Price (product_id, quantity) pairs. Products no longer in the catalog are left out."""
        lines = []
        for product_id, quantity in items:
            product = lookup(product_id)
            if product is None:
                logger.warning("Cart references unknown product %s; skipping", product_id)
                continue
            lines.append(self.price_line(product, quantity))
        return lines

    @staticmethod
    def summarize(lines: Iterable[CartLine]) -> CartSummary:
        lines = list(lines)
        subtotal = sum(line.gross for line in lines)
        final_total = sum(line.subtotal for line in lines)
        category_discounts = subtotal - final_total
        return CartSummary(
            item_count=sum(line.quantity for line in lines),
            subtotal=subtotal,
            category_discounts=category_discounts,
            total_discount=category_discounts,
            final_total=final_total,
        )
