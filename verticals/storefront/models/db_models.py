"""SQLAlchemy models for the storefront.

Each model inherits from Base and uses RecordMixin for its generated key and
timestamps. The to_dict() method provides the serialisation used by
repositories and routers (camelCase, matching the JSON API).
"""

from datetime import timezone

from sqlalchemy import String, Float, Integer, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.models.base import Base, RecordMixin


def _iso(value) -> str | None:
    if value is None:
        return None
    # SQLite hands timestamps back without an offset; they are stored as UTC.
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class Customer(RecordMixin, Base):
    """A customer profile with lifetime order stats."""

    __tablename__ = "customers"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    email_key: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)
    customer_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    total_orders: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_spent: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    lifetime_savings: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "customerType": self.customer_type,
            "joinDate": _iso(self.created_at),
            "totalOrders": self.total_orders,
            "totalSpent": self.total_spent,
            "lifetimeSavings": self.lifetime_savings,
            "notes": self.notes,
        }


class Order(RecordMixin, Base):
    """A priced order saved to history. Records the requested customer type."""

    __tablename__ = "orders"

    customer_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    customer_type: Mapped[str] = mapped_column(String(20), nullable=False)
    effective_customer_type: Mapped[str] = mapped_column(String(20), nullable=False)
    original_amount: Mapped[float] = mapped_column(Float, nullable=False)
    discounted_amount: Mapped[float] = mapped_column(Float, nullable=False)
    discount_percentage: Mapped[float] = mapped_column(Float, nullable=False)
    savings_amount: Mapped[float] = mapped_column(Float, nullable=False)
    promo_code: Mapped[str | None] = mapped_column(String(64), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customerId": self.customer_id,
            "customerType": self.customer_type,
            "effectiveCustomerType": self.effective_customer_type,
            "originalAmount": self.original_amount,
            "discountedAmount": self.discounted_amount,
            "discountPercentage": self.discount_percentage,
            "savingsAmount": self.savings_amount,
            "promoCode": self.promo_code,
            "timestamp": _iso(self.created_at),
        }


class Product(RecordMixin, Base):
    """A catalog product. Category discounts come from the rule table."""

    __tablename__ = "products"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    base_price: Mapped[float] = mapped_column(Float, nullable=False)
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "basePrice": self.base_price,
            "stock": self.stock,
            "imageUrl": self.image_url,
        }


class Cart(RecordMixin, Base):
    """One open cart per customer."""

    __tablename__ = "carts"

    customer_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    customer_type: Mapped[str] = mapped_column(String(20), nullable=False)

    items: Mapped[list["CartItem"]] = relationship(
        back_populates="cart",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="CartItem.created_at",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customerId": self.customer_id,
            "customerType": self.customer_type,
            "items": [item.to_dict() for item in self.items],
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class CartItem(RecordMixin, Base):
    """A product line in a cart. Prices are resolved at read time."""

    __tablename__ = "cart_items"
    __table_args__ = (UniqueConstraint("cart_id", "product_id"),)

    cart_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("carts.id"), nullable=False, index=True
    )
    product_id: Mapped[str] = mapped_column(String(64), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    cart: Mapped["Cart"] = relationship(back_populates="items")

    def to_dict(self) -> dict:
        return {"productId": self.product_id, "quantity": self.quantity}
