"""Storefront repositories — async keyed storage for customers, orders,
products and carts.

Extends BaseRepository with storefront queries: customer search and stats,
order history and aggregates, catalog search, cart line management. None of
this code prices anything; pricing lives in the engines.
"""

from typing import Any

from fastapi import Depends
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_session
from core.models.base import utcnow
from patterns.domain_config import CustomerType
from patterns.repository import BaseRepository
from verticals.storefront.cart import CatalogEntry
from verticals.storefront.models.db_models import Cart, CartItem, Customer, Order, Product


class DuplicateEmailError(ValueError):
    """A customer with this email already exists."""


# ---------------------------------------------------------------------------
# Customer repository
# ---------------------------------------------------------------------------

class CustomerRepository(BaseRepository[Customer]):
    """Customers, unique by case-insensitive email."""

    model = Customer

    async def _email_taken(self, email: str, exclude_id: str | None = None) -> bool:
        stmt = select(Customer.id).where(Customer.email_key == email.lower())
        if exclude_id:
            stmt = stmt.where(Customer.id != exclude_id)
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def create(self, data: dict[str, Any]) -> dict:
        if await self._email_taken(data["email"]):
            raise DuplicateEmailError("Customer with this email already exists")
        return await super().create({**data, "email_key": data["email"].lower()})

    async def update(self, item_id: str, data: dict[str, Any]) -> dict | None:
        if data.get("email"):
            if await self._email_taken(data["email"], exclude_id=item_id):
                raise DuplicateEmailError("Customer with this email already exists")
            data = {**data, "email_key": data["email"].lower()}
        return await super().update(item_id, data)

    async def get_by_email(self, email: str) -> dict | None:
        result = await self.session.execute(
            select(Customer).where(Customer.email_key == email.lower())
        )
        row = result.scalar_one_or_none()
        return row.to_dict() if row else None

    async def all(self) -> list[dict]:
        """Newest first."""
        result = await self.session.execute(
            select(Customer).order_by(Customer.created_at.desc())
        )
        return [row.to_dict() for row in result.scalars().all()]

    async def by_type(self, customer_type: CustomerType) -> list[dict]:
        """Customers of one type, biggest spenders first."""
        result = await self.session.execute(
            select(Customer)
            .where(Customer.customer_type == customer_type.value)
            .order_by(Customer.total_spent.desc())
        )
        return [row.to_dict() for row in result.scalars().all()]

    async def search(self, query: str) -> list[dict]:
        """Match name, email or id (case-insensitive substring)."""
        pattern = f"%{query}%"
        result = await self.session.execute(
            select(Customer)
            .where(
                or_(
                    Customer.name.ilike(pattern),
                    Customer.email.ilike(pattern),
                    Customer.id.ilike(pattern),
                )
            )
            .order_by(Customer.total_spent.desc())
        )
        return [row.to_dict() for row in result.scalars().all()]

    async def record_order(self, customer_id: str, order_amount: float, savings: float) -> None:
        """Bump lifetime stats. Unknown customers are ignored."""
        customer = await self.get_model(customer_id)
        if not customer:
            return
        customer.total_orders += 1
        customer.total_spent += order_amount
        customer.lifetime_savings += savings
        await self.session.flush()


# ---------------------------------------------------------------------------
# Order repository
# ---------------------------------------------------------------------------

class OrderRepository(BaseRepository[Order]):
    """Order history. Aggregates are plain sums over stored orders."""

    model = Order

    async def recent(self, limit: int | None = None) -> list[dict]:
        stmt = select(Order).order_by(Order.created_at.desc())
        if limit:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return [row.to_dict() for row in result.scalars().all()]

    async def for_customer(self, customer_id: str) -> list[dict]:
        result = await self.session.execute(
            select(Order)
            .where(Order.customer_id == customer_id)
            .order_by(Order.created_at.desc())
        )
        return [row.to_dict() for row in result.scalars().all()]

    async def stats(self) -> dict[str, Any]:
        totals = await self.session.execute(
            select(
                func.count(Order.id),
                func.coalesce(func.sum(Order.discounted_amount), 0.0),
                func.coalesce(func.sum(Order.savings_amount), 0.0),
                func.coalesce(func.avg(Order.discount_percentage), 0.0),
            )
        )
        count, revenue, savings, avg_discount = totals.one()

        by_type = {t.value: 0 for t in CustomerType}
        grouped = await self.session.execute(
            select(Order.customer_type, func.count(Order.id)).group_by(Order.customer_type)
        )
        for customer_type, type_count in grouped.all():
            by_type[customer_type] = type_count

        return {
            "totalOrders": count,
            "totalRevenue": float(revenue),
            "totalSavings": float(savings),
            "averageOrderValue": float(revenue) / count if count else 0.0,
            "averageDiscount": float(avg_discount),
            "ordersByCustomerType": by_type,
        }


# ---------------------------------------------------------------------------
# Product repository
# ---------------------------------------------------------------------------

class ProductRepository(BaseRepository[Product]):
    """Product catalog."""

    model = Product

    async def all(self, category: str | None = None) -> list[dict]:
        stmt = select(Product).order_by(Product.id)
        if category:
            stmt = stmt.where(Product.category == category.upper())
        result = await self.session.execute(stmt)
        return [row.to_dict() for row in result.scalars().all()]

    async def search(self, query: str) -> list[dict]:
        pattern = f"%{query}%"
        result = await self.session.execute(
            select(Product)
            .where(
                or_(
                    Product.name.ilike(pattern),
                    Product.description.ilike(pattern),
                    Product.category.ilike(pattern),
                )
            )
            .order_by(Product.id)
        )
        return [row.to_dict() for row in result.scalars().all()]

    async def catalog_entries(self, product_ids: list[str]) -> dict[str, CatalogEntry]:
        if not product_ids:
            return {}
        result = await self.session.execute(select(Product).where(Product.id.in_(product_ids)))
        return {
            p.id: CatalogEntry(p.id, p.name, p.category, p.base_price)
            for p in result.scalars().all()
        }

    async def adjust_stock(self, product_id: str, delta: int) -> bool:
        """Apply a stock delta. Refuses to go below zero."""
        product = await self.get_model(product_id)
        if not product or product.stock + delta < 0:
            return False
        product.stock += delta
        await self.session.flush()
        return True


# ---------------------------------------------------------------------------
# Cart repository
# ---------------------------------------------------------------------------

class CartRepository(BaseRepository[Cart]):
    """Carts and their lines. Quantities only; prices are resolved on read."""

    model = Cart

    async def get_or_create(self, customer_id: str, customer_type: CustomerType) -> dict:
        result = await self.session.execute(select(Cart).where(Cart.customer_id == customer_id))
        cart = result.scalar_one_or_none()
        if cart:
            return cart.to_dict()
        return await self.create(
            {"customer_id": customer_id, "customer_type": customer_type.value, "items": []}
        )

    async def add_item(self, cart_id: str, product_id: str, quantity: int = 1) -> dict | None:
        cart = await self.get_model(cart_id)
        if not cart:
            return None

        existing = next((i for i in cart.items if i.product_id == product_id), None)
        if existing:
            existing.quantity += quantity
        else:
            cart.items.append(CartItem(product_id=product_id, quantity=quantity))
        cart.updated_at = utcnow()
        await self.session.flush()
        return cart.to_dict()

    async def set_quantity(self, cart_id: str, product_id: str, quantity: int) -> dict | None:
        """Set a line's quantity; zero or less removes the line."""
        cart = await self.get_model(cart_id)
        if not cart:
            return None
        item = next((i for i in cart.items if i.product_id == product_id), None)
        if not item:
            return None

        if quantity <= 0:
            cart.items.remove(item)
        else:
            item.quantity = quantity
        cart.updated_at = utcnow()
        await self.session.flush()
        return cart.to_dict()

    async def remove_item(self, cart_id: str, product_id: str) -> dict | None:
        cart = await self.get_model(cart_id)
        if not cart:
            return None
        for item in [i for i in cart.items if i.product_id == product_id]:
            cart.items.remove(item)
        cart.updated_at = utcnow()
        await self.session.flush()
        return cart.to_dict()

    async def lines(self, cart_id: str) -> list[tuple[str, int]] | None:
        cart = await self.get_model(cart_id)
        if not cart:
            return None
        return [(i.product_id, i.quantity) for i in cart.items]


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------

def get_customer_repository(session: AsyncSession = Depends(get_session)) -> CustomerRepository:
    return CustomerRepository(session)


def get_order_repository(session: AsyncSession = Depends(get_session)) -> OrderRepository:
    return OrderRepository(session)


def get_product_repository(session: AsyncSession = Depends(get_session)) -> ProductRepository:
    return ProductRepository(session)


def get_cart_repository(session: AsyncSession = Depends(get_session)) -> CartRepository:
    return CartRepository(session)
