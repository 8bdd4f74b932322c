"""Storefront API router — pricing, promo codes, customers, orders, catalog, carts.

Pricing endpoints are thin wrappers over PricingService; storage endpoints
are thin wrappers over the repositories. Business rejections come back as
400 with {"errors": [...], "warnings": [...]} in the detail.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from patterns.domain_config import CustomerType
from verticals.storefront.cart import CartPricingEngine
from verticals.storefront.config import get_rule_table
from verticals.storefront.models.schemas import (
    CartCreate,
    CartItemAdd,
    CartItemUpdate,
    CustomerCreate,
    CustomerUpdate,
    DiscountRequest,
    PriceRequest,
    PromoValidateRequest,
)
from verticals.storefront.pricing import PricingService
from verticals.storefront.promo_codes import PromoCodeEngine
from verticals.storefront.repository import (
    CartRepository,
    CustomerRepository,
    DuplicateEmailError,
    OrderRepository,
    ProductRepository,
    get_cart_repository,
    get_customer_repository,
    get_order_repository,
    get_product_repository,
)
from verticals.storefront.rule_table import RuleTable

logger = logging.getLogger(__name__)

router = APIRouter()


def _with_category_discount(product: dict, table: RuleTable) -> dict:
    discount = table.category_discount_for(product["category"])
    return {**product, "categoryDiscount": discount.discount_percentage if discount else None}


# ============================================================================
# Pricing
# ============================================================================

@router.get("/customer-types")
async def customer_types():
    return {"types": CustomerType.names()}


@router.post("/calculate-discount")
async def calculate_discount(
    request: DiscountRequest,
    table: RuleTable = Depends(get_rule_table),
    orders: OrderRepository = Depends(get_order_repository),
    customers: CustomerRepository = Depends(get_customer_repository),
):
    """Price an order: validation, tier discount, then the optional promo code.

    With saveToHistory and a customerId the order is stored and the promo
    code use is counted.
    """
    service = PricingService(table)
    quote = service.quote(
        request.customer_type,
        request.amount,
        order_date=request.order_date,
        promo_code=request.promo_code,
    )
    if not quote.is_valid:
        raise HTTPException(
            status_code=400,
            detail={"errors": quote.errors, "warnings": quote.warnings},
        )

    result = quote.to_dict()
    if request.save_to_history and request.customer_id:
        # Counting the promo use comes last; a failed write must not consume it.
        order = await orders.create(
            {
                "customer_id": request.customer_id,
                "customer_type": quote.requested_type,
                "effective_customer_type": quote.effective_type.value,
                "original_amount": quote.original_amount,
                "discounted_amount": quote.discounted_amount,
                "discount_percentage": quote.discount_percentage,
                "savings_amount": quote.savings_amount,
                "promo_code": quote.promo_code.code if quote.promo_code else None,
            }
        )
        await customers.record_order(
            request.customer_id, quote.discounted_amount, quote.savings_amount
        )
        if not service.finalize(quote):
            # Raising here rolls back the order and the customer stats.
            raise HTTPException(
                status_code=409,
                detail={
                    "errors": ["This promotional code has reached its usage limit"],
                    "warnings": quote.warnings,
                },
            )
        result["orderId"] = order["id"]
        logger.info("Saved order %s for customer %s", order["id"], request.customer_id)

    return result


@router.get("/promotional-periods")
async def promotional_periods(table: RuleTable = Depends(get_rule_table)):
    return {
        "periods": [
            {
                "name": p.name,
                "startDate": p.start_date.isoformat(),
                "endDate": p.end_date.isoformat(),
                "seasonalMultiplier": p.seasonal_multiplier,
                "recursAnnually": p.recurs_annually,
            }
            for p in table.list_periods()
        ]
    }


# ============================================================================
# Promo codes
# ============================================================================

@router.get("/promo-codes")
async def list_promo_codes(table: RuleTable = Depends(get_rule_table)):
    """Codes that are active, in date and not exhausted."""
    return {"promoCodes": [p.to_dict() for p in PromoCodeEngine(table).list_active()]}


@router.post("/promo-codes/validate")
async def validate_promo_code(
    request: PromoValidateRequest,
    table: RuleTable = Depends(get_rule_table),
):
    validation = PromoCodeEngine(table).validate_promo_code(
        request.code, request.customer_type, request.amount
    )
    return validation.to_dict()


# ============================================================================
# Orders
# ============================================================================

@router.get("/orders")
async def list_orders(
    customer_id: Optional[str] = Query(None, alias="customerId"),
    limit: Optional[int] = Query(None, ge=1),
    repo: OrderRepository = Depends(get_order_repository),
):
    if customer_id:
        return {"orders": await repo.for_customer(customer_id)}
    return {"orders": await repo.recent(limit)}


@router.get("/orders/{order_id}")
async def get_order(order_id: str, repo: OrderRepository = Depends(get_order_repository)):
    order = await repo.get(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.delete("/orders/{order_id}")
async def delete_order(order_id: str, repo: OrderRepository = Depends(get_order_repository)):
    if not await repo.delete(order_id):
        raise HTTPException(status_code=404, detail="Order not found")
    return {"success": True}


@router.get("/stats")
async def order_stats(repo: OrderRepository = Depends(get_order_repository)):
    return await repo.stats()


# ============================================================================
# Customers
# ============================================================================

@router.post("/customers", status_code=201)
async def create_customer(
    request: CustomerCreate,
    repo: CustomerRepository = Depends(get_customer_repository),
):
    data = request.model_dump()
    data["customer_type"] = request.customer_type.value
    try:
        return await repo.create(data)
    except DuplicateEmailError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/customers")
async def list_customers(
    type: Optional[CustomerType] = None,
    search: Optional[str] = None,
    repo: CustomerRepository = Depends(get_customer_repository),
):
    if search:
        return {"customers": await repo.search(search)}
    if type:
        return {"customers": await repo.by_type(type)}
    return {"customers": await repo.all()}


@router.get("/customers/{customer_id}")
async def get_customer(
    customer_id: str,
    repo: CustomerRepository = Depends(get_customer_repository),
):
    customer = await repo.get(customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


@router.put("/customers/{customer_id}")
async def update_customer(
    customer_id: str,
    request: CustomerUpdate,
    repo: CustomerRepository = Depends(get_customer_repository),
):
    updates = request.model_dump(exclude_unset=True)
    if request.customer_type is not None:
        updates["customer_type"] = request.customer_type.value
    try:
        customer = await repo.update(customer_id, updates)
    except DuplicateEmailError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


@router.delete("/customers/{customer_id}")
async def delete_customer(
    customer_id: str,
    repo: CustomerRepository = Depends(get_customer_repository),
):
    if not await repo.delete(customer_id):
        raise HTTPException(status_code=404, detail="Customer not found")
    return {"success": True}


# ============================================================================
# Catalog
# ============================================================================

@router.get("/products")
async def list_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    repo: ProductRepository = Depends(get_product_repository),
    table: RuleTable = Depends(get_rule_table),
):
    if search:
        products = await repo.search(search)
    else:
        products = await repo.all(category)
    return {"products": [_with_category_discount(p, table) for p in products]}


@router.get("/products/{product_id}")
async def get_product(
    product_id: str,
    repo: ProductRepository = Depends(get_product_repository),
    table: RuleTable = Depends(get_rule_table),
):
    product = await repo.get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return _with_category_discount(product, table)


@router.post("/products/{product_id}/calculate-price")
async def calculate_product_price(
    product_id: str,
    request: PriceRequest,
    repo: ProductRepository = Depends(get_product_repository),
    table: RuleTable = Depends(get_rule_table),
):
    entries = await repo.catalog_entries([product_id])
    if product_id not in entries:
        raise HTTPException(status_code=404, detail="Product not found")
    engine = CartPricingEngine(table.category_percentage_for)
    return engine.price_product(entries[product_id], request.quantity)


@router.get("/category-discounts")
async def category_discounts(table: RuleTable = Depends(get_rule_table)):
    return {
        "discounts": [
            {
                "category": d.category,
                "discountPercentage": d.discount_percentage,
                "description": d.description,
                "active": d.active,
            }
            for d in table.list_category_discounts()
        ]
    }


# ============================================================================
# Carts
# ============================================================================

@router.post("/cart")
async def get_or_create_cart(
    request: CartCreate,
    repo: CartRepository = Depends(get_cart_repository),
):
    return await repo.get_or_create(request.customer_id, request.customer_type)


@router.get("/cart/{cart_id}")
async def get_cart(cart_id: str, repo: CartRepository = Depends(get_cart_repository)):
    cart = await repo.get(cart_id)
    if not cart:
        raise HTTPException(status_code=404, detail="Cart not found")
    return cart


@router.post("/cart/{cart_id}/items")
async def add_cart_item(
    cart_id: str,
    request: CartItemAdd,
    repo: CartRepository = Depends(get_cart_repository),
    products: ProductRepository = Depends(get_product_repository),
):
    cart = None
    if await products.get(request.product_id):
        cart = await repo.add_item(cart_id, request.product_id, request.quantity)
    if not cart:
        raise HTTPException(status_code=404, detail="Cart or product not found")
    return cart


@router.put("/cart/{cart_id}/items/{product_id}")
async def update_cart_item(
    cart_id: str,
    product_id: str,
    request: CartItemUpdate,
    repo: CartRepository = Depends(get_cart_repository),
):
    cart = await repo.set_quantity(cart_id, product_id, request.quantity)
    if not cart:
        raise HTTPException(status_code=404, detail="Cart or item not found")
    return cart


@router.delete("/cart/{cart_id}/items/{product_id}")
async def remove_cart_item(
    cart_id: str,
    product_id: str,
    repo: CartRepository = Depends(get_cart_repository),
):
    cart = await repo.remove_item(cart_id, product_id)
    if not cart:
        raise HTTPException(status_code=404, detail="Cart not found")
    return cart


@router.get("/cart/{cart_id}/summary")
async def cart_summary(
    cart_id: str,
    repo: CartRepository = Depends(get_cart_repository),
    products: ProductRepository = Depends(get_product_repository),
    table: RuleTable = Depends(get_rule_table),
):
    """Category discounts only; tierDiscount and promoCodeDiscount are always 0."""
    lines = await repo.lines(cart_id)
    if lines is None:
        raise HTTPException(status_code=404, detail="Cart not found")

    entries = await products.catalog_entries([product_id for product_id, _ in lines])
    engine = CartPricingEngine(table.category_percentage_for)
    priced = engine.price_cart(lines, entries.get)
    return {**engine.summarize(priced).to_dict(), "lines": [line.to_dict() for line in priced]}


@router.delete("/cart/{cart_id}")
async def delete_cart(cart_id: str, repo: CartRepository = Depends(get_cart_repository)):
    if not await repo.delete(cart_id):
        raise HTTPException(status_code=404, detail="Cart not found")
    return {"success": True}
