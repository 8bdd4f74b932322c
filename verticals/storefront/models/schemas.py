"""Pydantic schemas for API request validation.

Field names are snake_case in Python and camelCase on the wire.
customer_type stays a plain string on discount requests so that an unknown
type is reported by the request validator alongside any other errors.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from patterns.domain_config import CustomerType


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------

class DiscountRequest(CamelModel):
    customer_type: str = Field(..., min_length=1)
    amount: float
    order_date: Optional[date] = None
    promo_code: Optional[str] = None
    customer_id: Optional[str] = None
    save_to_history: bool = False


class PromoValidateRequest(CamelModel):
    code: str = Field(..., min_length=1)
    customer_type: CustomerType
    amount: float


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------

class CustomerCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    customer_type: CustomerType
    notes: Optional[str] = None


class CustomerUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[str] = Field(None, min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    customer_type: Optional[CustomerType] = None
    notes: Optional[str] = None


# ---------------------------------------------------------------------------
# Catalog & carts
# ---------------------------------------------------------------------------

class PriceRequest(CamelModel):
    quantity: int = Field(1, ge=1)


class CartCreate(CamelModel):
    customer_id: str = Field(..., min_length=1)
    customer_type: CustomerType


class CartItemAdd(CamelModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)


class CartItemUpdate(CamelModel):
    quantity: int
