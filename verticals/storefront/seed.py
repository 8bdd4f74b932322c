"""Sample catalog loaded at startup when SEED_CATALOG is on."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from verticals.storefront.models.db_models import Product

logger = logging.getLogger(__name__)

SAMPLE_PRODUCTS: list[dict] = [
    {"id": "PROD-001", "name": "Wireless Headphones", "category": "ELECTRONICS",
     "description": "Premium noise-cancelling wireless headphones", "base_price": 199.99, "stock": 50},
    {"id": "PROD-002", "name": "Smart Watch", "category": "ELECTRONICS",
     "description": "Fitness tracking smartwatch with heart rate monitor", "base_price": 299.99, "stock": 30},
    {"id": "PROD-003", "name": "Running Shoes", "category": "SPORTS",
     "description": "Professional running shoes with cushioned sole", "base_price": 89.99, "stock": 100},
    {"id": "PROD-004", "name": "Cotton T-Shirt", "category": "CLOTHING",
     "description": "Comfortable 100% cotton t-shirt", "base_price": 24.99, "stock": 200},
    {"id": "PROD-005", "name": "Programming Book", "category": "BOOKS",
     "description": "Learn Python: A comprehensive guide", "base_price": 49.99, "stock": 75},
    {"id": "PROD-006", "name": "Coffee Maker", "category": "HOME",
     "description": "Automatic drip coffee maker with timer", "base_price": 79.99, "stock": 40},
    {"id": "PROD-007", "name": "Yoga Mat", "category": "SPORTS",
     "description": "Non-slip exercise yoga mat", "base_price": 34.99, "stock": 80},
    {"id": "PROD-008", "name": "Building Blocks Set", "category": "TOYS",
     "description": "Educational building blocks for kids", "base_price": 44.99, "stock": 60},
    {"id": "PROD-009", "name": "Laptop Stand", "category": "ELECTRONICS",
     "description": "Adjustable aluminum laptop stand", "base_price": 39.99, "stock": 90},
    {"id": "PROD-010", "name": "Winter Jacket", "category": "CLOTHING",
     "description": "Warm insulated winter jacket", "base_price": 129.99, "stock": 45},
]


async def seed_catalog(session: AsyncSession) -> int:
    """Insert the sample products into an empty catalog. Returns rows added."""
    count = (await session.execute(select(func.count()).select_from(Product))).scalar() or 0
    if count:
        return 0
    session.add_all(Product(**data) for data in SAMPLE_PRODUCTS)
    await session.flush()
    logger.info("Seeded %d sample products", len(SAMPLE_PRODUCTS))
    return len(SAMPLE_PRODUCTS)
