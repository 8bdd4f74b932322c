"""Storefront Discount API — FastAPI entry point.

Registers middleware, routers, and lifecycle hooks. Storefront routes are
mounted under /api/.
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import RequestContextMiddleware
from core.database import close_db, get_session_context, init_db
from core.observability.logging_setup import setup_logging

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS", "http://localhost:3000,http://localhost:5173"
).split(",")
SEED_CATALOG = os.getenv("SEED_CATALOG", "true").lower() == "true"
VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown hooks."""
    import verticals.storefront.models.db_models  # noqa: F401
    from verticals.storefront.config import load_rule_table
    from verticals.storefront.seed import seed_catalog

    setup_logging()
    app.state.rule_table = load_rule_table()

    await init_db()
    if SEED_CATALOG:
        async with get_session_context() as session:
            await seed_catalog(session)

    logger.info("Storefront discount API started")
    yield
    await close_db()
    logger.info("Storefront discount API shut down")


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Storefront Discount API",
    description="Tiered customer discounts, seasonal promotions, promo codes and cart pricing",
    version=VERSION,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request id + access log
app.add_middleware(RequestContextMiddleware)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

from verticals.storefront.router import router as storefront_router  # noqa: E402

app.include_router(storefront_router, prefix="/api", tags=["Storefront"])


# ---------------------------------------------------------------------------
# Health & root
# ---------------------------------------------------------------------------

@app.get("/health")
async def health():
    return {"status": "ok", "service": "discount-api", "version": VERSION}


@app.get("/")
async def root():
    return {
        "name": "Storefront Discount API",
        "version": VERSION,
        "docs": "/docs",
    }
