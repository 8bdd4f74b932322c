"""Test the HTTP surface through FastAPI's TestClient."""
import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

from api.main import app
from core.database import get_session
from verticals.storefront.repository import OrderRepository, get_order_repository

OFF_SEASON = "2025-06-15"
BLACK_FRIDAY = "2025-11-28"


@pytest.fixture
def client():
    # Entering the client runs the lifespan: fresh in-memory DB, seeded catalog.
    with TestClient(app) as c:
        yield c


def _create_customer(client, email="ada@example.com", customer_type="VIP"):
    response = client.post(
        "/api/customers",
        json={"name": "Ada", "email": email, "customerType": customer_type},
    )
    assert response.status_code == 201
    return response.json()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"
    assert client.get("/health").headers["X-Request-ID"]


def test_customer_types(client):
    assert client.get("/api/customer-types").json() == {
        "types": ["REGULAR", "LOYALTY", "VIP", "ENTERPRISE"]
    }


# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------

def test_calculate_discount(client):
    response = client.post(
        "/api/calculate-discount",
        json={"customerType": "VIP", "amount": 1000, "orderDate": BLACK_FRIDAY},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["discountedAmount"] == pytest.approx(700)
    assert data["discountPercentage"] == 30.0
    assert data["breakdown"]["seasonalMultiplier"] == 2.0
    assert data["warnings"] == []


def test_calculate_discount_with_promo_code(client):
    response = client.post(
        "/api/calculate-discount",
        json={
            "customerType": "VIP",
            "amount": 100,
            "orderDate": OFF_SEASON,
            "promoCode": "welcome10",
        },
    )
    data = response.json()
    assert data["discountedAmount"] == pytest.approx(81)
    assert data["promoCodeDiscount"]["discountAmount"] == pytest.approx(9)
    assert data["promoCodeDiscount"]["appliedAfterTierDiscount"] is True


def test_enterprise_downgrade_warning(client):
    response = client.post(
        "/api/calculate-discount",
        json={"customerType": "ENTERPRISE", "amount": 3000, "orderDate": OFF_SEASON},
    )
    data = response.json()
    assert data["effectiveCustomerType"] == "VIP"
    assert data["discountedAmount"] == pytest.approx(2400)
    assert data["warnings"] == [
        "Order below $5000 minimum for ENTERPRISE. Applying VIP pricing instead."
    ]


def test_invalid_request_lists_every_error(client):
    response = client.post(
        "/api/calculate-discount", json={"customerType": "BOGUS", "amount": -5}
    )
    assert response.status_code == 400
    assert len(response.json()["detail"]["errors"]) == 2


def test_invalid_promo_code_is_rejected(client):
    response = client.post(
        "/api/calculate-discount",
        json={"customerType": "REGULAR", "amount": 300, "promoCode": "VIP25"},
    )
    assert response.status_code == 400
    assert response.json()["detail"]["errors"] == [
        "This promotional code is only available for VIP, ENTERPRISE customers"
    ]


def test_malformed_body(client):
    response = client.post("/api/calculate-discount", json={"customerType": "VIP"})
    assert response.status_code == 422


def test_save_to_history(client):
    customer = _create_customer(client)
    response = client.post(
        "/api/calculate-discount",
        json={
            "customerType": "VIP",
            "amount": 600,
            "orderDate": OFF_SEASON,
            "promoCode": "BULK50",
            "customerId": customer["id"],
            "saveToHistory": True,
        },
    )
    assert response.status_code == 200
    order_id = response.json()["orderId"]

    order = client.get(f"/api/orders/{order_id}").json()
    assert order["promoCode"] == "BULK50"
    assert order["discountedAmount"] == pytest.approx(460)

    orders = client.get("/api/orders", params={"customerId": customer["id"]}).json()["orders"]
    assert [o["id"] for o in orders] == [order_id]

    stats = client.get("/api/stats").json()
    assert stats["totalOrders"] == 1
    assert stats["ordersByCustomerType"]["VIP"] == 1

    refreshed = client.get(f"/api/customers/{customer['id']}").json()
    assert refreshed["totalOrders"] == 1
    assert refreshed["totalSpent"] == pytest.approx(460)

    promo = next(
        p for p in client.get("/api/promo-codes").json()["promoCodes"] if p["code"] == "BULK50"
    )
    assert promo["usageCount"] == 1

    assert client.delete(f"/api/orders/{order_id}").json() == {"success": True}
    assert client.get(f"/api/orders/{order_id}").status_code == 404


def test_quote_without_save_does_not_count_usage(client):
    client.post(
        "/api/calculate-discount",
        json={"customerType": "VIP", "amount": 600, "promoCode": "BULK50"},
    )
    promo = next(
        p for p in client.get("/api/promo-codes").json()["promoCodes"] if p["code"] == "BULK50"
    )
    assert promo["usageCount"] == 0


def test_promotional_periods(client):
    periods = client.get("/api/promotional-periods").json()["periods"]
    assert [p["name"] for p in periods] == [
        "Black Friday Week",
        "Cyber Monday Week",
        "Holiday Season",
    ]


def test_validate_promo_code(client):
    response = client.post(
        "/api/promo-codes/validate",
        json={"code": "VIP25", "customerType": "VIP", "amount": 500},
    )
    data = response.json()
    assert data["isValid"] is True
    assert len(data["warnings"]) == 2
    assert data["promoCode"]["code"] == "VIP25"

    response = client.post(
        "/api/promo-codes/validate",
        json={"code": "SAVE20", "customerType": "REGULAR", "amount": 50},
    )
    assert response.json()["errors"] == ["Minimum order amount of $100 required for this code"]


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------

def test_customer_crud(client):
    customer = _create_customer(client)

    duplicate = client.post(
        "/api/customers",
        json={"name": "Ada again", "email": "ADA@example.com", "customerType": "REGULAR"},
    )
    assert duplicate.status_code == 409

    updated = client.put(
        f"/api/customers/{customer['id']}", json={"customerType": "LOYALTY"}
    ).json()
    assert updated["customerType"] == "LOYALTY"
    assert updated["name"] == "Ada"

    listed = client.get("/api/customers", params={"type": "LOYALTY"}).json()["customers"]
    assert [c["id"] for c in listed] == [customer["id"]]

    assert client.delete(f"/api/customers/{customer['id']}").status_code == 200
    assert client.get(f"/api/customers/{customer['id']}").status_code == 404


def test_invalid_customer_payload(client):
    response = client.post(
        "/api/customers",
        json={"name": "Ada", "email": "not-an-email", "customerType": "VIP"},
    )
    assert response.status_code == 422


# ---------------------------------------------------------------------------
# Catalog & carts
# ---------------------------------------------------------------------------

def test_products_carry_category_discount(client):
    books = client.get("/api/products", params={"category": "BOOKS"}).json()["products"]
    assert [(p["id"], p["categoryDiscount"]) for p in books] == [("PROD-005", 15)]

    toys = client.get("/api/products/PROD-008").json()
    assert toys["categoryDiscount"] is None
    assert client.get("/api/products/PROD-404").status_code == 404


def test_calculate_product_price(client):
    response = client.post("/api/products/PROD-005/calculate-price", json={"quantity": 2})
    data = response.json()
    assert data["categoryDiscount"] == 15
    assert data["totalPrice"] == pytest.approx(84.983)


def test_category_discounts(client):
    discounts = client.get("/api/category-discounts").json()["discounts"]
    assert {d["category"] for d in discounts} == {"ELECTRONICS", "CLOTHING", "BOOKS", "SPORTS"}


def test_cart_flow(client):
    cart = client.post("/api/cart", json={"customerId": "c1", "customerType": "VIP"}).json()
    cart_id = cart["id"]

    client.post(f"/api/cart/{cart_id}/items", json={"productId": "PROD-001"})
    client.post(f"/api/cart/{cart_id}/items", json={"productId": "PROD-008", "quantity": 2})
    missing = client.post(f"/api/cart/{cart_id}/items", json={"productId": "PROD-404"})
    assert missing.status_code == 404

    summary = client.get(f"/api/cart/{cart_id}/summary").json()
    assert summary["itemCount"] == 3
    assert summary["subtotal"] == pytest.approx(289.97)
    assert summary["categoryDiscounts"] == pytest.approx(9.9995)
    assert summary["finalTotal"] == pytest.approx(279.9705)
    assert summary["tierDiscount"] == 0
    assert len(summary["lines"]) == 2

    updated = client.put(f"/api/cart/{cart_id}/items/PROD-008", json={"quantity": 0}).json()
    assert [i["productId"] for i in updated["items"]] == ["PROD-001"]

    assert client.delete(f"/api/cart/{cart_id}").json() == {"success": True}
    assert client.get(f"/api/cart/{cart_id}").status_code == 404
    assert client.get(f"/api/cart/{cart_id}/summary").status_code == 404


class _BrokenOrderRepository(OrderRepository):
    async def create(self, data):
        raise RuntimeError("order table unavailable")


def test_failed_order_write_does_not_count_promo_use():
    app.dependency_overrides[get_order_repository] = (
        lambda session=Depends(get_session): _BrokenOrderRepository(session)
    )
    try:
        with TestClient(app, raise_server_exceptions=False) as client:
            customer = _create_customer(client)
            response = client.post(
                "/api/calculate-discount",
                json={
                    "customerType": "VIP",
                    "amount": 600,
                    "orderDate": OFF_SEASON,
                    "promoCode": "BULK50",
                    "customerId": customer["id"],
                    "saveToHistory": True,
                },
            )
            assert response.status_code == 500
            assert app.state.rule_table.get_promo_code("BULK50").usage_count == 0

            stored = client.get(f"/api/customers/{customer['id']}").json()
            assert stored["totalOrders"] == 0
    finally:
        app.dependency_overrides.clear()
