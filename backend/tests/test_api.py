import httpx
import pytest_asyncio

from marketplace.core.db import get_db
from marketplace.core.security import create_access_token, hash_password
from marketplace.main import app
from marketplace.models.account import Account

from .conftest import ADDRESS


@pytest_asyncio.fixture
async def client(session_factory):
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


def auth(account) -> dict:
    return {"Authorization": f"Bearer {create_access_token(subject=account.username, role=account.role)}"}


async def test_checkout_to_payout_flow(client, db, factory):
    customer = await factory.account("customer")
    admin = await factory.account("admin")
    v1 = await factory.vendor(commission="10.00")
    v2 = await factory.vendor(commission="15.00")
    a = await factory.product(v1, price=5000)
    b = await factory.product(v2, price=5000)
    vendor_account = await db.get(Account, v1.account_id)
    await db.commit()

    for product in (a, b):
        r = await client.put("/api/v1/cart/items", json={"product_id": product.id, "quantity": 1}, headers=auth(customer))
        assert r.status_code == 200
    assert r.json()["subtotal"] == 10000

    body = {"shipping_address": ADDRESS, "payment_method": "card", "tax_price": 500, "shipping_price": 1200}
    headers = {**auth(customer), "Idempotency-Key": "checkout-1"}
    r = await client.post("/api/v1/orders", json=body, headers=headers)
    assert r.status_code == 201, r.text
    order = r.json()
    assert order["total_price"] == 11700
    assert [so["vendor_earnings"] for so in order["sub_orders"]] == [4500, 4250]

    r = await client.post("/api/v1/orders", json=body, headers=headers)
    assert r.status_code == 201
    assert r.json()["id"] == order["id"]

    r = await client.get("/api/v1/cart", headers=auth(customer))
    assert r.json()["items"] == []

    r = await client.get("/api/v1/vendor/wallet", headers=auth(vendor_account))
    assert r.json()["balance"] == 4500

    r = await client.put(
        f"/api/v1/vendor/orders/{order['id']}/status",
        json={"status": "shipped", "carrier": "DHL", "tracking_number": "T-1"},
        headers=auth(vendor_account),
    )
    assert r.status_code == 200, r.text
    assert r.json()["sub_order"]["tracking"]["status"] == "shipped"
    assert r.json()["sub_order"]["tracking"]["estimated_delivery"] is not None

    r = await client.post("/api/v1/vendor/payouts", json={"amount": 4000}, headers=auth(vendor_account))
    assert r.status_code == 201, r.text
    payout_id = r.json()["id"]

    r = await client.post(f"/api/v1/admin/payouts/{payout_id}/approve", headers=auth(admin))
    assert r.json()["status"] == "approved"
    r = await client.post(f"/api/v1/admin/payouts/{payout_id}/process", json={"transaction_id": "TXN-9"}, headers=auth(admin))
    assert r.json()["status"] == "completed"
    r = await client.post(f"/api/v1/admin/payouts/{payout_id}/process", json={"transaction_id": "TXN-9"}, headers=auth(admin))
    assert r.status_code == 409

    r = await client.get(f"/api/v1/admin/wallets/{v1.id}", headers=auth(admin))
    assert r.json()["balance"] == 500

    r = await client.get("/api/v1/vendor/wallet/transactions", headers=auth(vendor_account))
    assert [t["type"] for t in r.json()["items"]] == ["debit", "commission", "credit"]

    r = await client.get("/api/v1/admin/dashboard", headers=auth(admin))
    assert r.json()["platform_revenue"] == 1250


async def test_insufficient_balance_is_client_error(client, db, factory):
    vendor = await factory.vendor()
    vendor_account = await db.get(Account, vendor.account_id)
    await db.commit()

    r = await client.post("/api/v1/vendor/payouts", json={"amount": 100}, headers=auth(vendor_account))
    assert r.status_code == 400
    assert r.json()["detail"] == "Insufficient balance for payout"


async def test_empty_cart_checkout(client, db, factory):
    customer = await factory.account("customer")
    await db.commit()
    body = {"shipping_address": ADDRESS, "payment_method": "card"}
    r = await client.post("/api/v1/orders", json=body, headers=auth(customer))
    assert r.status_code == 400
    assert r.json()["detail"] == "Cart is empty"


async def test_roles_are_enforced(client, db, factory):
    customer = await factory.account("customer")
    await db.commit()

    r = await client.get("/api/v1/admin/dashboard")
    assert r.status_code == 401
    r = await client.get("/api/v1/admin/dashboard", headers=auth(customer))
    assert r.status_code == 403
    r = await client.get("/api/v1/vendor/wallet", headers=auth(customer))
    assert r.status_code == 403
    r = await client.get("/api/v1/admin/dashboard", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401


async def test_vendor_status_filter_rejects_wrong_casing(client, db, factory):
    vendor = await factory.vendor()
    vendor_account = await db.get(Account, vendor.account_id)
    await db.commit()

    r = await client.get("/api/v1/vendor/orders", params={"status": "Pending"}, headers=auth(vendor_account))
    assert r.status_code == 400
    r = await client.get("/api/v1/vendor/orders", params={"status": "pending"}, headers=auth(vendor_account))
    assert r.status_code == 200
    assert r.json() == {"items": [], "total": 0}


async def test_other_customers_order_is_forbidden(client, db, factory):
    owner = await factory.account("customer")
    stranger = await factory.account("customer")
    vendor = await factory.vendor()
    product = await factory.product(vendor, price=100)
    await factory.cart_item(owner, product, 1)
    await db.commit()

    body = {"shipping_address": ADDRESS, "payment_method": "card"}
    r = await client.post("/api/v1/orders", json=body, headers=auth(owner))
    order_id = r.json()["id"]

    r = await client.get(f"/api/v1/orders/{order_id}", headers=auth(stranger))
    assert r.status_code == 403
    r = await client.get(f"/api/v1/orders/{order_id}", headers=auth(owner))
    assert r.status_code == 200


async def test_login(client, db, factory):
    account = await factory.account("customer", username="shopper")
    account.password_hash = hash_password("s3cret-pass")
    await db.commit()

    r = await client.post("/api/v1/auth/login", json={"username": "shopper", "password": "wrong"})
    assert r.status_code == 401

    r = await client.post("/api/v1/auth/login", json={"username": "shopper", "password": "s3cret-pass"})
    assert r.status_code == 200
    token = r.json()["access_token"]

    r = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.json()["role"] == "customer"
    assert r.json()["vendor_id"] is None


async def test_vendor_dashboard_and_earnings(client, db, factory):
    customer = await factory.account("customer")
    vendor = await factory.vendor(commission="20.00")
    product = await factory.product(vendor, price=2500)
    await factory.cart_item(customer, product, 2)
    vendor_account = await db.get(Account, vendor.account_id)
    await db.commit()

    body = {"shipping_address": ADDRESS, "payment_method": "card"}
    r = await client.post("/api/v1/orders", json=body, headers=auth(customer))
    order_id = r.json()["id"]

    r = await client.get("/api/v1/vendor/dashboard", headers=auth(vendor_account))
    assert r.status_code == 200, r.text
    dash = r.json()
    assert dash["vendor"]["business_name"] == vendor.business_name
    assert (dash["total_orders"], dash["total_sales"]) == (1, 5000)
    assert dash["wallet"]["balance"] == 4000
    assert dash["recent_orders"][0]["order_id"] == order_id

    r = await client.get("/api/v1/vendor/earnings", headers=auth(vendor_account))
    assert r.json()["period"] == "month"
    r = await client.get("/api/v1/vendor/earnings", params={"period": "day"}, headers=auth(vendor_account))
    assert r.status_code == 200
    r = await client.get("/api/v1/vendor/earnings", params={"period": "decade"}, headers=auth(vendor_account))
    assert r.status_code == 422
