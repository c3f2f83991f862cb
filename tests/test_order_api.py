"""HTTP surface of the mounted order and inventory apps."""
import re

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from main import app
from services.inventory_service.main import inventory_app
from services.order_service.main import order_app
from services.order_service.repository import SQLAlchemyOrderRepository
from shared.config.database import get_db

from .conftest import ACTOR_ID, BUSINESS_ID

HEADERS = {
    "X-Internal-API-Key": "test-internal-key",
    "X-Business-Id": BUSINESS_ID,
    "X-Actor-Id": ACTOR_ID,
}


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    order_app.dependency_overrides[get_db] = override_get_db
    inventory_app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    order_app.dependency_overrides.clear()
    inventory_app.dependency_overrides.clear()


async def create_stock(client, quantity=10, alert=2, name="Widget"):
    response = await client.post(
        "/inventory/",
        json={"name": name, "current_quantity": quantity, "low_stock_alert": alert},
        headers=HEADERS,
    )
    assert response.status_code == 201
    return response.json()["id"]


async def place_order(client, inventory_id, quantity=2, **extra):
    payload = {
        "items": [{
            "product_name": "Widget",
            "inventory_id": inventory_id,
            "quantity": quantity,
            "unit_price": "50.00",
        }],
    }
    payload.update(extra)
    return await client.post("/orders/", json=payload, headers=HEADERS)


async def test_health_is_public(client):
    response = await client.get("/orders/health")
    assert response.status_code == 200
    assert response.json()["service"] == "order"


async def test_api_key_required(client):
    response = await client.get("/orders/", headers={"X-Business-Id": BUSINESS_ID})
    assert response.status_code == 403


async def test_business_header_required(client):
    response = await client.get("/orders/", headers={"X-Internal-API-Key": "test-internal-key"})
    assert response.status_code == 400


async def test_create_and_fetch(client):
    inventory_id = await create_stock(client)

    response = await place_order(client, inventory_id, quantity=2, payment_method="cash")
    assert response.status_code == 201
    body = response.json()
    assert re.fullmatch(r"ORD-\d{8}-0001", body["order_number"])
    assert body["status"] == "pending"
    assert body["subtotal"] == "100.00"
    assert body["tax_amount"] == "10.00"
    assert body["total_amount"] == "110.00"
    assert body["created_by"] == ACTOR_ID

    fetched = await client.get(f"/orders/{body['id']}", headers=HEADERS)
    assert fetched.status_code == 200
    assert fetched.json()["order_number"] == body["order_number"]

    stock = await client.get(f"/inventory/{inventory_id}", headers=HEADERS)
    assert stock.json()["current_quantity"] == 8


async def test_validation_errors_are_422_with_fields(client):
    response = await client.post(
        "/orders/",
        json={"items": [{"product_name": "", "quantity": 0, "unit_price": "5"}]},
        headers=HEADERS,
    )
    assert response.status_code == 422
    fields = {error["field"] for error in response.json()["errors"]}
    assert fields == {"items[0].product_name", "items[0].quantity"}


async def test_unknown_fields_rejected(client):
    response = await client.post(
        "/orders/",
        json={"items": [], "status": "delivered"},
        headers=HEADERS,
    )
    assert response.status_code == 422


async def test_insufficient_stock_is_409(client):
    inventory_id = await create_stock(client, quantity=2)
    response = await place_order(client, inventory_id, quantity=5)
    assert response.status_code == 409
    body = response.json()
    assert "Available: 2, Requested: 5" in body["errors"][0]["message"]


async def test_status_flow_and_history(client):
    inventory_id = await create_stock(client, quantity=10)
    order_id = (await place_order(client, inventory_id, quantity=4)).json()["id"]

    for status in ("confirmed", "processing"):
        response = await client.post(f"/orders/{order_id}/status", json={"status": status}, headers=HEADERS)
        assert response.status_code == 200
        assert response.json()["status"] == status

    rejected = await client.post(f"/orders/{order_id}/status", json={"status": "delivered"}, headers=HEADERS)
    assert rejected.status_code == 409
    assert "Allowed transitions: shipped, cancelled" in rejected.json()["errors"][0]["message"]

    cancelled = await client.post(
        f"/orders/{order_id}/status",
        json={"status": "cancelled", "notes": "Customer changed their mind"},
        headers=HEADERS,
    )
    assert cancelled.status_code == 200
    assert (await client.get(f"/inventory/{inventory_id}", headers=HEADERS)).json()["current_quantity"] == 10

    history = (await client.get(f"/orders/{order_id}/history", headers=HEADERS)).json()
    assert [h["status"] for h in history] == ["pending", "confirmed", "processing", "cancelled"]
    assert history[-1]["notes"] == "Customer changed their mind"

    transactions = (await client.get(f"/inventory/{inventory_id}/transactions", headers=HEADERS)).json()
    assert [t["type"] for t in transactions] == ["restock", "sale", "adjustment"]


async def test_totals_preview(client):
    response = await client.post(
        "/orders/totals",
        json={
            "items": [
                {"product_name": "A", "quantity": 2, "unit_price": "50"},
                {"product_name": "B", "quantity": 1, "unit_price": "30"},
            ],
            "discount_amount": "10",
        },
        headers=HEADERS,
    )
    assert response.status_code == 200
    assert response.json() == {
        "subtotal": "130.00",
        "tax_amount": "13.00",
        "discount_amount": "10.00",
        "total_amount": "133.00",
    }


async def test_inventory_check_preview(client):
    inventory_id = await create_stock(client, quantity=5, alert=3)
    response = await client.post(
        "/orders/inventory-check",
        json={"items": [{"product_name": "Widget", "inventory_id": inventory_id, "quantity": 3, "unit_price": "1"}]},
        headers=HEADERS,
    )
    body = response.json()
    assert body["is_valid"] is True
    assert "will be low on stock" in body["warnings"][0]["message"]
    assert (await client.get(f"/inventory/{inventory_id}", headers=HEADERS)).json()["current_quantity"] == 5


async def test_patch_and_delete(client):
    inventory_id = await create_stock(client, quantity=10)
    order_id = (await place_order(client, inventory_id, quantity=2)).json()["id"]

    patched = await client.patch(f"/orders/{order_id}", json={"discount_amount": "10"}, headers=HEADERS)
    assert patched.status_code == 200
    assert patched.json()["total_amount"] == "100.00"

    deleted = await client.delete(f"/orders/{order_id}", headers=HEADERS)
    assert deleted.status_code == 204
    assert (await client.get(f"/orders/{order_id}", headers=HEADERS)).status_code == 404
    assert (await client.get(f"/inventory/{inventory_id}", headers=HEADERS)).json()["current_quantity"] == 10


async def test_list_with_status_filter(client):
    inventory_id = await create_stock(client, quantity=10)
    first = (await place_order(client, inventory_id, quantity=1)).json()["id"]
    await place_order(client, inventory_id, quantity=1)
    await client.post(f"/orders/{first}/status", json={"status": "confirmed"}, headers=HEADERS)

    response = await client.get("/orders/", params={"status": "confirmed"}, headers=HEADERS)
    assert response.status_code == 200
    assert [o["id"] for o in response.json()] == [first]


async def test_other_business_sees_nothing(client):
    inventory_id = await create_stock(client)
    order_id = (await place_order(client, inventory_id)).json()["id"]

    other = {**HEADERS, "X-Business-Id": "biz-2"}
    assert (await client.get(f"/orders/{order_id}", headers=other)).status_code == 404
    assert (await client.get("/orders/", headers=other)).json() == []


async def test_huge_quantity_is_422(client):
    response = await client.post(
        "/orders/",
        json={"items": [{"product_name": "Widget", "quantity": 10**30, "unit_price": "1.00"}]},
        headers=HEADERS,
    )
    assert response.status_code == 422
    assert "items[0].quantity" in {error["field"] for error in response.json()["errors"]}


async def test_huge_unit_price_is_422(client):
    response = await client.post(
        "/orders/",
        json={"items": [{"product_name": "Widget", "quantity": 1, "unit_price": "1e30"}]},
        headers=HEADERS,
    )
    assert response.status_code == 422
    assert "items[0].unit_price" in {error["field"] for error in response.json()["errors"]}


async def test_totals_preview_rejects_out_of_range_lines(client):
    response = await client.post(
        "/orders/totals",
        json={"items": [{"product_name": "A", "quantity": 10**30, "unit_price": "1e30"}], "discount_amount": "1e30"},
        headers=HEADERS,
    )
    assert response.status_code == 422
    fields = {error["field"] for error in response.json()["errors"]}
    assert fields == {"items[0].quantity", "items[0].unit_price", "discount_amount"}


async def test_store_failure_is_503(client, monkeypatch):
    async def unreachable(self, filters):
        raise OperationalError("SELECT orders", {}, Exception("connection refused"))

    monkeypatch.setattr(SQLAlchemyOrderRepository, "list_orders", unreachable)
    response = await client.get("/orders/", headers=HEADERS)
    assert response.status_code == 503
    assert response.json() == {"detail": "Order store unavailable"}
