"""Integration tests for order history, status and admin endpoints via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from storefront.api import admin_router, install, maintenance_router, order_router
from storefront.shared.lines import CartLine


@pytest.fixture()
def client(gateway):
    app = FastAPI()
    install(app)
    app.include_router(order_router)
    app.include_router(admin_router)
    app.include_router(maintenance_router)
    return TestClient(app)


@pytest.fixture()
def product_id(catalog):
    return str(catalog.add_product(name="P1", price=10.0, stock=5).id)


@pytest.fixture()
def place_order(client, product_id, shipping_info):
    def _place(user_id="user-001", quantity=1):
        response = client.post(
            "/checkout",
            json={
                "user_id": user_id,
                "lines": [{"product_id": product_id, "quantity": quantity}],
                "shipping": shipping_info,
                "payment": {"method": "googlepay"},
            },
        )
        assert response.status_code == 201
        return response.json()["order_id"]

    return _place


class TestOrderAPI:
    def test_get_order(self, client, place_order):
        order_id = place_order()
        response = client.get(f"/orders/{order_id}")
        assert response.status_code == 200
        assert response.json()["customer_name"] == "Asha Rao"

    def test_get_missing_order(self, client):
        assert client.get("/orders/42").status_code == 404

    def test_list_orders_for_user(self, client, place_order):
        first = place_order()
        second = place_order()
        place_order(user_id="user-002")
        response = client.get("/orders", params={"user_id": "user-001"})
        assert [o["order_id"] for o in response.json()] == [second, first]

    def test_ship_and_deliver(self, client, place_order):
        order_id = place_order()
        assert client.put(f"/orders/{order_id}/status", json={"status": "Shipped"}).status_code == 200
        response = client.put(f"/orders/{order_id}/status", json={"status": "Delivered"})
        assert response.json()["status"] == "Delivered"
        assert [c["to_status"] for c in response.json()["status_history"]] == ["Processing", "Shipped", "Delivered"]

    def test_invalid_transition_is_conflict(self, client, place_order):
        order_id = place_order()
        response = client.put(f"/orders/{order_id}/status", json={"status": "Delivered"})
        assert response.status_code == 409
        assert response.json()["detail"] == {
            "kind": "InvalidTransition",
            "message": "Cannot transition from Processing to Delivered",
            "from": "Processing",
            "to": "Delivered",
        }

    def test_cancel_restocks(self, client, place_order, catalog, product_id):
        order_id = place_order(quantity=3)
        assert catalog.get_product(product_id).stock == 2
        response = client.put(f"/orders/{order_id}/status", json={"status": "Cancelled"})
        assert response.json()["status"] == "Cancelled"
        assert catalog.get_product(product_id).stock == 5

    def test_unknown_status_rejected(self, client, place_order):
        order_id = place_order()
        assert client.put(f"/orders/{order_id}/status", json={"status": "Lost"}).status_code == 422


class TestAdminAPI:
    def test_search_orders_by_status(self, client, place_order):
        shipped = place_order()
        place_order()
        client.put(f"/orders/{shipped}/status", json={"status": "Shipped"})
        body = client.get("/admin/orders", params={"status": "Shipped"}).json()
        assert body["total"] == 1
        assert body["items"][0]["order_id"] == shipped

    def test_search_orders_pagination(self, client, place_order):
        for _ in range(3):
            place_order()
        body = client.get("/admin/orders", params={"page": 2, "per_page": 2}).json()
        assert len(body["items"]) == 1
        assert body["pages"] == 2

    def test_stats(self, client, place_order, catalog):
        catalog.add_product(name="P2", price=5.0, stock=1)
        shipped = place_order()
        place_order()
        client.put(f"/orders/{shipped}/status", json={"status": "Shipped"})
        response = client.get("/admin/stats")
        assert response.status_code == 200
        assert response.json() == {
            "total_orders": 2,
            "total_revenue": 123.6,
            "pending_orders": 1,
            "total_products": 2,
        }

    def test_stats_with_no_orders(self, client):
        assert client.get("/admin/stats").json() == {
            "total_orders": 0,
            "total_revenue": 0.0,
            "pending_orders": 0,
            "total_products": 0,
        }


class TestMaintenanceAPI:
    def test_expire_reservations(self, client, inventory, product_id):
        inventory.reserve([CartLine(product_id, 2)])
        response = client.post("/maintenance/reservations/expire", json={"older_than_minutes": 0})
        assert response.status_code == 200
        assert response.json() == {"expired_count": 1}
