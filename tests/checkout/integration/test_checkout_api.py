"""Integration tests for cart and checkout endpoints via TestClient."""

import threading

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from storefront.api import cart_router, install, order_router


@pytest.fixture()
def client(gateway):
    app = FastAPI()
    install(app)
    app.include_router(cart_router)
    app.include_router(order_router)
    return TestClient(app)


@pytest.fixture()
def product_id(catalog):
    return str(catalog.add_product(name="P1", price=10.0, stock=2).id)


@pytest.fixture()
def checkout_body(product_id, shipping_info):
    return {
        "user_id": "user-001",
        "lines": [{"product_id": product_id, "quantity": 2}],
        "shipping": shipping_info,
        "payment": {"method": "card", "card_number": "4242 4242 4242 4242"},
    }


class TestCheckoutAPI:
    def test_checkout(self, client, checkout_body):
        response = client.post("/checkout", json=checkout_body)
        assert response.status_code == 201
        order = response.json()
        assert order["status"] == "Processing"
        assert order["subtotal"] == 20.0
        assert order["shipping_cost"] == 50.0
        assert order["tax"] == 3.6
        assert order["total"] == 73.6
        assert order["currency"] == "INR"
        assert order["payment"]["card_last4"] == "4242"
        assert "card_number" not in order["payment"]

    def test_insufficient_stock_is_conflict(self, client, checkout_body, product_id):
        client.post("/checkout", json=checkout_body)
        response = client.post("/checkout", json=checkout_body)
        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["kind"] == "InsufficientStock"
        assert detail["product_id"] == product_id
        assert detail["stage"] == "Reserving"

    def test_empty_cart(self, client, checkout_body):
        checkout_body["lines"] = []
        response = client.post("/checkout", json=checkout_body)
        assert response.status_code == 422
        assert response.json()["detail"]["kind"] == "EmptyCart"

    def test_declined_payment(self, client, checkout_body, gateway):
        gateway.configure(should_succeed=False)
        response = client.post("/checkout", json=checkout_body)
        assert response.status_code == 402
        assert response.json()["detail"]["kind"] == "PaymentDeclined"

    def test_missing_shipping_field(self, client, checkout_body):
        del checkout_body["shipping"]["city"]
        assert client.post("/checkout", json=checkout_body).status_code == 422

    def test_idempotent_replay(self, client, checkout_body, gateway):
        checkout_body["idempotency_key"] = "checkout-7f3a"
        first = client.post("/checkout", json=checkout_body).json()
        second = client.post("/checkout", json=checkout_body).json()
        assert second["order_id"] == first["order_id"]
        assert len(gateway.charges()) == 1

    def test_busy_idempotency_key_is_service_unavailable(self, client, checkout_body, ledger, monkeypatch):
        monkeypatch.setattr(ledger.locks, "timeout", 0.1)
        checkout_body["idempotency_key"] = "abc"
        ready = threading.Event()
        done = threading.Event()

        def holder():
            with ledger.locks.hold(["idempotency:abc"]):
                ready.set()
                done.wait(5)

        thread = threading.Thread(target=holder)
        thread.start()
        ready.wait(2)
        try:
            response = client.post("/checkout", json=checkout_body)
        finally:
            done.set()
            thread.join()

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "1"
        detail = response.json()["detail"]
        assert detail["kind"] == "Busy"
        assert detail["retryable"] is True
        assert client.post("/checkout", json=checkout_body).status_code == 201


class TestCartAPI:
    def _cart_with_item(self, client, product_id):
        cart_id = client.post("/carts", json={"user_id": "user-001"}).json()["cart_id"]
        response = client.post(f"/carts/{cart_id}/items", json={"product_id": product_id, "quantity": 1})
        assert response.status_code == 201
        return cart_id, response.json()

    def test_add_merges_same_product(self, client, product_id):
        cart_id, _ = self._cart_with_item(client, product_id)
        response = client.post(f"/carts/{cart_id}/items", json={"product_id": product_id, "quantity": 1})
        cart = response.json()
        assert len(cart["items"]) == 1
        assert cart["item_count"] == 2

    def test_add_unknown_product(self, client):
        cart_id = client.post("/carts", json={}).json()["cart_id"]
        response = client.post(f"/carts/{cart_id}/items", json={"product_id": "missing"})
        assert response.status_code == 404

    def test_update_and_remove_item(self, client, product_id):
        cart_id, cart = self._cart_with_item(client, product_id)
        item_id = cart["items"][0]["item_id"]

        updated = client.put(f"/carts/{cart_id}/items/{item_id}", json={"quantity": 2}).json()
        assert updated["items"][0]["quantity"] == 2

        removed = client.delete(f"/carts/{cart_id}/items/{item_id}").json()
        assert removed["items"] == []

    def test_checkout_cart(self, client, product_id, shipping_info):
        cart_id, _ = self._cart_with_item(client, product_id)
        body = {"shipping": shipping_info, "payment": {"method": "upi", "upi_id": "asha@upi"}}

        response = client.post(f"/carts/{cart_id}/checkout", json=body)
        assert response.status_code == 201
        assert response.json()["payment"]["upi_id"] == "asha@upi"
        assert client.get(f"/carts/{cart_id}").json()["status"] == "CheckedOut"

        again = client.post(f"/carts/{cart_id}/checkout", json=body)
        assert again.status_code == 422

    def test_missing_cart(self, client):
        assert client.get("/carts/missing").status_code == 404
