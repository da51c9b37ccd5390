"""Integration tests for Product API endpoints via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from storefront.api import install, product_router


@pytest.fixture()
def client():
    app = FastAPI()
    install(app)
    app.include_router(product_router)
    return TestClient(app)


def _create_product(client, **overrides):
    payload = {
        "name": "Premium Wireless Headphones",
        "price": 99.99,
        "stock": 25,
        "category": "Electronics",
        "colors": ["Black", "Silver"],
        "features": ["30-hour battery life"],
    }
    payload.update(overrides)
    response = client.post("/products", json=payload)
    assert response.status_code == 201
    return response.json()


class TestProductAPI:
    def test_create_product(self, client):
        product = _create_product(client)
        assert product["name"] == "Premium Wireless Headphones"
        assert product["in_stock"] is True
        assert product["colors"] == ["Black", "Silver"]
        assert product["rating"] == 0.0

    def test_get_product(self, client):
        product_id = _create_product(client)["product_id"]
        response = client.get(f"/products/{product_id}")
        assert response.status_code == 200
        assert response.json()["stock"] == 25

    def test_get_missing_product(self, client):
        response = client.get("/products/does-not-exist")
        assert response.status_code == 404
        assert response.json()["detail"]["kind"] == "NotFound"

    def test_search_products(self, client):
        _create_product(client, name="Bluetooth Speaker")
        _create_product(client, name="Tablet", category="Computers")
        response = client.get("/products", params={"q": "speaker"})
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["items"][0]["name"] == "Bluetooth Speaker"

    def test_invalid_page(self, client):
        response = client.get("/products", params={"page": 0})
        assert response.status_code == 422

    def test_update_product(self, client):
        product_id = _create_product(client)["product_id"]
        response = client.put(f"/products/{product_id}", json={"price": 89.99, "stock": 3})
        assert response.status_code == 200
        assert response.json()["price"] == 89.99
        assert response.json()["stock"] == 3

    def test_remove_product(self, client):
        product_id = _create_product(client)["product_id"]
        assert client.delete(f"/products/{product_id}").status_code == 200
        assert client.get(f"/products/{product_id}").status_code == 404

    def test_record_review(self, client):
        product_id = _create_product(client)["product_id"]
        response = client.post(f"/products/{product_id}/reviews", json={"rating": 4, "author": "Asha"})
        assert response.status_code == 201
        assert response.json()["rating"] == 4.0
        assert response.json()["review_count"] == 1

    def test_rating_out_of_range(self, client):
        product_id = _create_product(client)["product_id"]
        response = client.post(f"/products/{product_id}/reviews", json={"rating": 6})
        assert response.status_code == 422
