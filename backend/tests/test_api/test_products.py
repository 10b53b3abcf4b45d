"""
API tests for /api/products

Runs the FastAPI app against in-memory repositories and a fake Shopify store.
"""
import pytest

from storefront_admin.main import app
from storefront_admin.api import deps


class TestProductAuth:
    """Every product route requires a bearer token"""

    def test_create_without_token_is_rejected_and_writes_nothing(self, client, product_repo, shopify):
        response = client.post("/api/products", json={
            "name": "Lamp", "category": "Home", "price": 19.99, "stock": 10
        })

        assert response.status_code == 401
        assert response.json()["message"] == "Access token required"
        assert product_repo.rows == {}
        assert shopify.requests == []

    def test_invalid_token_is_forbidden(self, client):
        response = client.get("/api/products", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 403
        assert response.json()["message"] == "Invalid token"

    def test_missing_token_wins_over_invalid_body(self, client, product_repo):
        response = client.post("/api/products", json={"name": "", "price": -1})

        assert response.status_code == 401
        assert product_repo.rows == {}


class TestCreateProduct:

    def test_lamp_is_created_locally_and_on_shopify(self, client, auth_headers, product_repo, shopify):
        response = client.post("/api/products", headers=auth_headers, json={
            "name": "Lamp", "category": "Home", "price": 19.99, "stock": 10
        })

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["price"] == 19.99
        assert data["stock"] == 10
        assert data["external_id"]
        assert data["is_mirrored"] is True

        # Stored locally with the same Shopify ID
        stored = product_repo.find_by_id(data["id"])
        assert stored.external_id == data["external_id"]
        assert data["external_id"] in shopify.products

    def test_created_product_echoes_every_input(self, client, auth_headers, sample_product_data):
        response = client.post("/api/products", headers=auth_headers, json=sample_product_data)

        data = response.json()["data"]
        for field, value in sample_product_data.items():
            assert data[field] == value
        assert data["id"]
        assert data["created_at"]

    def test_shopify_receives_variant_and_images(self, client, auth_headers, sample_product_data, shopify):
        response = client.post("/api/products", headers=auth_headers, json=sample_product_data)

        remote = shopify.products[response.json()["data"]["external_id"]]
        assert remote["title"] == "Lamp"
        assert remote["product_type"] == "Home"
        assert remote["variants"][0]["price"] == "19.99"
        assert remote["variants"][0]["inventory_quantity"] == 10
        assert remote["images"] == [{"src": "https://cdn.example.com/lamp.png", "position": 1}]

    @pytest.mark.parametrize("body", [
        {"name": "Lamp", "category": "Home", "price": -1},
        {"name": "Lamp", "category": "Home", "price": 5, "stock": -2},
        {"name": "", "category": "Home", "price": 5},
        {"name": "Lamp", "price": 5},
        {"name": "Lamp", "category": "Home", "price": 19.999},
    ])
    def test_invalid_payload_is_400(self, client, auth_headers, product_repo, shopify, body):
        response = client.post("/api/products", headers=auth_headers, json=body)

        assert response.status_code == 400
        assert response.json()["message"]
        assert product_repo.rows == {}
        assert shopify.requests == []

    def test_shopify_failure_rolls_back_local_insert(self, client, auth_headers, product_repo, shopify):
        shopify.fail_methods = {"POST"}

        response = client.post("/api/products", headers=auth_headers, json={
            "name": "Lamp", "category": "Home", "price": 19.99
        })

        assert response.status_code == 502
        body = response.json()
        assert body["kind"] == "upstream_sync_failed"
        assert "error" in body  # non-production environments expose the upstream detail
        assert product_repo.rows == {}

    def test_local_link_failure_leaves_no_orphan_on_either_side(self, client, auth_headers, product_repo, shopify, monkeypatch):
        def fail(product_id, external_id):
            raise RuntimeError("database went away")

        monkeypatch.setattr(product_repo, "set_external_id", fail)

        response = client.post("/api/products", headers=auth_headers, json={
            "name": "Lamp", "category": "Home", "price": 19.99
        })

        assert response.status_code == 502
        assert response.json()["kind"] == "upstream_sync_failed"
        assert product_repo.rows == {}
        assert shopify.products == {}

    def test_local_link_and_remote_cleanup_failure_is_partially_synced(self, client, auth_headers, product_repo, shopify, monkeypatch):
        def fail(product_id, external_id):
            raise RuntimeError("database went away")

        monkeypatch.setattr(product_repo, "set_external_id", fail)
        shopify.fail_methods = {"DELETE"}

        response = client.post("/api/products", headers=auth_headers, json={
            "name": "Lamp", "category": "Home", "price": 19.99
        })

        assert response.status_code == 500
        body = response.json()
        assert body["kind"] == "partially_synced"
        assert body["product_id"] in product_repo.rows
        assert body["external_id"] in shopify.products

    def test_shopify_not_configured_is_503(self, client, auth_headers, product_repo):
        app.dependency_overrides[deps.get_optional_shopify_connector] = lambda: None

        response = client.post("/api/products", headers=auth_headers, json={
            "name": "Lamp", "category": "Home", "price": 19.99
        })

        assert response.status_code == 503
        assert response.json()["kind"] == "not_configured"
        assert product_repo.rows == {}


class TestReadProducts:

    def test_list_serves_local_cache_without_calling_shopify(self, client, auth_headers, product_repo, shopify):
        product_repo.add(name="Lamp", category="Home", price=19.99)
        shopify.add_product("Remote only")

        response = client.get("/api/products", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["count"] == 1
        assert [p["name"] for p in body["data"]] == ["Lamp"]
        assert "sync" not in body
        assert shopify.requests == []

    def test_list_with_refresh_pulls_from_shopify(self, client, auth_headers, shopify):
        shopify.add_product("Chair", price="45.00", stock=3)

        response = client.get("/api/products?refresh=true", headers=auth_headers)

        body = response.json()
        assert response.status_code == 200
        assert [p["name"] for p in body["data"]] == ["Chair"]
        assert body["sync"]["created"] == 1

    def test_list_works_when_shopify_is_not_configured(self, client, auth_headers, product_repo):
        app.dependency_overrides[deps.get_optional_shopify_connector] = lambda: None
        product_repo.add(name="Lamp", category="Home", price=19.99)

        assert client.get("/api/products", headers=auth_headers).status_code == 200
        assert client.get("/api/products?refresh=true", headers=auth_headers).status_code == 503

    def test_get_by_id(self, client, auth_headers, product_repo):
        product = product_repo.add(name="Lamp", category="Home", price=19.99, stock=10)

        response = client.get(f"/api/products/{product.id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Lamp"

    def test_get_unknown_id_is_404(self, client, auth_headers):
        response = client.get("/api/products/does-not-exist", headers=auth_headers)

        assert response.status_code == 404
        assert "not found" in response.json()["message"]


class TestUpdateProduct:

    def _create(self, client, auth_headers, **overrides):
        body = {"name": "Lamp", "category": "Home", "price": 19.99, "stock": 10, **overrides}
        return client.post("/api/products", headers=auth_headers, json=body).json()["data"]

    def test_update_changes_local_and_remote(self, client, auth_headers, product_repo, shopify):
        created = self._create(client, auth_headers)

        response = client.put(f"/api/products/{created['id']}", headers=auth_headers, json={"price": 24.5})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["price"] == 24.5
        assert data["name"] == "Lamp"
        assert data["external_id"] == created["external_id"]
        assert shopify.products[created["external_id"]]["variants"][0]["price"] == "24.50"

    @pytest.mark.parametrize("body", [{"price": -5}, {"stock": -1}, {"price": 24.505}])
    def test_negative_values_are_rejected_and_record_unchanged(self, client, auth_headers, product_repo, body):
        created = self._create(client, auth_headers)
        before = product_repo.find_by_id(created["id"])

        response = client.put(f"/api/products/{created['id']}", headers=auth_headers, json=body)

        assert response.status_code == 400
        assert product_repo.find_by_id(created["id"]) == before

    def test_stale_external_id_recreates_product_on_shopify(self, client, auth_headers, product_repo, shopify):
        created = self._create(client, auth_headers)
        del shopify.products[created["external_id"]]

        response = client.put(f"/api/products/{created['id']}", headers=auth_headers, json={"stock": 4})

        assert response.status_code == 200
        new_external_id = response.json()["data"]["external_id"]
        assert new_external_id != created["external_id"]
        assert new_external_id in shopify.products
        assert product_repo.find_by_id(created["id"]).external_id == new_external_id

    def test_unmirrored_product_is_created_on_shopify(self, client, auth_headers, product_repo, shopify):
        product = product_repo.add(name="Local", category="Home", price=3)

        response = client.put(f"/api/products/{product.id}", headers=auth_headers, json={"name": "Local lamp"})

        assert response.status_code == 200
        external_id = response.json()["data"]["external_id"]
        assert shopify.products[external_id]["title"] == "Local lamp"

    def test_shopify_failure_restores_previous_values(self, client, auth_headers, product_repo, shopify):
        created = self._create(client, auth_headers)
        before = product_repo.find_by_id(created["id"])
        shopify.fail_methods = {"PUT"}

        response = client.put(f"/api/products/{created['id']}", headers=auth_headers, json={"price": 99})

        assert response.status_code == 502
        assert response.json()["product_id"] == created["id"]
        assert product_repo.find_by_id(created["id"]) == before

    def test_update_unknown_id_is_404_without_shopify_call(self, client, auth_headers, shopify):
        response = client.put("/api/products/missing", headers=auth_headers, json={"price": 1})

        assert response.status_code == 404
        assert shopify.requests == []


class TestDeleteProduct:

    def test_delete_removes_local_and_remote(self, client, auth_headers, product_repo, shopify):
        created = client.post("/api/products", headers=auth_headers, json={
            "name": "Lamp", "category": "Home", "price": 19.99
        }).json()["data"]

        response = client.delete(f"/api/products/{created['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert product_repo.find_by_id(created["id"]) is None
        assert created["external_id"] not in shopify.products

    def test_delete_with_stale_external_id_succeeds(self, client, auth_headers, product_repo):
        product = product_repo.add(name="Ghost", category="Home", price=1, external_id="424242")

        response = client.delete(f"/api/products/{product.id}", headers=auth_headers)

        assert response.status_code == 200
        assert product_repo.rows == {}

    def test_shopify_failure_keeps_local_product(self, client, auth_headers, product_repo, shopify):
        remote = shopify.add_product("Lamp")
        product = product_repo.add(name="Lamp", category="Home", price=1, external_id=str(remote["id"]))
        shopify.fail_methods = {"DELETE"}

        response = client.delete(f"/api/products/{product.id}", headers=auth_headers)

        assert response.status_code == 502
        assert response.json()["kind"] == "upstream_sync_failed"
        assert product_repo.find_by_id(product.id) is not None

    def test_delete_unknown_id_is_404(self, client, auth_headers, shopify):
        response = client.delete("/api/products/missing", headers=auth_headers)

        assert response.status_code == 404
        assert shopify.requests == []
