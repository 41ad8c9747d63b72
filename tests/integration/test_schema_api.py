"""
Integration tests for schema management and compiled schema endpoints.
"""

import pytest


def _json(response, status=200):
    assert response.status_code == status, response.get_json()
    return response.get_json()


@pytest.mark.integration
class TestTables:
    """Test /api/schema/tables."""

    def test_create_and_get(self, client):
        body = _json(
            client.post(
                "/api/schema/tables",
                json={"table_name": "Products", "table_label": "Products", "table_group": "catalog"},
            ),
            201,
        )

        assert body["data"]["table_name"] == "products"
        table = _json(client.get("/api/schema/tables/products"))["data"]
        assert table["table_group"] == "catalog"
        assert table["fields"] == []

    def test_duplicate_table(self, client, products_table):
        response = client.post(
            "/api/schema/tables", json={"table_name": "products", "table_label": "Again"}
        )

        assert response.status_code == 409

    def test_reserved_name(self, client):
        response = client.post("/api/schema/tables", json={"table_name": "schema", "table_label": "X"})

        assert response.status_code == 500
        assert "reserved" in response.get_json()["error"]

    def test_unknown_keys_are_rejected(self, client):
        response = client.post(
            "/api/schema/tables", json={"table_name": "x", "table_label": "X", "colour": "red"}
        )

        assert response.status_code == 400

    def test_table_name_is_immutable(self, client, products_table):
        response = client.put("/api/schema/tables/products", json={"table_name": "goods"})

        assert response.status_code == 400

    def test_update(self, client, products_table):
        body = _json(client.put("/api/schema/tables/products", json={"table_label": "Goods"}))

        assert body["data"]["table_label"] == "Goods"
        assert body["data"]["table_name"] == "products"

    def test_list_is_sorted_by_name(self, client, store):
        for name in ("zebras", "apples", "mangos"):
            store.create_table({"table_name": name, "table_label": name.title()})

        names = [t["table_name"] for t in _json(client.get("/api/schema/tables"))["data"]]

        assert names == ["apples", "mangos", "zebras"]

    def test_missing_table(self, client):
        assert client.get("/api/schema/tables/ghosts").status_code == 404
        assert client.put("/api/schema/tables/ghosts", json={"table_label": "X"}).status_code == 404
        assert client.delete("/api/schema/tables/ghosts").status_code == 404

    def test_delete_cascades(self, client, store, products_table):
        store.create_table({"table_name": "orders", "table_label": "Orders"})
        store.create_relationship(
            {
                "source_table": "orders",
                "source_field": "product_id",
                "target_table": "products",
                "relationship_type": "many-to-one",
            }
        )
        store.create_permission({"table_name": "products", "role": "viewer", "can_read": True})

        _json(client.delete("/api/schema/tables/products"))

        assert store.list_fields("products") == []
        assert store.list_relationships() == []
        assert store.list_permissions() == []
        assert _json(client.get("/api/schema/tables/products/fields"), 404)


@pytest.mark.integration
class TestFields:
    """Test field definition endpoints."""

    def test_create_field(self, client, products_table):
        body = _json(
            client.post(
                "/api/schema/tables/products/fields",
                json={
                    "field_name": "status",
                    "field_type": "select",
                    "field_label": "Status",
                    "field_options": [{"value": "new", "label": "New"}],
                    "field_order": 0,
                },
            ),
            201,
        )

        assert body["data"]["field_type"] == "select"
        assert body["data"]["field_options"] == [{"value": "new", "label": "New"}]

    def test_field_for_missing_table(self, client):
        response = client.post(
            "/api/schema/tables/ghosts/fields",
            json={"field_name": "x", "field_type": "string", "field_label": "X"},
        )

        assert response.status_code == 404

    def test_duplicate_field(self, client, products_table):
        response = client.post(
            "/api/schema/tables/products/fields",
            json={"field_name": "price", "field_type": "number", "field_label": "Price again"},
        )

        assert response.status_code == 409

    def test_select_without_options(self, client, products_table):
        response = client.post(
            "/api/schema/tables/products/fields",
            json={"field_name": "status", "field_type": "select", "field_label": "Status"},
        )

        assert response.status_code == 400

    def test_fields_listed_in_order_with_ties_by_creation(self, client, store, products_table):
        store.create_field(
            "products", {"field_name": "sku", "field_type": "string", "field_label": "SKU", "field_order": 1}
        )

        names = [f["field_name"] for f in _json(client.get("/api/schema/tables/products/fields"))["data"]]

        assert names == ["name", "sku", "price", "is_active"]

    def test_rename_onto_existing_field(self, client, products_table):
        price = next(f for f in products_table.fields if f.field_name == "price")

        response = client.put(f"/api/schema/fields/{price.id}", json={"field_name": "name"})

        assert response.status_code == 409

    def test_update_field_changes_validation(self, client, products_table):
        price = next(f for f in products_table.fields if f.field_name == "price")
        _json(client.put(f"/api/schema/fields/{price.id}", json={"validation_rules": {"min": 10}}))

        response = client.post("/api/products", json={"name": "Widget", "price": 5})

        assert response.get_json()["error"] == "Price must be at least 10"

    @pytest.mark.parametrize("key", ["is_required", "is_active", "field_order"])
    def test_null_for_required_column_is_rejected(self, client, store, products_table, key):
        name = next(f for f in products_table.fields if f.field_name == "name")

        response = client.put(f"/api/schema/fields/{name.id}", json={key: None})

        assert response.status_code == 400
        assert f"{key} cannot be null" in response.get_json()["error"]
        unchanged = store.get_field(name.id)
        assert (unchanged.is_required, unchanged.is_active, unchanged.field_order) == (True, True, 1)

    def test_delete_field(self, client, products_table):
        name = next(f for f in products_table.fields if f.field_name == "name")

        _json(client.delete(f"/api/schema/fields/{name.id}"))

        assert client.get(f"/api/schema/fields/{name.id}").status_code == 404
        assert client.post("/api/products", json={"price": 1}).status_code == 200


@pytest.mark.integration
class TestRelationshipsAndPermissions:
    """Test relationship and permission endpoints."""

    def test_relationship_lifecycle(self, client, store, products_table):
        store.create_table({"table_name": "orders", "table_label": "Orders"})
        payload = {
            "source_table": "orders",
            "source_field": "product_id",
            "target_table": "products",
            "relationship_type": "many-to-one",
        }

        created = _json(client.post("/api/schema/relationships", json=payload), 201)["data"]
        assert created["target_field"] == "id"
        assert client.post("/api/schema/relationships", json=payload).status_code == 409

        listed = _json(client.get("/api/schema/relationships?table=products"))["data"]
        assert [r["id"] for r in listed] == [created["id"]]

        _json(client.delete(f"/api/schema/relationships/{created['id']}"))
        assert client.delete(f"/api/schema/relationships/{created['id']}").status_code == 404

    def test_relationship_to_missing_table(self, client, products_table):
        response = client.post(
            "/api/schema/relationships",
            json={
                "source_table": "products",
                "source_field": "maker_id",
                "target_table": "makers",
                "relationship_type": "many-to-one",
            },
        )

        assert response.status_code == 404

    def test_permission_lifecycle(self, client, products_table):
        created = _json(
            client.post(
                "/api/schema/permissions",
                json={"table_name": "products", "role": "editor", "can_read": True},
            ),
            201,
        )["data"]
        assert client.post(
            "/api/schema/permissions", json={"table_name": "products", "role": "editor"}
        ).status_code == 409

        updated = _json(
            client.put(f"/api/schema/permissions/{created['id']}", json={"can_update": True})
        )["data"]
        assert (updated["can_read"], updated["can_update"]) == (True, True)

        _json(client.delete(f"/api/schema/permissions/{created['id']}"))
        assert _json(client.get("/api/schema/permissions"))["data"] == []


@pytest.mark.integration
class TestCompiledSchema:
    """Test GET /api/schema and friends."""

    def test_full_document(self, client, store, products_table):
        store.create_table({"table_name": "hidden", "table_label": "Hidden", "is_active": False})

        document = _json(client.get("/api/schema"))

        assert list(document) == ["products"]
        assert [f["name"] for f in document["products"]["fields"]] == ["name", "price", "is_active"]
        assert document["products"]["fields"][1]["validation"] == {"min": 0}

    def test_single_table(self, client, products_table):
        entry = _json(client.get("/api/schema/products"))

        assert entry["label"] == "Products"

    def test_single_table_missing(self, client):
        response = client.get("/api/schema/ghosts")

        assert response.status_code == 404
        assert "error" in response.get_json()

    def test_generate_writes_artifact(self, app, client, products_table, tmp_path):
        body = _json(client.post("/api/schema/generate"))

        assert body["data"]["tables"] == 1
        artifact = tmp_path / "generated" / "schema.json"
        mirror = tmp_path / "client" / "schema.json"
        assert artifact.read_text() == mirror.read_text()
        assert '"products"' in artifact.read_text()

    def test_generate_is_deterministic(self, client, products_table):
        first = _json(client.post("/api/schema/generate"))["data"]["checksum"]
        second = _json(client.post("/api/schema/generate"))["data"]["checksum"]

        assert first == second


@pytest.mark.integration
class TestInference:
    """Test POST /api/schema/tables/<name>/infer."""

    def test_infer_and_persist(self, client, store):
        store.create_table({"table_name": "contacts", "table_label": "Contacts"})
        client.post("/api/contacts", json={"full_name": "Ada", "email": "ada@example.com", "age": 36})
        client.post("/api/contacts", json={"website": "https://ada.dev"})

        proposals = _json(client.post("/api/schema/tables/contacts/infer", json={}))["data"]
        assert {p["field_name"]: p["field_type"] for p in proposals} == {
            "full_name": "string",
            "email": "email",
            "age": "number",
            "website": "url",
        }
        assert store.list_fields("contacts") == []

        _json(client.post("/api/schema/tables/contacts/infer", json={"persist": True}))
        assert [f.field_name for f in store.list_fields("contacts")] == [
            "full_name",
            "email",
            "age",
            "website",
        ]

    def test_infer_missing_table(self, client):
        assert client.post("/api/schema/tables/ghosts/infer", json={}).status_code == 404
