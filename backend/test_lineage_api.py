"""REST tests for the lineage blueprint."""

import pytest


@pytest.fixture
def catalog(register_assets):
    register_assets("orders_raw", "orders_clean", "revenue_report")


def post_edge(client, source, target, relationship_type="feeds_into", **extra):
    body = {"sourceAssetId": source, "targetAssetId": target, "relationshipType": relationship_type,
            "createdBy": "alice@example.com", **extra}
    return client.post("/api/lineage", json=body)


class TestCreateLineage:

    def test_create_returns_201_then_200(self, client, catalog):
        created = post_edge(client, "orders_raw", "orders_clean", metadata={"frequency": "daily"})
        assert created.status_code == 201
        body = created.get_json()
        assert body["created"] is True
        assert body["data"]["source"]["name"] == "orders_raw table"
        relationship = body["data"]["relationship"]
        assert relationship["strength"] == 0.8
        assert relationship["isActive"] is True
        assert relationship["createdBy"] == "alice@example.com"

        updated = post_edge(client, "orders_raw", "orders_clean", "derived_from",
                            metadata={"dataVolume": "3GB"})
        assert updated.status_code == 200
        relationship = updated.get_json()["data"]["relationship"]
        assert relationship["id"] == body["data"]["relationship"]["id"]
        assert relationship["relationshipType"] == "derived_from"
        assert relationship["metadata"] == {"frequency": "daily", "dataVolume": "3GB"}

    def test_invalid_relationship_type_is_400(self, client, catalog):
        response = post_edge(client, "orders_raw", "orders_clean", "inspired_by")
        assert response.status_code == 400
        error = response.get_json()["error"]
        assert error["type"] == "validation_error"
        assert error["details"][0]["loc"] == ["relationshipType"]

    def test_invalid_strength_is_400(self, client, catalog):
        response = post_edge(client, "orders_raw", "orders_clean", strength=3)
        assert response.status_code == 400

    def test_self_loop_is_400(self, client, catalog):
        response = post_edge(client, "orders_raw", "orders_raw")
        assert response.status_code == 400

    def test_missing_body_is_400(self, client, catalog):
        response = client.post("/api/lineage", data="nope", content_type="text/plain")
        assert response.status_code == 400

    def test_unknown_assets_are_404(self, client, catalog):
        response = post_edge(client, "ghost", "orders_clean")
        assert response.status_code == 404
        assert response.get_json()["error"]["message"] == "Source asset not found"
        response = post_edge(client, "orders_raw", "ghost")
        assert response.status_code == 404
        assert response.get_json()["error"]["message"] == "Target asset not found"

    def test_created_by_defaults(self, client, catalog, app):
        response = client.post("/api/lineage", json={"sourceAssetId": "orders_raw", "targetAssetId": "orders_clean"})
        assert response.status_code == 201
        relationship = response.get_json()["data"]["relationship"]
        assert relationship["createdBy"] == app.config["LINEAGE_DEFAULT_ACTOR"]
        assert relationship["relationshipType"] == "feeds_into"


class TestAssetLineage:

    @pytest.fixture
    def chain(self, client, catalog):
        post_edge(client, "orders_raw", "orders_clean")
        post_edge(client, "orders_clean", "revenue_report", "aggregates_to")

    def test_returns_entry_array(self, client, chain):
        response = client.get("/api/assets/orders_raw/lineage?direction=downstream&depth=2")
        assert response.status_code == 200
        entries = response.get_json()
        assert isinstance(entries, list)
        assert sorted((e["source"]["id"], e["target"]["id"]) for e in entries) == [
            ("orders_clean", "revenue_report"),
            ("orders_raw", "orders_clean"),
        ]
        assert {"source", "target", "relationship"} == set(entries[0])

    def test_depth_one(self, client, chain):
        entries = client.get("/api/assets/orders_raw/lineage?direction=downstream&depth=1").get_json()
        assert [(e["source"]["id"], e["target"]["id"]) for e in entries] == [("orders_raw", "orders_clean")]

    def test_defaults_apply_for_blank_params(self, client, chain):
        entries = client.get("/api/assets/orders_clean/lineage?direction=&depth=").get_json()
        assert len(entries) == 2

    def test_unknown_asset_is_404(self, client, chain):
        response = client.get("/api/assets/ghost/lineage")
        assert response.status_code == 404

    def test_bad_direction_is_400(self, client, chain):
        response = client.get("/api/assets/orders_raw/lineage?direction=sideways")
        assert response.status_code == 400

    def test_graph_view(self, client, chain):
        response = client.get("/api/assets/orders_clean/lineage/graph?depth=1")
        assert response.status_code == 200
        graph = response.get_json()["data"]
        assert graph["metadata"]["upstreamCount"] == 1
        assert graph["metadata"]["downstreamCount"] == 1
        assert graph["metadata"]["direction"] == "both"
        assert len(graph["nodes"]) == 3
        assert len(graph["links"]) == 2


class TestEdgeEndpoints:

    def test_update_and_delete(self, client, catalog):
        edge_id = post_edge(client, "orders_raw", "orders_clean").get_json()["data"]["relationship"]["id"]

        response = client.put(f"/api/lineage/{edge_id}", json={"strength": 0.4, "relationshipType": "copies_to"})
        assert response.status_code == 200
        relationship = response.get_json()["data"]["relationship"]
        assert relationship["strength"] == 0.4
        assert relationship["relationshipType"] == "copies_to"

        response = client.delete(f"/api/lineage/{edge_id}")
        assert response.status_code == 200
        assert client.get("/api/assets/orders_raw/lineage").get_json() == []

    def test_update_unknown_edge_is_404(self, client):
        response = client.put("/api/lineage/12345", json={"strength": 0.4})
        assert response.status_code == 404

    def test_delete_unknown_edge_is_404(self, client):
        assert client.delete("/api/lineage/12345").status_code == 404

    def test_list_and_stats(self, client, catalog):
        post_edge(client, "orders_raw", "orders_clean")
        post_edge(client, "orders_clean", "revenue_report", "aggregates_to")

        listing = client.get("/api/lineage?limit=1").get_json()
        assert listing["success"] is True
        assert listing["count"] == 1
        assert listing["total"] == 2
        assert listing["pagination"]["pages"] == 2

        filtered = client.get("/api/lineage?relationshipType=aggregates_to").get_json()
        assert [e["target"]["id"] for e in filtered["data"]] == ["revenue_report"]

        stats = client.get("/api/lineage/stats").get_json()["data"]
        assert stats["totalRelationships"] == 2
        assert stats["assetsWithLineage"] == 3
        assert stats["coveragePercentage"] == 100.0

    def test_list_rejects_bad_paging(self, client):
        assert client.get("/api/lineage?page=0").status_code == 400


class TestStoreFailures:

    def test_store_outage_is_503(self, client, catalog, monkeypatch):
        import db_helpers
        from errors import StoreUnavailableError

        def unavailable(*args, **kwargs):
            raise StoreUnavailableError("Lineage store is unavailable")

        monkeypatch.setattr(db_helpers, "find_active_edges", unavailable)
        response = client.get("/api/assets/orders_raw/lineage")
        assert response.status_code == 503
        assert response.get_json()["error"]["type"] == "store_unavailable"
