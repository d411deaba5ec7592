"""HTTP adapter tests through FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

from trackplan.api.main import app


@pytest.fixture
def client(engine):
    return TestClient(app)


@pytest.fixture
def seeded(client):
    """Product with one page; returns (product_id, page_id)."""
    product_id = client.post("/products", json={"name": "Shop"}).json()["data"]["id"]
    page_id = client.post(f"/products/{product_id}/pages", json={"name": "Home", "url": "/"}).json()["data"]["id"]
    return product_id, page_id


def _value_id(client, product_id, text):
    rows = client.get(f"/products/{product_id}/suggested-values").json()["data"]
    return next(r["id"] for r in rows if r["value"] == text)


def _property_id(client, product_id, name):
    rows = client.get(f"/products/{product_id}/properties").json()["data"]
    return next(r["id"] for r in rows if r["name"] == name)


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["db"] is True


def test_metrics(client):
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "catalog_auto_created_total" in r.text


class TestEvents:

    def test_create_discovers_catalog(self, client, seeded):
        product_id, page_id = seeded
        r = client.post(f"/pages/{page_id}/events", json={"name": "Signup", "properties": {"plan": "pro"}})
        assert r.status_code == 201
        assert r.json()["data"]["properties"] == {"plan": "pro"}
        props = client.get(f"/products/{product_id}/properties").json()["data"]
        assert props[0]["name"] == "plan"
        assert props[0]["suggested_values"][0]["value"] == "pro"

    def test_validation_error_shape(self, client, seeded):
        _, page_id = seeded
        r = client.post(f"/pages/{page_id}/events", json={"name": "Signup", "status": "shipped"})
        assert r.status_code == 400
        assert r.json()["success"] is False
        assert r.json()["error"] == "validation_error"

    def test_update_records_author(self, client, seeded):
        _, page_id = seeded
        event_id = client.post(f"/pages/{page_id}/events", json={"name": "Signup"}).json()["data"]["id"]
        r = client.put(f"/events/{event_id}", json={"status": "to_test"}, headers={"X-Author": "grace"})
        assert r.status_code == 200
        history = r.json()["data"]["history"]
        assert [(h["field"], h["author"]) for h in history] == [("status", "grace")]

    def test_default_author(self, client, seeded):
        _, page_id = seeded
        event_id = client.post(f"/pages/{page_id}/events", json={"name": "Signup"}).json()["data"]["id"]
        history = client.put(f"/events/{event_id}", json={"name": "Sign Up"}).json()["data"]["history"]
        assert history[0]["author"] == "system"

    def test_conflicts(self, client, seeded):
        product_id, page_id = seeded
        event_id = client.post(
            f"/pages/{page_id}/events", json={"name": "View", "properties": {"platform": "ios"}}
        ).json()["data"]["id"]
        web_id = client.post(f"/products/{product_id}/suggested-values", json={"value": "web"}).json()["data"]["id"]
        client.post(
            f"/products/{product_id}/common-properties",
            json={"propertyId": _property_id(client, product_id, "platform"), "suggestedValueId": web_id},
        )
        body = client.get(f"/events/{event_id}/conflicts").json()
        assert body["count"] == 1
        assert body["data"]["conflicts"][0]["expected_value"] == "web"

    def test_list_with_filters(self, client, seeded):
        _, page_id = seeded
        client.post(f"/pages/{page_id}/events", json={"name": "Signup"})
        tested = client.post(f"/pages/{page_id}/events", json={"name": "Logout", "status": "to_test"}).json()["data"]["id"]

        body = client.get(f"/pages/{page_id}/events").json()
        assert body["count"] == 2
        assert body["data"][0]["id"] == tested

        body = client.get(f"/pages/{page_id}/events", params={"status": "to_test,validated"}).json()
        assert [e["id"] for e in body["data"]] == [tested]
        assert client.get(f"/pages/{page_id}/events", params={"modified_since": "2000-01-01"}).json()["count"] == 2
        assert client.get(f"/pages/{page_id}/events", params={"modified_since": "2999-01-01"}).json()["count"] == 0

    def test_list_rejects_bad_filters(self, client, seeded):
        _, page_id = seeded
        r = client.get(f"/pages/{page_id}/events", params={"status": "to_test,shipped"})
        assert r.status_code == 400
        assert "shipped" in r.json()["message"]
        assert client.get(f"/pages/{page_id}/events", params={"modified_since": "soon"}).status_code == 400
        assert client.get("/pages/404/events").status_code == 404

    def test_delete(self, client, seeded):
        _, page_id = seeded
        event_id = client.post(f"/pages/{page_id}/events", json={"name": "Signup"}).json()["data"]["id"]
        r = client.delete(f"/events/{event_id}")
        assert r.status_code == 200
        assert r.json()["message"] == "Event deleted successfully"
        assert client.get(f"/events/{event_id}").status_code == 404
        assert client.delete(f"/events/{event_id}").status_code == 404

    def test_unknown_event(self, client):
        assert client.get("/events/404").status_code == 404


class TestCatalogEndpoints:

    def test_property_rename_propagates(self, client, seeded):
        product_id, page_id = seeded
        event_id = client.post(
            f"/pages/{page_id}/events", json={"name": "Signup", "properties": {"plan": "pro"}}
        ).json()["data"]["id"]
        prop_id = _property_id(client, product_id, "plan")

        r = client.put(f"/properties/{prop_id}", json={"name": "tier"}, headers={"X-Author": "heidi"})

        assert r.status_code == 200
        assert r.json()["affectedEvents"] == 1
        event = client.get(f"/events/{event_id}").json()["data"]
        assert event["properties"] == {"tier": "pro"}
        assert event["history"][0]["author"] == "heidi"

    def test_property_rename_clash(self, client, seeded):
        product_id, page_id = seeded
        client.post(f"/pages/{page_id}/events", json={"name": "Signup", "properties": {"plan": "pro", "tier": "x"}})
        r = client.put(f"/properties/{_property_id(client, product_id, 'plan')}", json={"name": "tier"})
        assert r.status_code == 409
        assert r.json()["conflictData"]["existingProperty"]["name"] == "tier"

    def test_value_rename_conflict_then_merge(self, client, seeded):
        product_id, page_id = seeded
        client.post(f"/pages/{page_id}/events", json={"name": "A", "properties": {"page": "Homepage"}})
        client.post(f"/pages/{page_id}/events", json={"name": "B", "properties": {"page": "homepage"}})
        source_id = _value_id(client, product_id, "Homepage")
        target_id = _value_id(client, product_id, "homepage")

        r = client.put(f"/suggested-values/{source_id}", json={"value": "homepage"})
        assert r.status_code == 409
        proposal = r.json()["conflictData"]["mergeProposal"]
        assert (proposal["sourceId"], proposal["targetId"]) == (source_id, target_id)

        r = client.post(f"/suggested-values/{proposal['sourceId']}/merge/{proposal['targetId']}")
        assert r.status_code == 200
        assert r.json()["result"]["affected_events"] == 1
        values = [v["value"] for v in client.get(f"/products/{product_id}/suggested-values").json()["data"]]
        assert values == ["homepage"]

    def test_impact_then_delete(self, client, seeded):
        product_id, page_id = seeded
        event_id = client.post(
            f"/pages/{page_id}/events", json={"name": "Signup", "properties": {"plan": "pro", "seats": 2}}
        ).json()["data"]["id"]
        value_id = _value_id(client, product_id, "pro")

        impact = client.get(f"/suggested-values/{value_id}/impact").json()["data"]
        assert impact["count"] == 1
        assert impact["events"][0]["id"] == event_id

        r = client.delete(f"/suggested-values/{value_id}")
        assert r.status_code == 200
        assert r.json()["affectedEvents"] == 1
        assert client.get(f"/events/{event_id}").json()["data"]["properties"] == {"seats": 2}

        prop_id = _property_id(client, product_id, "seats")
        assert client.get(f"/properties/{prop_id}/impact").json()["data"]["count"] == 1
        assert client.delete(f"/properties/{prop_id}").json()["affectedEvents"] == 1
        assert client.get(f"/events/{event_id}").json()["data"]["properties"] == {}

    def test_list_common_properties(self, client, seeded):
        product_id, page_id = seeded
        client.post(f"/pages/{page_id}/events", json={"name": "View", "properties": {"platform": "web"}})
        payload = {"propertyId": _property_id(client, product_id, "platform"), "suggestedValueId": _value_id(client, product_id, "web")}
        cp_id = client.post(f"/products/{product_id}/common-properties", json=payload).json()["data"]["id"]

        body = client.get(f"/products/{product_id}/common-properties").json()
        assert body["count"] == 1
        assert body["data"][0]["id"] == cp_id
        assert body["data"][0]["suggested_value_id"] == payload["suggestedValueId"]
        assert client.get("/products/404/common-properties").status_code == 404

    def test_not_found(self, client):
        assert client.get("/properties/404/impact").status_code == 404
        assert client.delete("/suggested-values/404").status_code == 404


def test_startup_configures_logging_and_schema(engine):
    import logging

    with TestClient(app) as c:
        assert c.get("/health").status_code == 200
    assert any(getattr(h, "_trackplan", False) for h in logging.getLogger().handlers)
