"""
Tests fuer die FastAPI-Schicht: Endpunkte rufen die Engine korrekt auf.
"""

import pytest
from fastapi.testclient import TestClient

from scene_learning.api import create_app


@pytest.fixture
def client(engine):
    with TestClient(create_app(engine)) as c:
        yield c


def _train_via_api(client, clock, *entity_ids, times=3):
    for _ in range(times):
        client.post("/api/learning/actions/batch", json={
            "actions": [{"entity_id": e, "value": True} for e in entity_ids],
        })
        clock.advance(120_000)


class TestActions:

    def test_record_action(self, client, engine):
        resp = client.post("/api/learning/actions", json={
            "entity_id": "light.flur", "value": 80, "context": "abend",
        })
        assert resp.status_code == 200
        assert engine.window.get("light.flur").context == "abend"

    def test_batch(self, client, engine):
        resp = client.post("/api/learning/actions/batch", json={
            "actions": [
                {"entity_id": "light.a", "value": True},
                {"entity_id": "light.b", "value": False},
            ],
        })
        assert resp.json() == {"success": True, "count": 2}
        assert engine.store.associations["light.a"].partners == {"light.b": 1}

    def test_missing_entity_id_rejected(self, client):
        resp = client.post("/api/learning/actions", json={"value": 1})
        assert resp.status_code == 422


class TestQueries:

    def test_partners(self, client, clock):
        _train_via_api(client, clock, "light.a", "light.b")
        resp = client.get("/api/learning/partners/light.a")
        assert resp.json() == [{"entity_id": "light.b", "frequency": 3, "contexts": {}}]

    def test_partners_min_frequency(self, client, clock):
        _train_via_api(client, clock, "light.a", "light.b", times=1)
        assert client.get("/api/learning/partners/light.a").json() == []
        assert len(client.get("/api/learning/partners/light.a?min_frequency=1").json()) == 1

    def test_scene_lifecycle(self, client, clock):
        _train_via_api(client, clock, "light.a", "light.b")
        resp = client.post("/api/learning/scenes", json={"main_entity_id": "light.a", "name": "Abend"})
        assert resp.status_code == 200
        assert resp.json()["datapoints"] == ["light.a", "light.b"]

        client.post("/api/learning/scenes/Abend/usage")
        scenes = client.get("/api/learning/scenes").json()
        assert scenes[0]["usage_count"] == 1

    def test_scene_without_partners(self, client):
        resp = client.post("/api/learning/scenes", json={"main_entity_id": "light.x", "name": "Leer"})
        assert resp.status_code == 422

    def test_suggestions(self, client, clock):
        _train_via_api(client, clock, "light.a", "light.b", "light.c")
        suggestions = client.get("/api/learning/suggestions").json()
        assert [s["main_entity"] for s in suggestions] == ["light.a", "light.b", "light.c"]
        assert client.get("/api/learning/suggestions?min_associations=3").json() == []

    def test_stats_and_reset(self, client, clock):
        _train_via_api(client, clock, "light.a", "light.b")
        assert client.get("/api/learning/stats").json()["total_associations"] == 2
        client.post("/api/learning/reset")
        assert client.get("/api/learning/stats").json()["total_associations"] == 0


def test_shutdown_saves(engine):
    with TestClient(create_app(engine)) as c:
        c.post("/api/learning/actions", json={"entity_id": "light.a", "value": True})
    assert engine.persistence.path.exists()
    assert engine.persistence.is_scheduled is False
