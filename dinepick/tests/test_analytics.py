from __future__ import annotations

from fastapi.testclient import TestClient

from dinepick.analytics.aggregator import compute_analytics
from dinepick.analytics.store import clear_events, get_events, record_event
from dinepick.app import app, get_nearby_service
from dinepick.nearby.cache import NearbyScanCache
from dinepick.nearby.errors import PlacesBackendError
from dinepick.nearby.search import NearbySearchService
from dinepick.recommendations.data_store import reset_store

client = TestClient(app)


class _Backend:
    def __init__(self, error=None):
        self.error = error

    def search(self, center, radius_meters):
        if self.error is not None:
            raise self.error
        return []


def test_analytics_returns_empty_initially():
    clear_events()
    resp = client.get("/analytics")
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_picks"] == 0
    assert body["avg_response_time_ms"] == 0.0
    assert body["novelty_mode_usage"] == {"safe": 0, "balanced": 0, "adventure": 0}
    assert body["nearby_scans"]["total"] == 0


def test_analytics_tracks_picks():
    clear_events()
    reset_store()
    client.post("/picks", json={"cuisines": ["Thai"], "novelty_mode": "adventure"})
    client.post("/picks", json={"cuisines": ["thai", "Japanese"]})
    client.post("/picks", json={"include_nearby": True})

    body = client.get("/analytics").json()
    assert body["total_picks"] == 3
    assert body["avg_response_time_ms"] >= 0.0
    assert body["avg_pool_size"] == 15.0
    assert body["novelty_mode_usage"] == {"safe": 0, "balanced": 2, "adventure": 1}
    assert body["top_cuisines"][0] == {"name": "thai", "count": 2}
    assert body["nearby_usage_rate"] == 33.3
    assert body["empty_pick_rate"] == 0.0


def test_analytics_counts_empty_picks():
    clear_events()
    reset_store()
    client.post("/picks", json={"cuisines": ["Klingon"]})
    client.post("/picks", json={})
    body = client.get("/analytics").json()
    assert body["empty_pick_rate"] == 50.0


def test_analytics_tracks_nearby_scans():
    clear_events()
    scan = {"latitude": 51.5074, "longitude": -0.1278}

    service = NearbySearchService(cache=NearbyScanCache(), backend=_Backend())
    app.dependency_overrides[get_nearby_service] = lambda: service
    client.post("/nearby/scan", json=scan)
    client.post("/nearby/scan", json=scan)

    failing = NearbySearchService(
        cache=NearbyScanCache(), backend=_Backend(PlacesBackendError()),
    )
    app.dependency_overrides[get_nearby_service] = lambda: failing
    client.post("/nearby/scan", json=scan)
    app.dependency_overrides.clear()

    scans = compute_analytics(get_events())["nearby_scans"]
    assert scans == {
        "total": 3,
        "succeeded": 2,
        "cache_hits": 1,
        "cache_hit_rate": 50.0,
        "errors": {"PlacesBackendError": 1},
    }


def test_event_store_filters_by_type():
    clear_events()
    record_event("pick", {"pool_size": 1})
    record_event("nearby_scan", {"results": 0})
    assert [e["type"] for e in get_events("pick")] == ["pick"]
    assert len(get_events()) == 2
    assert "timestamp" in get_events()[0]
