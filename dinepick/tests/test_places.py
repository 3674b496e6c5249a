from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests

from dinepick.nearby.cache import Coordinate
from dinepick.nearby.config import NearbyConfig
from dinepick.nearby.errors import PlacesBackendError
from dinepick.nearby.places import (
    GooglePlacesBackend,
    NullPlacesBackend,
    get_places_backend,
)

ENABLED_CONFIG = NearbyConfig(places_api_key="test-key", enabled=True)
DISABLED_CONFIG = NearbyConfig(places_api_key="test-key", enabled=False)
CENTER = Coordinate(37.7749, -122.4194)


def _mock_places_response(payload: dict) -> MagicMock:
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


@patch("dinepick.nearby.places.requests.post")
def test_search_parses_places(mock_post):
    mock_post.return_value = _mock_places_response({
        "places": [
            {
                "id": "abc",
                "displayName": {"text": "Noodle Bar"},
                "location": {"latitude": 37.7751, "longitude": -122.4190},
            },
            {"id": "def", "displayName": {"text": "No Location"}},
        ]
    })

    hits = GooglePlacesBackend(ENABLED_CONFIG).search(CENTER, 3_218.688)

    assert hits[0].name == "Noodle Bar"
    assert hits[0].latitude == 37.7751
    assert hits[1].name == "No Location"
    assert hits[1].latitude is None

    _, kwargs = mock_post.call_args
    assert kwargs["headers"]["X-Goog-Api-Key"] == "test-key"
    assert kwargs["json"]["includedTypes"] == ["restaurant"]
    assert kwargs["json"]["locationRestriction"]["circle"]["radius"] == 3_218.688
    assert kwargs["timeout"] == ENABLED_CONFIG.request_timeout


@patch("dinepick.nearby.places.requests.post")
def test_search_caps_radius(mock_post):
    mock_post.return_value = _mock_places_response({})
    hits = GooglePlacesBackend(ENABLED_CONFIG).search(CENTER, 90_000.0)
    assert hits == []
    _, kwargs = mock_post.call_args
    assert kwargs["json"]["locationRestriction"]["circle"]["radius"] == 50_000.0


@patch("dinepick.nearby.places.requests.post")
def test_search_wraps_transport_errors(mock_post):
    mock_post.side_effect = requests.ConnectionError("connection reset")
    with pytest.raises(PlacesBackendError):
        GooglePlacesBackend(ENABLED_CONFIG).search(CENTER, 1_000.0)


@patch("dinepick.nearby.places.requests.post")
def test_search_wraps_http_errors(mock_post):
    response = MagicMock()
    response.raise_for_status.side_effect = requests.HTTPError("403 Forbidden")
    mock_post.return_value = response
    with pytest.raises(PlacesBackendError):
        GooglePlacesBackend(ENABLED_CONFIG).search(CENTER, 1_000.0)


def test_null_backend_returns_nothing():
    assert NullPlacesBackend().search(CENTER, 1_000.0) == []


def test_backend_selection():
    assert isinstance(get_places_backend(ENABLED_CONFIG), GooglePlacesBackend)
    assert isinstance(get_places_backend(DISABLED_CONFIG), NullPlacesBackend)
    assert isinstance(get_places_backend(NearbyConfig(places_api_key="")), NullPlacesBackend)
