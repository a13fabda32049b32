from __future__ import annotations

from typing import Any

import pytest

from trip_replay.models.config import Settings
from trip_replay.services.engine import PlaybackEngine


def line_feature(coordinates: list, **properties: Any) -> dict:
    return {
        "type": "Feature",
        "properties": properties,
        "geometry": {"type": "LineString", "coordinates": coordinates},
    }


def trip_entity(trip_id: str, route_id: Any, times: list) -> dict:
    return {
        "id": trip_id,
        "tripUpdate": {
            "trip": {"tripId": trip_id, "routeId": route_id},
            "stopTimeUpdate": [
                {"stopSequence": i + 1, "stopId": f"S{i + 1}", "arrival": {"time": t}}
                for i, t in enumerate(times)
            ],
        },
    }


@pytest.fixture
def route_layers() -> dict:
    return {
        "metro routes": {
            "type": "FeatureCollection",
            "features": [
                line_feature([[0.0, 0.0], [0.0, 1.0]], route_id=12, name="North"),
                line_feature([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0]], ROUTE_ID="B"),
            ],
        },
        "service zones": {
            "type": "FeatureCollection",
            "features": [
                {
                    "type": "Feature",
                    "properties": {"route_id": "Z"},
                    "geometry": {
                        "type": "Polygon",
                        "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 0]]],
                    },
                }
            ],
        },
    }


@pytest.fixture
def feed_document() -> dict:
    return {
        "header": {"gtfsRealtimeVersion": "2.0"},
        "entity": [
            trip_entity("t1", "12", [1000, 1100]),
            trip_entity("t2", "B", [1050, 1150, 1250]),
            trip_entity("t3", "missing-route", [1000, 1200]),
        ],
    }


@pytest.fixture
def engine(route_layers: dict, feed_document: dict) -> PlaybackEngine:
    engine = PlaybackEngine(settings=Settings(base_rate=1.0))
    engine.load_geometry(route_layers)
    engine.load_feed(feed_document)
    return engine
