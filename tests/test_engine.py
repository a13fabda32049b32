from __future__ import annotations

import pytest

from trip_replay.exceptions import FeedParseError, GeometryLoadError
from trip_replay.models.config import Settings
from trip_replay.services import engine as engine_module
from trip_replay.services.engine import PlaybackEngine

from conftest import line_feature, trip_entity


class FakeCache:
    available = True

    def __init__(self) -> None:
        self.feed = None
        self.layers = {}

    def store_feed(self, document: dict) -> bool:
        self.feed = document
        return True

    def get_feed(self):
        return self.feed

    def store_layers(self, documents: dict) -> bool:
        self.layers.update(documents)
        return True

    def get_layers(self):
        return self.layers or None


def test_feed_load_sets_clock_bounds(engine: PlaybackEngine) -> None:
    state = engine.clock.state()

    assert (state.min_time, state.max_time, state.current_time) == (1000, 1250, 1000)
    assert engine.feed_summary.trip_count == 3


def test_frame_renders_only_active_trips_with_known_routes(engine: PlaybackEngine) -> None:
    engine.render_frame()
    assert engine.reconciler.tracked_ids() == ["t1"]

    engine.clock.set_time(1075)
    engine.render_frame()

    assert sorted(engine.reconciler.tracked_ids()) == ["t1", "t2"]
    assert engine.reconciler.get("t1").position == pytest.approx((0.0, 0.75))
    assert engine.reconciler.get("t2").position == pytest.approx((0.25, 0.0))


def test_trip_leaving_window_is_retired(engine: PlaybackEngine) -> None:
    engine.clock.set_time(1075)
    engine.render_frame()

    engine.clock.set_time(1200)
    stats = engine.render_frame()

    assert stats.retired == 1
    assert engine.reconciler.tracked_ids() == ["t2"]


def test_playing_frame_wraps_at_end_of_feed(engine: PlaybackEngine) -> None:
    engine.clock.toggle_play()

    engine.render_frame(300.0)

    assert engine.clock.current_time == 1000
    assert engine.reconciler.tracked_ids() == ["t1"]


def test_geometry_change_rebuilds_and_swaps_index(engine: PlaybackEngine) -> None:
    old_index = engine.route_index
    engine.clock.set_time(1050)
    engine.render_frame()

    engine.load_geometry({
        "replacement routes": {
            "type": "FeatureCollection",
            "features": [line_feature([[10.0, 10.0], [12.0, 10.0]], route_id="12")],
        }
    })
    engine.render_frame()

    assert engine.route_index is not old_index
    assert engine.route_index.duplicate_ids == 1
    assert engine.reconciler.get("t1").position == pytest.approx((11.0, 10.0))


def test_malformed_inputs_leave_state_untouched(engine: PlaybackEngine) -> None:
    index = engine.route_index
    trips = engine.trips

    with pytest.raises(FeedParseError):
        engine.load_feed("{nope")
    with pytest.raises(GeometryLoadError):
        engine.load_geometry({"routes": {"type": "Unknown"}})

    assert engine.trips is trips
    assert engine.route_index is index
    assert engine.clock.max_time == 1250


def test_one_failing_trip_does_not_abort_frame(engine: PlaybackEngine, monkeypatch) -> None:
    real_resolve = engine_module.resolve

    def flaky(trip, geometry, clock):
        if trip.trip_id == "t1":
            raise RuntimeError("boom")
        return real_resolve(trip, geometry, clock)

    monkeypatch.setattr(engine_module, "resolve", flaky)
    engine.clock.set_time(1075)
    engine.render_frame()

    assert engine.reconciler.tracked_ids() == ["t2"]


def test_new_feed_replaces_trips_wholesale(engine: PlaybackEngine) -> None:
    engine.clock.set_time(1075)
    engine.render_frame()

    engine.load_feed({"entity": [trip_entity("t9", "B", [5000, 5100])]})
    engine.render_frame()

    assert [trip.trip_id for trip in engine.trips] == ["t9"]
    assert engine.reconciler.tracked_ids() == ["t9"]


def test_layer_toggle_adds_and_removes_from_surface(engine: PlaybackEngine) -> None:
    assert "service zones" in engine.surface.layers

    info = engine.toggle_layer("service zones")
    assert info.visible is False
    assert "service zones" not in engine.surface.layers

    engine.toggle_layer("service zones")
    assert "service zones" in engine.surface.layers

    with pytest.raises(KeyError):
        engine.toggle_layer("nope")


def test_live_frame_reports_paths_and_visible_layers(engine: PlaybackEngine) -> None:
    engine.clock.set_time(1040)
    engine.render_frame()

    frame = engine.live_frame()

    assert frame.current_time == 1040
    assert [trip.trip_id for trip in frame.trips] == ["t1"]
    assert frame.trips[0].points == [[0.0, 0.0], [0.0, pytest.approx(0.4)]]
    assert frame.trips[0].route_id == "12"
    assert sorted(frame.visible_layers) == ["metro routes", "service zones"]


def test_documents_cached_and_restored(route_layers: dict, feed_document: dict) -> None:
    cache = FakeCache()
    first = PlaybackEngine(settings=Settings(base_rate=1.0), cache=cache)
    first.load_geometry(route_layers)
    first.load_feed(feed_document)

    restored = PlaybackEngine(settings=Settings(base_rate=1.0), cache=cache)
    restored.restore_from_cache()

    assert len(restored.trips) == 3
    assert restored.route_index.lookup("12") is not None
    assert restored.clock.max_time == 1250


def test_float_route_id_in_feed_matches_integer_keyed_route(engine: PlaybackEngine) -> None:
    engine.load_feed({"entity": [trip_entity("t", 12.0, [1000, 1100])]})
    engine.clock.set_time(1050)
    engine.render_frame()

    assert engine.trips[0].route_id == "12"
    assert engine.reconciler.tracked_ids() == ["t"]
