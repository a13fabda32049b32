from __future__ import annotations

import pytest
from shapely.geometry import LineString, MultiLineString, Point

from trip_replay.models.trips import StopTimeEvent, TripSchedule
from trip_replay.services.resolver import resolve


def _trip(*times, route_id: str = "R") -> TripSchedule:
    return TripSchedule(
        trip_id="trip-1",
        route_id=route_id,
        events=tuple(StopTimeEvent(sequence_index=i, arrival=t) for i, t in enumerate(times)),
    )


LINE = LineString([(0, 0), (0, 1)])


def test_midpoint_at_half_the_schedule() -> None:
    position = resolve(_trip(1000, 1100), LINE, 1050)

    assert position is not None
    assert position.fraction == pytest.approx(0.5)
    assert position.point.x == pytest.approx(0.0)
    assert position.point.y == pytest.approx(0.5)


@pytest.mark.parametrize("clock", [999, 999.999, 1100.001, 5000, -1])
def test_outside_schedule_window_is_not_active(clock) -> None:
    assert resolve(_trip(1000, 1100), LINE, clock) is None


@pytest.mark.parametrize("clock, expected_y", [(1000, 0.0), (1100, 1.0)])
def test_window_boundaries_are_inclusive(clock, expected_y) -> None:
    position = resolve(_trip(1000, 1100), LINE, clock)

    assert position is not None
    assert position.point.y == pytest.approx(expected_y)


def test_final_timestamp_brackets_last_leg() -> None:
    position = resolve(_trip(1000, 1050, 1100), LINE, 1100)

    assert position.prev_stop.timestamp == 1050
    assert position.next_stop.timestamp == 1100


def test_progress_is_linear_over_whole_trip_not_per_leg() -> None:
    # First leg is short in time, second long; position ignores leg boundaries.
    position = resolve(_trip(1000, 1010, 1100), LINE, 1055)

    assert position.fraction == pytest.approx(0.55)
    assert position.prev_stop.timestamp == 1010
    assert position.next_stop.timestamp == 1100


def test_interpolation_is_monotonic() -> None:
    line = LineString([(0, 0), (3, 0), (3, 4), (0, 4)])
    trip = _trip(0, 100, 400, 1000)

    distances = [resolve(trip, line, t).distance for t in range(0, 1001, 25)]

    assert distances == sorted(distances)
    assert distances[-1] == pytest.approx(line.length)


def test_fewer_than_two_timestamped_events() -> None:
    trip = TripSchedule(
        trip_id="t",
        route_id="R",
        events=(
            StopTimeEvent(sequence_index=0, arrival=1000),
            StopTimeEvent(sequence_index=1),
        ),
    )

    assert resolve(trip, LINE, 1000) is None
    assert resolve(_trip(1000), LINE, 1000) is None


def test_departure_used_when_arrival_missing() -> None:
    trip = TripSchedule(
        trip_id="t",
        route_id="R",
        events=(
            StopTimeEvent(sequence_index=0, departure=1000),
            StopTimeEvent(sequence_index=1, arrival=1100, departure=1110),
        ),
    )

    assert resolve(trip, LINE, 1025).fraction == pytest.approx(0.25)
    assert resolve(trip, LINE, 1105) is None


def test_degenerate_geometry_is_not_active() -> None:
    zero_length = LineString([(1, 1), (1, 1)])

    assert resolve(_trip(1000, 1100), zero_length, 1050) is None
    assert resolve(_trip(1000, 1100), Point(0, 0), 1050) is None


def test_zero_span_trip_is_not_active() -> None:
    assert resolve(_trip(1000, 1000), LINE, 1000) is None


def test_multi_part_route_uses_first_part() -> None:
    multi = MultiLineString([[(0, 0), (10, 0)], [(100, 100), (200, 100)]])

    position = resolve(_trip(0, 100), multi, 50)

    assert (position.point.x, position.point.y) == pytest.approx((5.0, 0.0))
    assert position.line.length == pytest.approx(10.0)


def test_hundred_unit_route_is_half_traveled_at_mid_schedule() -> None:
    route = LineString([(0, 0), (0, 100)])

    position = resolve(_trip(1000, 1100), route, 1050)

    assert position.distance == pytest.approx(50.0)
    assert (position.point.x, position.point.y) == pytest.approx((0.0, 50.0))
