"""
Temporal position resolution: map a clock value to a point along a trip's
route geometry.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from shapely.errors import ShapelyError
from shapely.geometry import LineString, Point
from shapely.geometry.base import BaseGeometry
from shapely.ops import substring

from ..models.trips import StopTimeEvent, TripSchedule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TripPosition:
    """Interpolated position of an active trip at one clock value."""
    trip_id: str
    route_id: str
    point: Point
    fraction: float
    distance: float
    line: LineString
    prev_stop: StopTimeEvent
    next_stop: StopTimeEvent

    def trail(self) -> BaseGeometry:
        """Slice of the route from its origin to the current point."""
        return substring(self.line, 0.0, self.distance)


def positioning_line(geometry: BaseGeometry) -> Optional[LineString]:
    """Line used for interpolation; multi-part routes use their first part."""
    if geometry is None or geometry.is_empty:
        return None
    if geometry.geom_type == "LineString":
        return geometry
    if geometry.geom_type == "MultiLineString":
        return geometry.geoms[0]
    return None


def bracketing_events(events: List[StopTimeEvent], clock: float) -> Optional[Tuple[StopTimeEvent, StopTimeEvent]]:
    """Find the latest event at or before ``clock`` and the first one after it.

    At exactly the final timestamp the trip is still on its last leg, so
    the last two events bracket it.
    """
    prev_stop = None
    next_stop = None
    for event in events:
        if event.timestamp <= clock:
            prev_stop = event
            next_stop = None
        elif prev_stop is not None and next_stop is None:
            next_stop = event

    if prev_stop is not None and next_stop is None and clock == events[-1].timestamp:
        next_stop = prev_stop
        prev_stop = events[-2]

    if prev_stop is None or next_stop is None:
        return None
    return prev_stop, next_stop


def resolve(trip: TripSchedule, geometry: BaseGeometry, clock: float) -> Optional[TripPosition]:
    """Resolve a trip's position at ``clock``.

    Returns None when the trip is not active: fewer than two timestamped
    events, ``clock`` outside the trip's own schedule window, or geometry
    that cannot be measured. Progress is linear over the whole trip span,
    not per leg.
    """
    events = trip.timed_events()
    if len(events) < 2:
        return None

    start_time = events[0].timestamp
    end_time = events[-1].timestamp
    if clock < start_time or clock > end_time:
        return None

    bracket = bracketing_events(events, clock)
    if bracket is None:
        return None
    prev_stop, next_stop = bracket

    span = end_time - start_time
    if span <= 0:
        return None
    fraction = (clock - start_time) / span

    line = positioning_line(geometry)
    if line is None:
        return None

    try:
        total_length = line.length
        if not total_length > 0:
            return None
        distance = fraction * total_length
        point = line.interpolate(distance)
    except (ShapelyError, ValueError) as e:
        logger.debug("Could not interpolate trip %s: %s", trip.trip_id, str(e))
        return None

    if point.is_empty:
        return None

    return TripPosition(
        trip_id=trip.trip_id,
        route_id=trip.route_id,
        point=point,
        fraction=fraction,
        distance=distance,
        line=line,
        prev_stop=prev_stop,
        next_stop=next_stop,
    )
