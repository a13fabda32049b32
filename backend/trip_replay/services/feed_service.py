import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import requests

from ..exceptions import FeedFetchError, FeedParseError
from ..models.trips import StopTimeEvent, TripSchedule
from .route_index import normalize_route_id

logger = logging.getLogger(__name__)


@dataclass
class ParsedFeed:
    """Trips extracted from one feed document."""
    trips: List[TripSchedule] = field(default_factory=list)
    document: Dict[str, Any] = field(default_factory=dict)
    skipped_entities: int = 0
    skipped_events: int = 0

    def bounds(self) -> Optional[Tuple[int, int]]:
        """Minimum and maximum usable timestamp across all trips."""
        timestamps = [
            event.timestamp
            for trip in self.trips
            for event in trip.timed_events()
        ]
        if not timestamps:
            return None
        return min(timestamps), max(timestamps)


def _get(data: Mapping[str, Any], *keys: str) -> Any:
    """First present value among camelCase / snake_case spellings."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _event_time(stop_time_event: Any) -> Optional[int]:
    if not isinstance(stop_time_event, Mapping):
        return None
    value = stop_time_event.get("time")
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_events(updates: Any) -> Tuple[List[StopTimeEvent], int]:
    events: List[StopTimeEvent] = []
    skipped = 0
    if not isinstance(updates, list):
        return events, skipped

    for position, update in enumerate(updates):
        if not isinstance(update, Mapping):
            skipped += 1
            continue
        arrival = _event_time(update.get("arrival"))
        departure = _event_time(update.get("departure"))
        if arrival is None and departure is None:
            skipped += 1
            continue

        sequence = _get(update, "stopSequence", "stop_sequence")
        try:
            sequence_index = int(sequence) if sequence is not None else position
        except (TypeError, ValueError):
            sequence_index = position

        stop_id = _get(update, "stopId", "stop_id")
        events.append(StopTimeEvent(
            sequence_index=sequence_index,
            stop_id=str(stop_id) if stop_id is not None else None,
            arrival=arrival,
            departure=departure,
        ))
    return events, skipped


def parse_feed(payload: Union[str, bytes, Mapping[str, Any]]) -> ParsedFeed:
    """Parse a GTFS-realtime style JSON feed into trip schedules.

    Malformed entities and events are skipped one by one; a document that
    cannot be parsed at all raises FeedParseError.
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError as e:
            raise FeedParseError(f"Feed is not valid JSON: {str(e)}") from e

    if not isinstance(payload, Mapping):
        raise FeedParseError("Feed document must be a JSON object")

    entities = payload.get("entity")
    if not isinstance(entities, list):
        raise FeedParseError("Feed document has no 'entity' list")

    feed = ParsedFeed(document=dict(payload))
    for entity in entities:
        trip_update = _get(entity, "tripUpdate", "trip_update") if isinstance(entity, Mapping) else None
        if not isinstance(trip_update, Mapping):
            feed.skipped_entities += 1
            continue

        trip = trip_update.get("trip") or {}
        trip_id = _get(trip, "tripId", "trip_id") if isinstance(trip, Mapping) else None
        route_id = normalize_route_id(_get(trip, "routeId", "route_id")) if isinstance(trip, Mapping) else None
        if trip_id is None or route_id is None:
            logger.debug("Skipping entity %s without trip or route id", entity.get("id"))
            feed.skipped_entities += 1
            continue

        events, skipped = _parse_events(_get(trip_update, "stopTimeUpdate", "stop_time_update"))
        feed.skipped_events += skipped
        feed.trips.append(TripSchedule(trip_id=str(trip_id), route_id=route_id, events=tuple(events)))

    logger.info(
        "Parsed feed with %d trips (%d entities and %d events skipped)",
        len(feed.trips), feed.skipped_entities, feed.skipped_events,
    )
    return feed


def fetch_feed(url: str, timeout: float = 10.0) -> bytes:
    """Download a feed document. Single attempt, no retry."""
    logger.info("Downloading feed from %s", url)
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise FeedFetchError(f"Error fetching feed: {str(e)}", url=url) from e
    return response.content
