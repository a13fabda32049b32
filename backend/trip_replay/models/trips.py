from typing import List, Optional, Tuple
from pydantic import BaseModel, ConfigDict


class StopTimeEvent(BaseModel):
    """One stop-time waypoint of a trip."""
    model_config = ConfigDict(frozen=True)

    sequence_index: int
    stop_id: Optional[str] = None
    arrival: Optional[int] = None
    departure: Optional[int] = None

    @property
    def timestamp(self) -> Optional[int]:
        """Arrival time when present, otherwise departure time."""
        if self.arrival is not None:
            return self.arrival
        return self.departure


class TripSchedule(BaseModel):
    """Model for a trip and its stop-time events in feed order."""
    model_config = ConfigDict(frozen=True)

    trip_id: str
    route_id: str
    events: Tuple[StopTimeEvent, ...] = ()

    def timed_events(self) -> List[StopTimeEvent]:
        """Events carrying a usable timestamp, in feed order."""
        return [event for event in self.events if event.timestamp is not None]


class FeedSummary(BaseModel):
    """Model describing the currently loaded feed."""
    trip_count: int
    min_time: int
    max_time: int
    skipped_entities: int = 0
    skipped_events: int = 0
