from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel


class LayerRole(str, Enum):
    """Heuristic role of a geometry layer."""
    ROUTE_LINE = "route_line"
    SERVICE_AREA = "service_area"
    POINT_OF_INTEREST = "point_of_interest"


class LayerInfo(BaseModel):
    """Model for a stored geometry layer."""
    name: str
    role: LayerRole
    feature_count: int
    visible: bool


class TripPath(BaseModel):
    """Model for the rendered trail of one active trip."""
    trip_id: str
    route_id: Optional[str] = None
    position: List[float]  # [longitude, latitude]
    fraction: float
    points: List[List[float]]  # List of [longitude, latitude] coordinates
    style: Dict[str, Any]


class LiveFrame(BaseModel):
    """Model for the most recently reconciled frame."""
    current_time: float
    trips: List[TripPath]
    visible_layers: List[str]
