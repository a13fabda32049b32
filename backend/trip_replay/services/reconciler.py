"""
Per-frame reconciliation of rendered trip paths against the active trip set.
"""
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple

from shapely.errors import ShapelyError

from .resolver import TripPosition

logger = logging.getLogger(__name__)

Coordinate = Tuple[float, float]

DEFAULT_TRAIL_STYLE = {"color": "#e11d48", "width": 3.0, "opacity": 0.9}


class RenderSurface(Protocol):
    """Map surface the reconciler draws on."""

    def add_path(self, name: str, points: List[Coordinate], style: Dict[str, Any]) -> Any: ...

    def update_path(self, handle: Any, points: List[Coordinate]) -> None: ...

    def remove_path(self, handle: Any) -> None: ...

    def add_layer(self, name: str, document: Dict[str, Any]) -> None: ...

    def remove_layer(self, name: str) -> None: ...


@dataclass
class SurfacePath:
    """Path object held by ``SnapshotSurface``."""
    handle_id: int
    name: str
    points: List[Coordinate]
    style: Dict[str, Any]


class SnapshotSurface:
    """In-memory render surface whose contents the HTTP API serves."""

    def __init__(self):
        self.paths: Dict[int, SurfacePath] = {}
        self.layers: Dict[str, Dict[str, Any]] = {}
        self._ids = itertools.count(1)
        self.operations = {"add": 0, "update": 0, "remove": 0}

    def add_path(self, name: str, points: List[Coordinate], style: Dict[str, Any]) -> SurfacePath:
        path = SurfacePath(handle_id=next(self._ids), name=name, points=list(points), style=dict(style))
        self.paths[path.handle_id] = path
        self.operations["add"] += 1
        return path

    def update_path(self, handle: SurfacePath, points: List[Coordinate]) -> None:
        handle.points = list(points)
        self.operations["update"] += 1

    def remove_path(self, handle: SurfacePath) -> None:
        self.paths.pop(handle.handle_id, None)
        self.operations["remove"] += 1

    def add_layer(self, name: str, document: Dict[str, Any]) -> None:
        self.layers[name] = document

    def remove_layer(self, name: str) -> None:
        self.layers.pop(name, None)


@dataclass
class RenderedTripPath:
    """Rendered trail of one active trip."""
    trip_id: str
    points: List[Coordinate]
    handle: Any
    route_id: Optional[str] = None
    position: Coordinate = (0.0, 0.0)
    fraction: float = 0.0


@dataclass
class ReconcileStats:
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    retired: int = 0
    failed: List[str] = field(default_factory=list)


def trail_points(position: TripPosition) -> List[Coordinate]:
    """Coordinates of the already-traveled part of the route."""
    trail = position.trail()
    if trail.is_empty:
        return []
    if trail.geom_type == "Point":
        # Zero distance traveled: a degenerate two-point path at the origin.
        return [(trail.x, trail.y), (trail.x, trail.y)]
    return [(x, y) for x, y, *_ in trail.coords]


class LiveLayerReconciler:
    """Keeps exactly one rendered path per active trip id.

    Each frame: create paths for new trips, update existing ones in place
    when their points changed, then retire every tracked trip that was not
    in the frame.
    """

    def __init__(self, surface: RenderSurface, style: Optional[Dict[str, Any]] = None):
        self.surface = surface
        self.style = dict(style or DEFAULT_TRAIL_STYLE)
        self._paths: Dict[str, RenderedTripPath] = {}

    def reconcile(self, positions: Mapping[str, TripPosition]) -> ReconcileStats:
        stats = ReconcileStats()
        active = set()

        for trip_id, position in positions.items():
            try:
                points = trail_points(position)
            except (ShapelyError, ValueError) as e:
                logger.debug("Could not slice route for trip %s: %s", trip_id, str(e))
                stats.failed.append(trip_id)
                continue
            if not points:
                stats.failed.append(trip_id)
                continue

            active.add(trip_id)
            rendered = self._paths.get(trip_id)
            if rendered is None:
                handle = self.surface.add_path(trip_id, points, self.style)
                rendered = RenderedTripPath(trip_id=trip_id, points=points, handle=handle)
                self._paths[trip_id] = rendered
                stats.created += 1
            elif rendered.points != points:
                self.surface.update_path(rendered.handle, points)
                rendered.points = points
                stats.updated += 1
            else:
                stats.unchanged += 1

            rendered.route_id = position.route_id
            rendered.position = (position.point.x, position.point.y)
            rendered.fraction = position.fraction

        for trip_id in [trip_id for trip_id in self._paths if trip_id not in active]:
            rendered = self._paths.pop(trip_id)
            self.surface.remove_path(rendered.handle)
            stats.retired += 1

        logger.debug(
            "Reconciled frame: %d created, %d updated, %d unchanged, %d retired",
            stats.created, stats.updated, stats.unchanged, stats.retired,
        )
        return stats

    def clear(self) -> None:
        """Retire every tracked path."""
        self.reconcile({})

    def get(self, trip_id: str) -> Optional[RenderedTripPath]:
        return self._paths.get(trip_id)

    def paths(self) -> List[RenderedTripPath]:
        return list(self._paths.values())

    def tracked_ids(self) -> List[str]:
        return list(self._paths)
