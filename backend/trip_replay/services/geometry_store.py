import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from shapely.geometry.base import BaseGeometry

from ..models.render import LayerInfo, LayerRole

logger = logging.getLogger(__name__)

# Property names that carry a route id across heterogeneous exports.
ROUTE_ID_FIELDS = (
    "route_id", "ROUTE_ID", "routeId", "RouteID",
    "route", "ROUTE", "route_short_name", "shape_id",
    "line", "LINE", "line_id", "ref",
)


@dataclass
class GeometryLayer:
    """A named collection of static geometries."""
    name: str
    role: LayerRole
    features: List[Tuple[Dict[str, Any], BaseGeometry]]
    document: Dict[str, Any] = field(default_factory=dict)
    visible: bool = True

    def info(self) -> LayerInfo:
        return LayerInfo(
            name=self.name,
            role=self.role,
            feature_count=len(self.features),
            visible=self.visible,
        )


class GeometryStore:
    """Holds the loaded geometry layers and announces geometry-set changes."""

    def __init__(self):
        self._layers: Dict[str, GeometryLayer] = {}
        self._listeners: List[Callable[["GeometryStore"], None]] = []

    def add_listener(self, callback: Callable[["GeometryStore"], None]) -> None:
        """Register a callback fired after every geometry-set change."""
        self._listeners.append(callback)

    def _changed(self) -> None:
        for callback in self._listeners:
            callback(self)

    def load(self, layers: Iterable[GeometryLayer]) -> None:
        """Add layers, replacing any existing layer with the same name."""
        layers = list(layers)
        for layer in layers:
            if layer.name in self._layers:
                logger.info("Replacing geometry layer %s", layer.name)
            self._layers[layer.name] = layer
        logger.info("Geometry store now holds %d layers", len(self._layers))
        self._changed()

    def clear(self) -> None:
        self._layers.clear()
        self._changed()

    def get(self, name: str) -> Optional[GeometryLayer]:
        return self._layers.get(name)

    def layers(self) -> List[GeometryLayer]:
        return list(self._layers.values())

    def set_visible(self, name: str, visible: bool) -> GeometryLayer:
        """Change a layer's visibility. Does not touch the geometry set."""
        layer = self._layers[name]
        layer.visible = visible
        return layer

    def route_candidates(self) -> Iterator[Tuple[List[Any], BaseGeometry]]:
        """Yield ``(raw_id_candidates, geometry)`` for every route-line feature."""
        for layer in self._layers.values():
            if layer.role != LayerRole.ROUTE_LINE:
                continue
            for properties, geometry in layer.features:
                candidates = [properties[key] for key in ROUTE_ID_FIELDS if properties.get(key) is not None]
                if candidates:
                    yield candidates, geometry

    def __len__(self) -> int:
        return len(self._layers)
