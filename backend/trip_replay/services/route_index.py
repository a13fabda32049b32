import math
import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from shapely.geometry.base import BaseGeometry

logger = logging.getLogger(__name__)

LINE_GEOMETRY_TYPES = ("LineString", "MultiLineString")


def normalize_route_id(value: Any) -> Optional[str]:
    """Normalize a raw route identifier to its string key.

    Numeric and string forms of the same id map to the same key, so
    ``12``, ``12.0`` and ``" 12 "`` all become ``"12"``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        if value.is_integer():
            return str(int(value))
        return str(value)
    text = str(value).strip()
    return text or None


def select_line_geometry(geometry: Optional[BaseGeometry]) -> Optional[BaseGeometry]:
    """Pick the representative line geometry of a stored entry.

    Single and multi-part lines are returned as-is. For a mixed collection
    the first line member wins and everything else is ignored.
    """
    if geometry is None or geometry.is_empty:
        return None
    if geometry.geom_type in LINE_GEOMETRY_TYPES:
        return geometry
    if geometry.geom_type == "GeometryCollection":
        for member in geometry.geoms:
            selected = select_line_geometry(member)
            if selected is not None:
                return selected
    return None


class RouteIndex:
    """Immutable route id -> line geometry lookup table.

    Built in full from a geometry set and never mutated afterwards; callers
    rebuild and swap in a new instance when the geometry set changes. When
    two geometries claim the same id the one built later wins.
    """

    def __init__(self, entries: Optional[Dict[str, BaseGeometry]] = None, duplicate_ids: int = 0):
        self._entries: Dict[str, BaseGeometry] = dict(entries or {})
        self.duplicate_ids = duplicate_ids

    @classmethod
    def build(cls, geometries: Iterable[Tuple[Iterable[Any], BaseGeometry]]) -> "RouteIndex":
        """Build an index from ``(raw_id_candidates, geometry)`` pairs."""
        entries: Dict[str, BaseGeometry] = {}
        duplicates = 0
        skipped = 0

        for candidates, geometry in geometries:
            line = select_line_geometry(geometry)
            if line is None:
                skipped += 1
                continue

            keys: List[str] = []
            for raw in candidates:
                key = normalize_route_id(raw)
                if key is not None and key not in keys:
                    keys.append(key)

            for key in keys:
                existing = entries.get(key)
                if existing is not None and existing is not line:
                    duplicates += 1
                    logger.warning("Route id %r is claimed by more than one geometry; keeping the last one", key)
                entries[key] = line

        logger.info(
            "Built route index with %d identifiers (%d duplicates, %d non-line geometries skipped)",
            len(entries), duplicates, skipped,
        )
        return cls(entries, duplicate_ids=duplicates)

    def lookup(self, route_id: Any) -> Optional[BaseGeometry]:
        """Strict lookup; returns None when the id is unknown."""
        key = normalize_route_id(route_id)
        if key is None:
            return None
        return self._entries.get(key)

    def identifiers(self) -> List[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, route_id: Any) -> bool:
        return self.lookup(route_id) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)
