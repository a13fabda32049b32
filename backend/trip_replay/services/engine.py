import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..exceptions import ReplayError
from ..models.config import Settings
from ..models.render import LayerInfo, LiveFrame, TripPath
from ..models.trips import FeedSummary, TripSchedule
from .clock import PlaybackClock
from .feed_service import fetch_feed, parse_feed
from .geometry_loader import parse_layers
from .geometry_store import GeometryStore
from .reconciler import LiveLayerReconciler, ReconcileStats, RenderSurface, SnapshotSurface
from .redis_service import RedisService
from .resolver import TripPosition, resolve
from .route_index import RouteIndex

logger = logging.getLogger(__name__)

Document = Union[str, bytes, Mapping[str, Any]]


class PlaybackEngine:
    """Wires geometry, feed, clock and reconciler into a frame loop."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        surface: Optional[RenderSurface] = None,
        cache: Optional[RedisService] = None,
    ):
        self.settings = settings or Settings()
        self.cache = cache
        self.geometry_store = GeometryStore()
        self.route_index = RouteIndex()
        self.clock = PlaybackClock(base_rate=self.settings.base_rate)
        self.surface = surface if surface is not None else SnapshotSurface()
        self.reconciler = LiveLayerReconciler(
            self.surface,
            style={"color": self.settings.trail_color, "width": self.settings.trail_width},
        )
        self.trips: Tuple[TripSchedule, ...] = ()
        self.feed_summary: Optional[FeedSummary] = None
        self.geometry_store.add_listener(self._rebuild_index)

    def _rebuild_index(self, store: GeometryStore) -> None:
        # Built off to the side, then swapped in whole.
        self.route_index = RouteIndex.build(store.route_candidates())

    def load_geometry(self, payload: Document, cache: bool = True) -> List[LayerInfo]:
        """Load named GeoJSON layers; malformed input leaves state untouched."""
        layers = parse_layers(payload)
        self.geometry_store.load(layers)
        for layer in layers:
            if layer.visible:
                self.surface.add_layer(layer.name, layer.document)

        if cache and self.cache is not None:
            self.cache.store_layers({layer.name: layer.document for layer in layers})
        return [layer.info() for layer in layers]

    def layers(self) -> List[LayerInfo]:
        return [layer.info() for layer in self.geometry_store.layers()]

    def toggle_layer(self, name: str) -> LayerInfo:
        """Flip a layer's visibility and tell the surface to add or remove it."""
        layer = self.geometry_store.get(name)
        if layer is None:
            raise KeyError(name)

        layer = self.geometry_store.set_visible(name, not layer.visible)
        if layer.visible:
            self.surface.add_layer(layer.name, layer.document)
        else:
            self.surface.remove_layer(layer.name)
        return layer.info()

    def load_feed(self, payload: Document, cache: bool = True) -> FeedSummary:
        """Replace the loaded trips wholesale and reset the clock bounds."""
        feed = parse_feed(payload)
        min_time, max_time = feed.bounds() or (0, 0)

        self.trips = tuple(feed.trips)
        self.clock.set_bounds(min_time, max_time)
        self.feed_summary = FeedSummary(
            trip_count=len(feed.trips),
            min_time=min_time,
            max_time=max_time,
            skipped_entities=feed.skipped_entities,
            skipped_events=feed.skipped_events,
        )

        if cache and self.cache is not None:
            self.cache.store_feed(feed.document)
        return self.feed_summary

    def fetch_feed(self, url: str) -> FeedSummary:
        return self.load_feed(fetch_feed(url, timeout=self.settings.fetch_timeout))

    def restore_from_cache(self) -> None:
        """Reload the last feed and geometry documents from the cache."""
        if self.cache is None or not self.cache.available:
            return

        layers = self.cache.get_layers()
        if layers:
            try:
                self.load_geometry(layers, cache=False)
                logger.info("Restored %d geometry layers from cache", len(layers))
            except ReplayError as e:
                logger.warning(f"Ignoring cached geometry layers: {str(e)}")

        feed = self.cache.get_feed()
        if feed:
            try:
                self.load_feed(feed, cache=False)
                logger.info("Restored feed from cache")
            except ReplayError as e:
                logger.warning(f"Ignoring cached feed: {str(e)}")

    def resolve_frame(self, clock_value: float) -> Dict[str, TripPosition]:
        """Resolve every loaded trip at ``clock_value``; inactive trips are absent."""
        index = self.route_index
        positions: Dict[str, TripPosition] = {}

        for trip in self.trips:
            geometry = index.lookup(trip.route_id)
            if geometry is None:
                continue
            try:
                position = resolve(trip, geometry, clock_value)
            except Exception as e:
                logger.error(f"Error resolving trip {trip.trip_id}: {str(e)}")
                continue
            if position is not None:
                positions[trip.trip_id] = position

        return positions

    def render_frame(self, elapsed_wall_seconds: float = 0.0) -> ReconcileStats:
        """Tick the clock, resolve all trips and reconcile the rendered paths."""
        current_time = self.clock.tick(elapsed_wall_seconds)
        return self.reconciler.reconcile(self.resolve_frame(current_time))

    def live_frame(self) -> LiveFrame:
        trips = [
            TripPath(
                trip_id=rendered.trip_id,
                route_id=rendered.route_id,
                position=list(rendered.position),
                fraction=rendered.fraction,
                points=[list(point) for point in rendered.points],
                style=self.reconciler.style,
            )
            for rendered in self.reconciler.paths()
        ]
        visible = [layer.name for layer in self.geometry_store.layers() if layer.visible]
        return LiveFrame(current_time=self.clock.current_time, trips=trips, visible_layers=visible)
