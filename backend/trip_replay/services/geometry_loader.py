import json
import logging
from collections import Counter
from typing import Any, Dict, List, Mapping, Tuple, Union

from shapely.geometry import shape
from shapely.geometry.base import BaseGeometry

from ..exceptions import GeometryLoadError
from ..models.render import LayerRole
from .geometry_store import GeometryLayer

logger = logging.getLogger(__name__)

ROUTE_NAME_HINTS = ("route", "line", "shape", "track", "rail", "bus")
AREA_NAME_HINTS = ("area", "zone", "boundary", "polygon", "service")
POINT_NAME_HINTS = ("stop", "station", "poi", "point")

ROLE_BY_GEOMETRY_TYPE = {
    "LineString": LayerRole.ROUTE_LINE,
    "MultiLineString": LayerRole.ROUTE_LINE,
    "Polygon": LayerRole.SERVICE_AREA,
    "MultiPolygon": LayerRole.SERVICE_AREA,
    "Point": LayerRole.POINT_OF_INTEREST,
    "MultiPoint": LayerRole.POINT_OF_INTEREST,
}


def classify_layer(name: str, geometries: List[BaseGeometry]) -> LayerRole:
    """Infer a layer's role.

    A layer holding a single kind of geometry takes that kind's role. Mixed
    or empty layers are classified by name, checking the narrower stop and
    area hints before route hints ("Bus stops" is a point layer), and
    finally by their most common geometry kind.
    """
    counts = Counter(
        ROLE_BY_GEOMETRY_TYPE[geom.geom_type]
        for geom in geometries
        if geom.geom_type in ROLE_BY_GEOMETRY_TYPE
    )
    if len(counts) == 1:
        return next(iter(counts))

    lowered = name.lower()
    if any(hint in lowered for hint in POINT_NAME_HINTS):
        return LayerRole.POINT_OF_INTEREST
    if any(hint in lowered for hint in AREA_NAME_HINTS):
        return LayerRole.SERVICE_AREA
    if any(hint in lowered for hint in ROUTE_NAME_HINTS):
        return LayerRole.ROUTE_LINE

    if not counts:
        return LayerRole.POINT_OF_INTEREST
    return counts.most_common(1)[0][0]


def _features_of(document: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    doc_type = document.get("type")
    if doc_type == "FeatureCollection":
        features = document.get("features")
        if not isinstance(features, list):
            raise GeometryLoadError("FeatureCollection has no 'features' list")
        return features
    if doc_type == "Feature":
        return [document]
    if "coordinates" in document or doc_type == "GeometryCollection":
        return [{"type": "Feature", "properties": {}, "geometry": document}]
    raise GeometryLoadError(f"Unsupported GeoJSON type: {doc_type!r}")


def parse_layer(name: str, document: Mapping[str, Any]) -> GeometryLayer:
    """Parse a single GeoJSON document into a geometry layer."""
    if not isinstance(document, Mapping):
        raise GeometryLoadError(f"Layer {name!r} is not a GeoJSON object")

    features: List[Tuple[Dict[str, Any], BaseGeometry]] = []
    for feature in _features_of(document):
        geometry_doc = feature.get("geometry") if isinstance(feature, Mapping) else None
        if not geometry_doc:
            logger.debug("Skipping feature without geometry in layer %s", name)
            continue
        try:
            geometry = shape(geometry_doc)
        except Exception as e:
            raise GeometryLoadError(f"Invalid geometry in layer {name!r}: {str(e)}") from e
        properties = feature.get("properties") or {}
        features.append((dict(properties), geometry))

    role = classify_layer(name, [geometry for _, geometry in features])
    return GeometryLayer(name=name, role=role, features=features, document=dict(document))


def parse_layers(payload: Union[str, bytes, Mapping[str, Any]]) -> List[GeometryLayer]:
    """Parse a mapping of layer name -> GeoJSON into geometry layers.

    The whole payload fails if any layer is malformed.
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError as e:
            raise GeometryLoadError(f"Geometry document is not valid JSON: {str(e)}") from e

    if not isinstance(payload, Mapping):
        raise GeometryLoadError("Geometry document must map layer names to GeoJSON")

    layers = [parse_layer(str(name), document) for name, document in payload.items()]
    logger.info("Parsed %d geometry layers", len(layers))
    return layers
