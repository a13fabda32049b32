from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException

from ..dependencies import get_engine
from ..exceptions import GeometryLoadError
from ..models.render import LayerInfo
from ..services.engine import PlaybackEngine

router = APIRouter(prefix="/api/layers", tags=["layers"])


@router.post("", response_model=List[LayerInfo])
async def load_layers(
    layers: Dict[str, Any] = Body(...),
    engine: PlaybackEngine = Depends(get_engine)
):
    """Load named GeoJSON layers and rebuild the route index."""
    try:
        loaded = engine.load_geometry(layers)
    except GeometryLoadError as e:
        raise HTTPException(status_code=400, detail=f"Invalid geometry: {str(e)}")
    engine.render_frame(0.0)
    return loaded


@router.get("", response_model=List[LayerInfo])
async def get_layers(engine: PlaybackEngine = Depends(get_engine)):
    return engine.layers()


@router.post("/{name}/toggle", response_model=LayerInfo)
async def toggle_layer(name: str, engine: PlaybackEngine = Depends(get_engine)):
    """Show or hide a layer on the render surface."""
    try:
        return engine.toggle_layer(name)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown layer: {name}")
