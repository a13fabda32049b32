from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_engine
from ..exceptions import PlaybackError
from ..models.playback import PlaybackState, SpeedRequest, TimeRequest
from ..models.render import LiveFrame
from ..services.engine import PlaybackEngine

router = APIRouter(prefix="/api", tags=["playback"])


@router.get("/playback", response_model=PlaybackState)
async def get_playback(engine: PlaybackEngine = Depends(get_engine)):
    """Current clock time, bounds, play state and speed."""
    return engine.clock.state()


@router.post("/playback/toggle", response_model=PlaybackState)
async def toggle_playback(engine: PlaybackEngine = Depends(get_engine)):
    """Switch between playing and paused."""
    engine.clock.toggle_play()
    return engine.clock.state()


@router.post("/playback/speed", response_model=PlaybackState)
async def set_speed(request: SpeedRequest, engine: PlaybackEngine = Depends(get_engine)):
    try:
        engine.clock.set_speed(request.multiplier)
    except PlaybackError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return engine.clock.state()


@router.post("/playback/time", response_model=PlaybackState)
async def set_time(request: TimeRequest, engine: PlaybackEngine = Depends(get_engine)):
    """Scrub to a timestamp and render a frame there right away."""
    try:
        engine.clock.set_time(request.time)
    except PlaybackError as e:
        raise HTTPException(status_code=400, detail=str(e))
    engine.render_frame(0.0)
    return engine.clock.state()


@router.get("/live", response_model=LiveFrame)
async def get_live_frame(engine: PlaybackEngine = Depends(get_engine)):
    """Rendered trail of every active trip as of the last frame."""
    return engine.live_frame()
