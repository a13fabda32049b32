from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool

from ..dependencies import get_engine
from ..exceptions import FeedFetchError, FeedParseError
from ..models.config import FetchRequest
from ..models.trips import FeedSummary
from ..services.engine import PlaybackEngine
from ..services.feed_service import fetch_feed as download_feed

router = APIRouter(prefix="/api/feed", tags=["feed"])


@router.post("", response_model=FeedSummary)
async def load_feed(
    document: Dict[str, Any] = Body(...),
    engine: PlaybackEngine = Depends(get_engine)
):
    """Replace the loaded trips with a feed document."""
    try:
        summary = engine.load_feed(document)
    except FeedParseError as e:
        raise HTTPException(status_code=400, detail=f"Invalid feed: {str(e)}")
    engine.render_frame(0.0)
    return summary


@router.post("/fetch", response_model=FeedSummary)
async def fetch_feed(
    request: FetchRequest,
    engine: PlaybackEngine = Depends(get_engine)
):
    """Download a feed document and load it.

    The download runs in a worker thread so frames keep rendering while it
    is in flight; the engine itself is only touched back on the event loop.
    """
    try:
        content = await run_in_threadpool(download_feed, request.url, engine.settings.fetch_timeout)
    except FeedFetchError as e:
        raise HTTPException(status_code=502, detail=str(e))
    try:
        summary = engine.load_feed(content)
    except FeedParseError as e:
        raise HTTPException(status_code=400, detail=f"Invalid feed: {str(e)}")
    engine.render_frame(0.0)
    return summary


@router.get("", response_model=FeedSummary)
async def get_feed(engine: PlaybackEngine = Depends(get_engine)):
    if engine.feed_summary is None:
        raise HTTPException(status_code=404, detail="No feed loaded")
    return engine.feed_summary
