from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from .exceptions import ReplayError
from .models.config import Settings
from .routers import feed, layers, playback
from .services.engine import PlaybackEngine
from .services.redis_service import RedisService
from .services.scheduler import FrameScheduler

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings.from_env()
    cache = RedisService(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password,
    )
    engine = PlaybackEngine(settings=settings, cache=cache)
    engine.restore_from_cache()

    if settings.feed_url:
        try:
            engine.fetch_feed(settings.feed_url)
        except ReplayError as e:
            logger.error(f"Could not load startup feed: {str(e)}")

    app.state.engine = engine
    scheduler = FrameScheduler(engine, interval=settings.frame_interval)
    scheduler.start()
    try:
        yield
    finally:
        await scheduler.stop()


app = FastAPI(title="Trip Replay API", lifespan=lifespan)

# Disable CORS. Do not remove this for full-stack development.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allows all origins
    allow_credentials=True,
    allow_methods=["*"],  # Allows all methods
    allow_headers=["*"],  # Allows all headers
)

app.include_router(playback.router)
app.include_router(feed.router)
app.include_router(layers.router)

@app.get("/healthz")
async def healthz():
    return {"status": "ok"}

@app.get("/")
async def root():
    return {
        "message": "Trip Replay API",
        "docs": "/docs",
        "endpoints": [
            "/api/playback",
            "/api/live",
            "/api/feed",
            "/api/layers"
        ]
    }
