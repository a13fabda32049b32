from pydantic import BaseModel, Field
from typing import Optional
import os


class Settings(BaseModel):
    """Runtime configuration for the replay service."""
    base_rate: float = Field(60.0, gt=0, description="Data seconds advanced per wall second at speed 1")
    frame_interval: float = Field(0.1, gt=0, description="Seconds between scheduled frames")
    feed_url: Optional[str] = Field(None, description="Feed document to load on startup")
    fetch_timeout: float = Field(10.0, gt=0)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    trail_color: str = "#e11d48"
    trail_width: float = 3.0

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from REPLAY_* and REDIS_* environment variables."""
        values = {
            "base_rate": os.getenv("REPLAY_BASE_RATE"),
            "frame_interval": os.getenv("REPLAY_FRAME_INTERVAL"),
            "feed_url": os.getenv("REPLAY_FEED_URL"),
            "fetch_timeout": os.getenv("REPLAY_FETCH_TIMEOUT"),
            "redis_host": os.getenv("REDIS_HOST"),
            "redis_port": os.getenv("REDIS_PORT"),
            "redis_password": os.getenv("REDIS_PASSWORD"),
            "trail_color": os.getenv("REPLAY_TRAIL_STYLE_COLOR"),
            "trail_width": os.getenv("REPLAY_TRAIL_STYLE_WIDTH"),
        }
        return cls.model_validate({k: v for k, v in values.items() if v is not None})


class FetchRequest(BaseModel):
    """Request model for loading a feed from a URL."""
    url: str = Field(..., min_length=1, description="Feed document URL")
