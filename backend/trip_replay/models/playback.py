from pydantic import BaseModel, Field


class PlaybackState(BaseModel):
    """Observable playback clock state."""
    current_time: float
    min_time: float
    max_time: float
    playing: bool
    speed_multiplier: float


class SpeedRequest(BaseModel):
    """Request model for changing the playback speed."""
    multiplier: float = Field(..., description="Speed multiplier, must be positive")


class TimeRequest(BaseModel):
    """Request model for scrubbing to a timestamp."""
    time: float = Field(..., description="Epoch seconds, clamped into the feed bounds")
