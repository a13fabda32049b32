import math
import logging

from ..exceptions import PlaybackError
from ..models.playback import PlaybackState

logger = logging.getLogger(__name__)

DEFAULT_BASE_RATE = 60.0  # data seconds per wall second at speed 1


class PlaybackClock:
    """Simulated playback clock.

    Advances only when ``tick`` is called while playing. Overrunning
    ``max_time`` loops back to exactly ``min_time``; the overflow is dropped.
    """

    def __init__(self, base_rate: float = DEFAULT_BASE_RATE, min_time: float = 0.0, max_time: float = 0.0):
        self.base_rate = base_rate
        self.min_time = float(min_time)
        self.max_time = float(max_time)
        self.current_time = self.min_time
        self.playing = False
        self.speed_multiplier = 1.0

    def set_bounds(self, min_time: float, max_time: float) -> None:
        """Install the bounds of a newly loaded feed and rewind to its start."""
        if min_time > max_time:
            raise PlaybackError(f"Invalid playback bounds: {min_time} > {max_time}")
        self.min_time = float(min_time)
        self.max_time = float(max_time)
        self.current_time = self.min_time
        logger.info("Playback bounds set to %s..%s", self.min_time, self.max_time)

    def tick(self, elapsed_wall_seconds: float) -> float:
        """Advance by a wall-clock delta scaled by base rate and speed."""
        if not self.playing:
            return self.current_time

        self.current_time += elapsed_wall_seconds * self.base_rate * self.speed_multiplier
        if self.current_time > self.max_time:
            logger.debug("Playback passed %s, looping to %s", self.max_time, self.min_time)
            self.current_time = self.min_time
        return self.current_time

    def toggle_play(self) -> bool:
        self.playing = not self.playing
        logger.info("Playback %s", "started" if self.playing else "paused")
        return self.playing

    def set_speed(self, multiplier: float) -> None:
        if not math.isfinite(multiplier) or multiplier <= 0:
            raise PlaybackError(f"Speed multiplier must be a positive number, got {multiplier}")
        self.speed_multiplier = float(multiplier)

    def set_time(self, timestamp: float) -> float:
        """Scrub to ``timestamp``, clamped into the playback bounds."""
        if math.isnan(timestamp):
            raise PlaybackError("Cannot scrub to NaN")
        self.current_time = min(max(float(timestamp), self.min_time), self.max_time)
        return self.current_time

    def state(self) -> PlaybackState:
        return PlaybackState(
            current_time=self.current_time,
            min_time=self.min_time,
            max_time=self.max_time,
            playing=self.playing,
            speed_multiplier=self.speed_multiplier,
        )
