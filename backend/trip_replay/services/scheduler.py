import asyncio
import logging
from typing import Optional

from .engine import PlaybackEngine

logger = logging.getLogger(__name__)


class FrameScheduler:
    """Runs ``engine.render_frame`` at a fixed interval on the event loop.

    Each frame runs to completion before the next sleep, so frames never
    overlap. Stopping cancels the loop between frames.
    """

    def __init__(self, engine: PlaybackEngine, interval: float = 0.1):
        self.engine = engine
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("Frame scheduler started (interval %.3fs)", self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Frame scheduler stopped")

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        last = loop.time()
        while True:
            await asyncio.sleep(self.interval)
            now = loop.time()
            try:
                self.engine.render_frame(now - last)
            except Exception as e:
                logger.error(f"Error rendering frame: {str(e)}")
            last = now
