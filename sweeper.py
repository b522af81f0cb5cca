import asyncio
from typing import Optional

from constants import ROOM_EXPIRY_SECONDS, SWEEP_INTERVAL_SECONDS
from logging_config import get_logger

logger = get_logger(__name__)


class ExpirySweeper:
    """Periodically reclaims rooms that have been empty and idle past the threshold.

    Reclamation is best-effort: a room may outlive `max_idle_seconds` by up to
    one `interval_seconds`.
    """

    def __init__(self, registry, interval_seconds: float = SWEEP_INTERVAL_SECONDS,
                 max_idle_seconds: float = ROOM_EXPIRY_SECONDS):
        self.registry = registry
        self.interval_seconds = interval_seconds
        self.max_idle_seconds = max_idle_seconds
        self._task: Optional[asyncio.Task] = None

    def start(self):
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())
            logger.info(f"Expiry sweeper started (interval={self.interval_seconds}s, "
                        f"threshold={self.max_idle_seconds}s)")

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Expiry sweeper stopped")

    async def sweep_once(self):
        expired = await self.registry.sweep_expired(self.max_idle_seconds)
        if expired:
            logger.info(f"Expiry sweep removed {len(expired)} rooms")
        return expired

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.sweep_once()
            except Exception as e:
                logger.error(f"Error during expiry sweep: {e}", exc_info=True)
