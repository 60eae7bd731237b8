"""Periodic housekeeping for in-memory state.

Every interval the scheduler drops expired cache entries and prunes the
moderation log to its retention window. Handles its own lifecycle
(start/shutdown) and logs failures without stopping the loop.
"""

from __future__ import annotations

import asyncio

from tonecord.cache.cache_backend import MemoryTTLCache
from tonecord.moderation.moderation_log import ModerationLog
from tonecord.util.logger import get_logger

logger = get_logger("maintenance_scheduler")

DEFAULT_INTERVAL_SECONDS = 3600.0


class MaintenanceScheduler:
    """
    Background task pruning the TTL cache and the moderation log.

    Args:
        cache: Cache whose expired entries are purged.
        moderation_log: Log pruned to ``retention_days``.
        retention_days: Age after which log entries are dropped.
        interval: Seconds between two runs.
    """

    def __init__(
        self,
        cache: MemoryTTLCache,
        moderation_log: ModerationLog,
        retention_days: int = 30,
        interval: float = DEFAULT_INTERVAL_SECONDS,
    ) -> None:
        self._cache = cache
        self._moderation_log = moderation_log
        self._retention_days = retention_days
        self._interval = interval
        self._task: asyncio.Task | None = None

    def run_once(self) -> tuple[int, int]:
        """Run one housekeeping pass and return (purged cache keys, pruned log entries)."""
        purged = self._cache.purge_expired()
        pruned = self._moderation_log.prune(self._retention_days)
        if purged:
            logger.debug("[MAINTENANCE] Purged %d expired cache entries", purged)
        return purged, pruned

    async def _run_loop(self) -> None:
        logger.info("[MAINTENANCE] Starting housekeeping (interval=%.1fs)", self._interval)
        try:
            while True:
                try:
                    self.run_once()
                except Exception as exc:
                    logger.error("[MAINTENANCE] Unexpected error during housekeeping: %s", exc)
                await asyncio.sleep(self._interval)
        except asyncio.CancelledError:
            logger.info("[MAINTENANCE] Housekeeping cancelled")
            raise

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the background task if not already running."""
        if self.running:
            logger.warning("[MAINTENANCE] Housekeeping task already running")
            return
        self._task = asyncio.create_task(self._run_loop(), name="tonecord-maintenance")

    async def shutdown(self) -> None:
        """Stop the task and wait for it to finish."""
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("[MAINTENANCE] Scheduler shutdown complete")
