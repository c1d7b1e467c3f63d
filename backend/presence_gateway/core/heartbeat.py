# presence_gateway/core/heartbeat.py
"""
Heartbeat monitor: periodically evicts sessions whose heartbeat has expired.

Each sweep:
1. snapshot the expired user ids from the registry
2. mark them all offline concurrently through the status synchronizer
3. remove each one as its write finishes, whatever the synchronizer reported,
   unless the user identified or heartbeated again in the meantime

Sweeps never overlap; a sweep requested while one is running is skipped.
"""
import asyncio
import contextlib
import logging
from typing import List, Optional

from .registry import SessionRegistry
from ..services.status_sync import StatusSynchronizer

logger = logging.getLogger("uvicorn.error")


class HeartbeatMonitor:
    """
    Periodic eviction of silent sessions.

    Args:
        registry: Session registry shared with the connection handlers
        synchronizer: Status synchronizer used to mark evicted users offline
        timeout: Seconds without heartbeat before a session expires
        interval: Seconds between sweeps (independent of timeout)
    """

    def __init__(
        self,
        registry: SessionRegistry,
        synchronizer: StatusSynchronizer,
        timeout: float,
        interval: float,
    ):
        self.registry = registry
        self.synchronizer = synchronizer
        self.timeout = timeout
        self.interval = interval
        self._sweep_lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None

    async def sweep(self) -> List[str]:
        """
        Run one eviction pass.

        Offline writes for all expired users run concurrently, so a hung account
        store delays the pass by one sync timeout rather than one per user. Each
        user is removed as soon as its own write finishes.

        Returns:
            User ids removed by this sweep (empty if skipped because another sweep is running).
        """
        if self._sweep_lock.locked():
            logger.warning("[heartbeat] previous sweep still running, skipping tick")
            return []

        async with self._sweep_lock:
            now = self.registry.now()
            expired = self.registry.snapshot_expired(now, self.timeout)
            removed = await asyncio.gather(*(self._evict(user_id, now) for user_id in expired))
            evicted = [user_id for user_id, ok in zip(expired, removed) if ok]
            if evicted:
                logger.info("[heartbeat] evicted %d expired session(s): %s", len(evicted), evicted)
            return evicted

    async def _evict(self, user_id: str, now: float) -> bool:
        outcome = await self.synchronizer.set_status(user_id, False)
        if not outcome:
            logger.warning("[heartbeat] offline sync failed for %s: %s", user_id, outcome.error)
        if self.registry.remove_if_expired(user_id, now, self.timeout):
            return True
        if self.registry.is_online(user_id):
            # Re-identified or heartbeated while the offline write was in flight
            logger.info("[heartbeat] %s is back, restoring online status", user_id)
            await self.synchronizer.set_status(user_id, True)
        return False

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.sweep()
            except Exception:
                logger.exception("[heartbeat] sweep failed")

    def start(self) -> None:
        """Start the periodic sweep task on the running event loop."""
        if self.timeout <= self.interval:
            logger.warning(
                "[heartbeat] timeout (%ss) should be greater than sweep interval (%ss)",
                self.timeout, self.interval,
            )
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.create_task(self._run())
        logger.info("[heartbeat] started: timeout=%ss interval=%ss", self.timeout, self.interval)

    async def stop(self) -> None:
        """Cancel the sweep task and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("[heartbeat] stopped")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
