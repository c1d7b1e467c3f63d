"""
Status Synchronizer

Translates registry online/offline transitions into account store writes.
The registry transition is authoritative: a failed write is reported as an
outcome and logged, never raised and never rolled back.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from .account_store import AccountStore

logger = logging.getLogger(__name__)


@dataclass
class StatusOutcome:
    """Result of one status write"""
    user_id: str
    is_online: bool
    ok: bool
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.ok


class StatusSynchronizer:
    """Bounded, non-raising wrapper around AccountStore.set_status"""

    def __init__(self, store: AccountStore, timeout: Optional[float] = None):
        self.store = store
        self.timeout = timeout  # Seconds; None waits for the store indefinitely

    async def set_status(self, user_id: str, is_online: bool) -> StatusOutcome:
        """
        Write the status for user_id.

        Returns:
        - StatusOutcome(ok=True) when the store accepted the write
        - StatusOutcome(ok=False, error=...) on any store exception or timeout
        """
        label = "online" if is_online else "offline"
        try:
            await asyncio.wait_for(self.store.set_status(user_id, is_online), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("[status] %s -> %s timed out after %ss (%s store)",
                           user_id, label, self.timeout, self.store.name)
            return StatusOutcome(user_id, is_online, ok=False, error="timeout")
        except Exception as e:
            logger.warning("[status] %s -> %s failed (%s store): %r",
                           user_id, label, self.store.name, e)
            return StatusOutcome(user_id, is_online, ok=False, error=repr(e))

        logger.debug("[status] %s -> %s", user_id, label)
        return StatusOutcome(user_id, is_online, ok=True)
