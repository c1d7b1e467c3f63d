# presence_gateway/core/gateway.py
"""
Presence gateway: wires the registry, status synchronizer, notification
dispatcher and heartbeat monitor together, and applies inbound frames.

The WebSocket router owns accept/receive/close; this module only decides
what each frame does to the registry and what gets sent back.
"""
import logging
from typing import Any, Optional, Union

from .heartbeat import HeartbeatMonitor
from .protocol import (
    HeartbeatMessage,
    IdentifyMessage,
    ProtocolError,
    decode_message,
    encode_identify_ack,
    encode_pong,
)
from .registry import SessionRegistry
from ..services.account_store import AccountStore
from ..services.notifier import NotificationDispatcher
from ..services.status_sync import StatusSynchronizer

logger = logging.getLogger(__name__)


class PresenceGateway:
    """
    One gateway per application instance (kept on app.state.gateway).

    Args:
        store: Account store receiving online/offline writes
        timeout: Heartbeat timeout in seconds
        interval: Sweep interval in seconds
        sync_timeout: Bound on each account store call in seconds (None = unbounded)
        registry: Optional pre-built registry (tests inject one with a fake clock)
    """

    def __init__(
        self,
        store: AccountStore,
        timeout: float,
        interval: float,
        sync_timeout: Optional[float] = None,
        registry: Optional[SessionRegistry] = None,
    ):
        self.registry = registry if registry is not None else SessionRegistry()
        self.synchronizer = StatusSynchronizer(store, timeout=sync_timeout)
        self.dispatcher = NotificationDispatcher(self.registry)
        self.monitor = HeartbeatMonitor(self.registry, self.synchronizer, timeout=timeout, interval=interval)

    async def handle_frame(self, ws: Any, raw: Union[str, bytes]) -> None:
        """
        Apply one inbound frame from ws.

        Malformed frames are dropped and unknown kinds ignored; neither
        raises, so the caller's receive loop keeps the connection open.
        """
        try:
            msg = decode_message(raw)
        except ProtocolError as e:
            logger.debug("[presence] dropped malformed frame: %s", e)
            return

        if isinstance(msg, IdentifyMessage):
            await self.identify(ws, msg.user_id)
        elif isinstance(msg, HeartbeatMessage):
            await self.heartbeat(ws)

    async def identify(self, ws: Any, user_id: str) -> None:
        """Register ws as user_id's connection, mark online, then acknowledge."""
        self.registry.upsert(user_id, ws)
        logger.info("[presence] %s identified (%d online)", user_id, len(self.registry))
        outcome = await self.synchronizer.set_status(user_id, True)
        if not outcome:
            logger.warning("[presence] %s is connected but online sync failed: %s", user_id, outcome.error)
        await ws.send_text(encode_identify_ack())

    async def heartbeat(self, ws: Any) -> None:
        """Refresh the session owned by ws (if any) and always answer with a pong."""
        if not self.registry.touch(ws):
            logger.debug("[presence] heartbeat from unidentified connection")
        await ws.send_text(encode_pong())

    async def disconnect(self, ws: Any) -> Optional[str]:
        """
        Transport close/error for ws.

        Returns:
            The user id whose session ws owned, or None if ws owned nothing
            (never identified, superseded, or already evicted).
        """
        user_id = self.registry.remove_by_connection(ws)
        if user_id is None:
            return None
        logger.info("[presence] %s disconnected (%d online)", user_id, len(self.registry))
        outcome = await self.synchronizer.set_status(user_id, False)
        if not outcome:
            logger.warning("[presence] %s is gone but offline sync failed: %s", user_id, outcome.error)
        return user_id

    async def deliver(self, user_id: str, payload: dict) -> bool:
        return await self.dispatcher.deliver(user_id, payload)
