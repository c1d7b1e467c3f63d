"""
Notification Dispatcher

Pushes a single notification to the connection a user currently owns.
Delivery is at-most-once and best-effort: nothing is queued or retried,
and every failure is reported as False rather than raised.
"""
import logging
from typing import Any, Dict

from starlette.websockets import WebSocketState

from ..core.protocol import encode_notification
from ..core.registry import SessionRegistry

logger = logging.getLogger(__name__)


def is_open(ws: Any) -> bool:
    """True when both sides of the WebSocket are still connected."""
    return (
        getattr(ws, "application_state", None) == WebSocketState.CONNECTED
        and getattr(ws, "client_state", None) == WebSocketState.CONNECTED
    )


class NotificationDispatcher:
    """Looks up a user's live connection and writes one notification frame"""

    def __init__(self, registry: SessionRegistry):
        self.registry = registry

    async def deliver(self, user_id: str, payload: Dict[str, Any]) -> bool:
        """
        Send payload to user_id inside a notification envelope.

        Returns:
        - True if the frame was written to an open connection
        - False if the user has no session, the connection is closed,
          or the write failed
        """
        ws = self.registry.lookup_connection(user_id)
        if ws is None:
            return False
        if not is_open(ws):
            logger.debug("[notify] %s connection not open, dropping", user_id)
            return False

        try:
            msg = encode_notification(payload)
            await ws.send_text(msg)
        except Exception as e:
            logger.warning("[notify] delivery to %s failed: %r", user_id, e)
            return False
        return True
