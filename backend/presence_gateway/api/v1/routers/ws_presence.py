import logging
from fastapi import APIRouter, WebSocket
from starlette.websockets import WebSocketDisconnect

logger = logging.getLogger("uvicorn.error")

router = APIRouter()


@router.websocket("/ws")
async def ws_presence(ws: WebSocket):
    """
    WebSocket endpoint for presence and notification delivery.

    Message flow:
    1. Client connects to WebSocket (no session yet)
    2. Client sends: {"type": "identify", "userId": "..."}
    3. Server registers the session, marks the user online and sends:
       {"type": "identify_ack", "serverTime": ...}
    4. Client sends {"type": "heartbeat"} periodically; server answers
       {"type": "pong", "serverTime": ...} every time
    5. Server pushes {"type": "notification", ...} frames to the current owner

    Args:
        ws: WebSocket connection object

    Note:
        Frames are handled one at a time in arrival order. A bad frame is dropped
        without closing the connection. On disconnect or transport error the
        session owned by this connection (if any) is removed and marked offline.
    """
    gateway = getattr(ws.app.state, "gateway", None)
    if gateway is None:
        await ws.close(code=1011)  # Gateway not initialised
        return
    await ws.accept()
    logger.debug("[ws_presence] connected")
    try:
        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                break
            # Binary frames are decoded like text; the decoder drops what isn't JSON
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            if raw is None:
                continue
            await gateway.handle_frame(ws, raw)
    except WebSocketDisconnect:
        logger.debug("[ws_presence] disconnected")
    except Exception as e:
        logger.warning("[ws_presence] transport error: %r", e)
    finally:
        await gateway.disconnect(ws)
