from fastapi import HTTPException, Request, status
from presence_gateway.core.gateway import PresenceGateway


def get_gateway(request: Request) -> PresenceGateway:
    """
    FastAPI dependency returning the application's presence gateway.

    The gateway is created at startup and stored on app.state, so every
    route and the WebSocket endpoint share one session registry.

    Raises:
        HTTPException (503): If startup has not initialised the gateway (GATEWAY_NOT_READY)

    Usage:
        @router.get("/presence/{user_id}")
        async def presence(user_id: str, gateway: PresenceGateway = Depends(get_gateway)):
            return gateway.registry.is_online(user_id)
    """
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="GATEWAY_NOT_READY")
    return gateway
