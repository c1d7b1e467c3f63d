# presence_gateway/api/v1/routers/presence.py
from fastapi import APIRouter, Depends
from presence_gateway.api.v1.deps import get_gateway
from presence_gateway.core.gateway import PresenceGateway
from presence_gateway.schemas.presence import OnlineUsersOut, PresenceOut

router = APIRouter(prefix="/presence", tags=["presence"])


@router.get("")
async def list_online(gateway: PresenceGateway = Depends(get_gateway)):
    """List user ids that currently hold a live session on this gateway."""
    users = gateway.registry.online_user_ids()
    return {"success": True, "data": OnlineUsersOut(users=users, count=len(users)).model_dump()}


@router.get("/{user_id}")
async def get_presence(user_id: str, gateway: PresenceGateway = Depends(get_gateway)):
    """
    Report whether a user is online.

    Online means the user has a session in the registry, i.e. identified and
    not yet closed or evicted by the heartbeat sweep.
    """
    online = gateway.registry.is_online(user_id)
    return {"success": True, "data": PresenceOut(userId=user_id, online=online).model_dump()}
