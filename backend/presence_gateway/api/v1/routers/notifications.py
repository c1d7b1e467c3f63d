# presence_gateway/api/v1/routers/notifications.py
from fastapi import APIRouter, Depends
from presence_gateway.api.v1.deps import get_gateway
from presence_gateway.core.gateway import PresenceGateway
from presence_gateway.schemas.notification import DeliveryOut, NotificationIn

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.post("/{user_id}")
async def push_notification(
    user_id: str,
    body: NotificationIn,
    gateway: PresenceGateway = Depends(get_gateway),
):
    """
    Push a notification to a user's live connection.

    Delivery is best-effort: the notification is written once to the connection
    the user currently owns, or dropped if there is none. Nothing is stored or
    retried, so callers that need durability persist the notification themselves.

    Args:
        user_id: Target user identity (the userId the client identified with)
        body: Notification payload (title, message, link, meta, extra fields)
        gateway: Presence gateway (from dependency)

    Returns:
        dict: {"success": True, "data": {"delivered": bool}}
    """
    delivered = await gateway.deliver(user_id, body.to_payload())
    return {"success": True, "data": DeliveryOut(delivered=delivered).model_dump()}
