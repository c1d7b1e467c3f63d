# presence_gateway/schemas/notification.py
"""
Pydantic schemas for the notification push endpoint.
"""
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict


class NotificationIn(BaseModel):
    """
    Request body for pushing a notification to a user.
    Extra fields are kept and forwarded inside the notification envelope.
    """
    model_config = ConfigDict(extra="allow")

    title: Optional[str] = None  # Short headline shown by the client
    message: str  # Notification body text
    link: Optional[str] = None  # Optional client route to open
    meta: Optional[Dict[str, Any]] = None  # Free-form metadata (e.g. {"type": "file", "fileId": 3})

    def to_payload(self) -> Dict[str, Any]:
        """Payload fields for the envelope; unset optional fields are omitted."""
        return self.model_dump(exclude_none=True)


class DeliveryOut(BaseModel):
    delivered: bool  # False when the user has no open connection or the write failed
