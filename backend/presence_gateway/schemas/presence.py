# presence_gateway/schemas/presence.py
"""
Pydantic schemas for presence queries.
"""
from typing import List
from pydantic import BaseModel


class PresenceOut(BaseModel):
    """Online state of one user as seen by this gateway instance."""
    userId: str
    online: bool


class OnlineUsersOut(BaseModel):
    users: List[str]  # User ids with a live session, sorted
    count: int
