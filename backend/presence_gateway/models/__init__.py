# presence_gateway/models/__init__.py
"""
Database models module initialization.

Models exported:
- User: account row whose status column mirrors gateway presence
"""
from .user import User, STATUS_OFFLINE, STATUS_ONLINE
