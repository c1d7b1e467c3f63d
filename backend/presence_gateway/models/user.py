# presence_gateway/models/user.py
"""
Database model for user accounts.
The gateway only reads the username and writes the online status column;
account creation and credentials belong to the account service.
"""
import uuid
from tortoise import fields, models

STATUS_OFFLINE = 0
STATUS_ONLINE = 1


class User(models.Model):
    """
    User database model.

    Mirrors the columns of the shared users table that presence synchronization touches.

    Status:
    - 1 means the user currently holds a live gateway session
    - 0 means no live session (default for new accounts)
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key: unique user identifier
    username = fields.CharField(
        max_length=256,
        unique=True,
        index=True
    )  # Login name, used as the presence identity (userId on the wire)
    status = fields.SmallIntField(default=STATUS_OFFLINE)  # 1 = online, 0 = offline
    updated_at = fields.DatetimeField(auto_now=True)  # Last time the row was written

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"  # Database table name
