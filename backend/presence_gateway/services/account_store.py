"""
Account Store Abstract Interface

The gateway only needs one operation from the account service:
persist whether a user is currently online.
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Tuple

from ..models.user import User, STATUS_OFFLINE, STATUS_ONLINE


class UnknownAccountError(LookupError):
    """Raised when the store has no account for the given user id."""


class AccountStore(ABC):
    """Account Store Abstract Base Class"""

    @abstractmethod
    async def set_status(self, user_id: str, is_online: bool) -> None:
        """
        Persist the online status of a user

        Parameters:
        - user_id: Presence identity (account username)
        - is_online: True for online, False for offline

        Raises on failure; writing a status equal to the stored one is not an error.
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Store name (e.g., "database")"""
        pass


class DatabaseAccountStore(AccountStore):
    """Writes users.status through Tortoise ORM (1 = online, 0 = offline)."""

    async def set_status(self, user_id: str, is_online: bool) -> None:
        updated = await User.filter(username=user_id).update(
            status=STATUS_ONLINE if is_online else STATUS_OFFLINE
        )
        # Some drivers report only changed rows, so an unchanged status can also yield 0
        if not updated and not await User.filter(username=user_id).exists():
            raise UnknownAccountError(user_id)

    @property
    def name(self) -> str:
        return "database"


class MemoryAccountStore(AccountStore):
    """
    Process-local store for development and tests.
    Every call is recorded in `calls` in arrival order.
    """

    def __init__(self):
        self.statuses: Dict[str, bool] = {}
        self.calls: List[Tuple[str, bool]] = []

    async def set_status(self, user_id: str, is_online: bool) -> None:
        self.calls.append((user_id, is_online))
        self.statuses[user_id] = is_online

    @property
    def name(self) -> str:
        return "memory"


def build_account_store(kind: str) -> AccountStore:
    """
    Select the account store implementation by configuration name.

    Raises:
        ValueError: if kind is not "database" or "memory"
    """
    if kind == "database":
        return DatabaseAccountStore()
    if kind == "memory":
        return MemoryAccountStore()
    raise ValueError(f"Unknown ACCOUNT_STORE '{kind}', expected 'database' or 'memory'")
