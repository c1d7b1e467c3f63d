"""
Services Module

Adapters between the session registry and the outside world:
- Account store: persists online/offline status
- Status synchronizer: non-raising, bounded status writes
- Notification dispatcher: best-effort push to a user's live connection
"""

from .account_store import (
    AccountStore,
    DatabaseAccountStore,
    MemoryAccountStore,
    UnknownAccountError,
    build_account_store,
)
from .status_sync import (
    StatusOutcome,
    StatusSynchronizer,
)
from .notifier import NotificationDispatcher

__all__ = [
    # Account store
    "AccountStore",
    "DatabaseAccountStore",
    "MemoryAccountStore",
    "UnknownAccountError",
    "build_account_store",
    # Status synchronization
    "StatusOutcome",
    "StatusSynchronizer",
    # Notifications
    "NotificationDispatcher",
]
