# presence_gateway/core/registry.py
"""
Session registry: which user currently owns which live connection.

Architecture:
- One Session per user id; a new identify replaces the previous one (last writer wins)
- The superseded connection is not closed here; the transport owns connection lifecycles
- A single threading.Lock guards the maps; critical sections never await or do I/O

Data structure:
- _sessions: Dict[user_id, Session]
- _owners:   Dict[id(connection), user_id]   (reverse index for touch / close)
"""
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional


@dataclass
class Session:
    """One user's live presence."""
    user_id: str
    connection: Any
    last_heartbeat: float  # Monotonic seconds


class SessionRegistry:
    """
    In-memory map from user identity to its single active connection.

    Instances are created by the application and injected where needed,
    so tests can run several isolated registries side by side.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: Dict[str, Session] = {}
        self._owners: Dict[int, str] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    # -------- mutations --------
    def upsert(self, user_id: str, connection: Any) -> None:
        """
        Install or replace the Session for user_id and stamp its heartbeat with now.

        If the connection previously identified as another user, heartbeats on it
        now refresh user_id only; the other user's Session stops being refreshed
        and is left for the heartbeat sweep to expire.
        """
        now = self._clock()
        with self._lock:
            previous = self._sessions.get(user_id)
            if previous is not None:
                self._release_owner(previous)
            self._sessions[user_id] = Session(user_id=user_id, connection=connection, last_heartbeat=now)
            self._owners[id(connection)] = user_id

    def touch(self, connection: Any) -> bool:
        """
        Refresh last_heartbeat for the Session owned by connection.

        Returns:
            True if the connection owns a Session, False otherwise.
        """
        now = self._clock()
        with self._lock:
            user_id = self._owners.get(id(connection))
            if user_id is None:
                return False
            session = self._sessions[user_id]
            # Keep last_heartbeat non-decreasing even if the clock is adjusted
            if now > session.last_heartbeat:
                session.last_heartbeat = now
            return True

    def remove(self, user_id: str) -> Optional[Any]:
        """
        Remove the Session for user_id.

        Returns:
            The connection the Session held, or None if the user was not registered.
        """
        with self._lock:
            session = self._sessions.pop(user_id, None)
            if session is None:
                return None
            self._release_owner(session)
            return session.connection

    def remove_if_expired(self, user_id: str, now: float, timeout: float) -> bool:
        """
        Remove the Session for user_id only if it is still expired at time now.

        A Session replaced by a new identify, or refreshed by a heartbeat, after
        the expiry snapshot was taken is left in place.

        Returns:
            True if a Session was removed.
        """
        with self._lock:
            session = self._sessions.get(user_id)
            if session is None or now - session.last_heartbeat <= timeout:
                return False
            del self._sessions[user_id]
            self._release_owner(session)
            return True

    def remove_by_connection(self, connection: Any) -> Optional[str]:
        """
        Remove the Session currently owned by connection (transport-close path).

        A superseded connection no longer owns anything, so closing it leaves
        the newer Session in place.

        Returns:
            The user id that was removed, or None.
        """
        with self._lock:
            user_id = self._owners.pop(id(connection), None)
            if user_id is None:
                return None
            self._sessions.pop(user_id, None)
            return user_id

    def _release_owner(self, session: Session) -> None:
        # Caller holds the lock. The reverse entry may already point at another user.
        key = id(session.connection)
        if self._owners.get(key) == session.user_id:
            del self._owners[key]

    # -------- reads --------
    def snapshot_expired(self, now: float, timeout: float) -> List[str]:
        """User ids whose last heartbeat is older than timeout at time now. Does not mutate."""
        with self._lock:
            return [
                user_id
                for user_id, session in self._sessions.items()
                if now - session.last_heartbeat > timeout
            ]

    def lookup_connection(self, user_id: str) -> Optional[Any]:
        with self._lock:
            session = self._sessions.get(user_id)
            return session.connection if session is not None else None

    def last_heartbeat(self, user_id: str) -> Optional[float]:
        with self._lock:
            session = self._sessions.get(user_id)
            return session.last_heartbeat if session is not None else None

    def is_online(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._sessions

    def online_user_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._sessions)

    def now(self) -> float:
        """Current reading of the registry clock."""
        return self._clock()
