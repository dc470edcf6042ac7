"""
In-process registry of live WebSocket sessions.

Maps a user id to the set of session handles currently connected for that
user (several devices or tabs). ChatConsumer registers a handle on connect
and unregisters it on disconnect; DeliveryRouter reads the handles to fan a
message out to every connected session.

Design:
    - One registry per process, owned by ChatConfig and passed explicitly
      to the components that need it
    - Guarded by a lock; readers get an immutable snapshot, so a read
      during an in-flight unregister sees either the old or the new state
    - The per-user handle set is the reference count: the user key is
      dropped together with its last handle

Usage:
    registry = SessionRegistry()
    handle = registry.register_session(user.id, self.channel_name)
    ...
    registry.live_sessions_of(user.id)   # frozenset({handle})
    registry.unregister_session(handle)  # safe to call twice
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionHandle:
    """
    Ephemeral binding of a user to one live connection.

    Attributes:
        user_id: Owner of the connection
        channel_name: Channels reply channel of the consumer
        session_id: Unique id of this handle (sent to the client on connect)
    """

    user_id: int
    channel_name: str
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)


class SessionRegistry:
    """Thread-safe map of user id -> live session handles."""

    def __init__(self):
        self._lock = threading.RLock()
        self._sessions: dict[int, frozenset[SessionHandle]] = {}

    def register_session(self, user_id: int, channel_name: str) -> SessionHandle:
        """
        Register a new live session for a user.

        Args:
            user_id: Authenticated user owning the connection
            channel_name: Channels reply channel used to reach the consumer

        Returns:
            The new SessionHandle
        """
        handle = SessionHandle(user_id=user_id, channel_name=channel_name)
        with self._lock:
            current = self._sessions.get(user_id, frozenset())
            self._sessions[user_id] = current | {handle}
            count = len(self._sessions[user_id])

        logger.debug(
            f"Registered session {handle.session_id} for user {user_id} "
            f"({count} live)"
        )
        return handle

    def unregister_session(self, handle: SessionHandle) -> bool:
        """
        Remove a session handle.

        Safe to call for a handle that is already gone (disconnect after a
        timed-out delivery already dropped it).

        Returns:
            True if the handle was registered, False otherwise
        """
        with self._lock:
            current = self._sessions.get(handle.user_id)
            if not current or handle not in current:
                return False

            remaining = current - {handle}
            if remaining:
                self._sessions[handle.user_id] = remaining
            else:
                del self._sessions[handle.user_id]

        logger.debug(
            f"Unregistered session {handle.session_id} for user {handle.user_id} "
            f"({len(remaining)} live)"
        )
        return True

    def live_sessions_of(self, user_id: int) -> frozenset[SessionHandle]:
        """Snapshot of the user's live sessions (possibly empty)."""
        with self._lock:
            return self._sessions.get(user_id, frozenset())

    def session_count(self, user_id: int) -> int:
        return len(self.live_sessions_of(user_id))

    def connected_user_ids(self) -> frozenset[int]:
        """Users holding at least one live session."""
        with self._lock:
            return frozenset(self._sessions)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(handles) for handles in self._sessions.values())
