"""
In-process registry of live realtime connections.

Maps a user id to the channel name of that user's single live websocket.
Async consumers register and unregister; sync views push through it via
chat.realtime. The map is guarded by one lock and is never exposed.

Usage:
    from chat.registry import connection_registry

    previous = connection_registry.register(user.id, self.channel_name)
    removed = connection_registry.unregister(user.id, self.channel_name)

    delivered = await connection_registry.broadcast(
        lambda user_id: user_id in member_ids and user_id != sender_id,
        {"type": "new_message", "data": {...}},
    )

Design Notes:
    - At most one live connection per user; a new registration replaces the
      old handle without closing it
    - Sends happen outside the lock against a snapshot of targets
    - The registry is per-process; a multi-process deployment would need a
      shared store instead
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from channels.layers import get_channel_layer

from chat.constants import REALTIME_EVENTS

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    Sender = Callable[[str, dict[str, Any]], Awaitable[None]]

logger = logging.getLogger(__name__)


async def channel_layer_sender(handle: str, payload: dict[str, Any]) -> None:
    """
    Deliver a payload to one consumer through the channel layer.

    RealtimeConsumer.realtime_event writes ``payload`` to the socket.
    """
    channel_layer = get_channel_layer()
    await channel_layer.send(
        handle,
        {"type": REALTIME_EVENTS.CHANNEL_EVENT_TYPE, "payload": payload},
    )


class ConnectionRegistry:
    """
    Thread-safe map of user id -> connection handle (channel name).

    Attributes:
        sender: Async callable ``(handle, payload)`` used for delivery.
            Tests replace it with a recording fake.
    """

    def __init__(self, sender: Sender | None = None):
        self._lock = threading.RLock()
        self._connections: dict[int, str] = {}
        self.sender = sender or channel_layer_sender

    def register(self, user_id: int, handle: str) -> str | None:
        """
        Bind a user to a connection handle.

        Returns:
            The handle this replaced, or None
        """
        with self._lock:
            previous = self._connections.get(user_id)
            self._connections[user_id] = handle

        if previous is not None and previous != handle:
            logger.info(f"Replaced realtime connection for user {user_id}")
        return previous

    def unregister(self, user_id: int, handle: str | None = None) -> bool:
        """
        Remove a user's mapping.

        When ``handle`` is given the mapping is only removed if it still
        points at that handle, so a superseded connection closing late does
        not evict its replacement.

        Returns:
            True if a mapping was removed
        """
        with self._lock:
            current = self._connections.get(user_id)
            if current is None:
                return False
            if handle is not None and current != handle:
                return False
            del self._connections[user_id]
        return True

    def lookup(self, user_id: int) -> str | None:
        with self._lock:
            return self._connections.get(user_id)

    def registered_users(self) -> frozenset[int]:
        """Snapshot of currently registered user ids."""
        with self._lock:
            return frozenset(self._connections)

    async def broadcast(
        self,
        predicate: Callable[[int], bool],
        payload: dict[str, Any],
    ) -> int:
        """
        Send ``payload`` to every registered user matching ``predicate``.

        Failures for one target are logged and do not stop the others.

        Returns:
            Number of successful sends
        """
        with self._lock:
            targets = [
                (user_id, handle)
                for user_id, handle in self._connections.items()
                if predicate(user_id)
            ]

        delivered = 0
        for user_id, handle in targets:
            try:
                await self.sender(handle, payload)
            except Exception:
                logger.warning(
                    f"Realtime delivery to user {user_id} failed",
                    exc_info=True,
                )
                continue
            delivered += 1
        return delivered

    async def send_to(self, user_id: int, payload: dict[str, Any]) -> bool:
        """
        Send ``payload`` to one user if they are registered.

        Returns:
            True if the send succeeded, False on a miss or failure
        """
        handle = self.lookup(user_id)
        if handle is None:
            return False
        try:
            await self.sender(handle, payload)
        except Exception:
            logger.warning(f"Realtime delivery to user {user_id} failed", exc_info=True)
            return False
        return True

    def clear(self) -> None:
        with self._lock:
            self._connections.clear()


connection_registry = ConnectionRegistry()
