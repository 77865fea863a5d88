"""
SkillSwap Backend — Presence Registry
=======================================

What:  In-process map of user id → open chat WebSocket.
Why:   Lets a freshly stored message be pushed to its recipient immediately
       when they have the chat open.
How:   The /ws/chat handler registers the socket after authenticating and
       unregisters it when the socket closes.

Lifecycle & guarantees:
    - Populated on connect, purged on disconnect, empty after a restart
    - Advisory only: message durability never depends on it. A message is
      stored before delivery is attempted, and a missed push is recovered by
      GET /api/chat/{userId}
    - One handle per user: a second tab replaces the first. Unregistering
      with a stale handle is a no-op, so the old tab closing does not knock
      the new one offline
    - Single process: a multi-worker deployment would need a shared broker
"""

import logging
from typing import Any, Dict, Protocol
from uuid import UUID

logger = logging.getLogger(__name__)


class DeliveryHandle(Protocol):
    """Anything that can push JSON to a client (starlette WebSocket in production)."""

    async def send_json(self, data: Any) -> None: ...


class PresenceRegistry:

    def __init__(self) -> None:
        self._handles: Dict[UUID, DeliveryHandle] = {}

    def register(self, user_id: UUID, handle: DeliveryHandle) -> None:
        if user_id in self._handles:
            logger.debug("User %s reconnected; replacing previous chat socket", user_id)
        self._handles[user_id] = handle
        logger.info("User %s is online (%d online)", user_id, len(self._handles))

    def unregister(self, user_id: UUID, handle: DeliveryHandle) -> bool:
        """Remove `handle` for the user; returns False if a newer handle is registered."""
        if self._handles.get(user_id) is not handle:
            return False
        del self._handles[user_id]
        logger.info("User %s went offline (%d online)", user_id, len(self._handles))
        return True

    def is_online(self, user_id: UUID) -> bool:
        return user_id in self._handles

    @property
    def online_count(self) -> int:
        return len(self._handles)

    async def deliver(self, user_id: UUID, payload: Any) -> bool:
        """
        Push `payload` to the user's socket if they are online.

        Returns whether a push happened. A socket that fails to send is
        dropped from the registry; the failure is not raised since the
        message is already stored.
        """
        handle = self._handles.get(user_id)
        if handle is None:
            return False
        try:
            await handle.send_json(payload)
        except Exception as exc:
            logger.warning(
                "Dropping chat socket for user %s after failed send: %s",
                user_id,
                type(exc).__name__,
            )
            self.unregister(user_id, handle)
            return False
        return True

    def clear(self) -> None:
        self._handles.clear()


# Process-wide registry used by the chat routes and the health check
presence_registry = PresenceRegistry()
