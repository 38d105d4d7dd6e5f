"""
WebSocket connection registry for real-time notifications.

The registry is advisory: a user missing from it only means a notification is
stored without being pushed. ConnectionRegistry is the seam for replacing the
in-process map with a shared pub/sub backend when running several workers.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Dict, Protocol, Set
from uuid import UUID

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionRegistry(Protocol):
    async def register(self, user_id: UUID, channel: WebSocket) -> None: ...

    async def lookup(self, user_id: UUID) -> set[WebSocket]: ...

    async def unregister(self, channel: WebSocket) -> None: ...

    async def send_to_user(self, user_id: UUID, message: dict) -> bool: ...


class ConnectionManager:
    """In-process registry: user_id -> open sockets."""

    def __init__(self):
        # user_id -> set of active WebSocket connections
        self._connections: Dict[UUID, Set[WebSocket]] = {}
        # reverse index so a socket can be dropped without knowing its user
        self._owners: Dict[WebSocket, UUID] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, user_id: UUID) -> None:
        """Accept and register a new WebSocket connection."""
        await websocket.accept()
        await self.register(user_id, websocket)

    async def register(self, user_id: UUID, channel: WebSocket) -> None:
        async with self._lock:
            self._connections.setdefault(user_id, set()).add(channel)
            self._owners[channel] = user_id

    async def lookup(self, user_id: UUID) -> set[WebSocket]:
        async with self._lock:
            return set(self._connections.get(user_id, set()))

    async def unregister(self, channel: WebSocket) -> None:
        async with self._lock:
            self._drop(channel)

    def _drop(self, channel: WebSocket) -> None:
        user_id = self._owners.pop(channel, None)
        if user_id is None:
            return
        sockets = self._connections.get(user_id)
        if sockets is not None:
            sockets.discard(channel)
            if not sockets:
                del self._connections[user_id]

    async def send_to_user(self, user_id: UUID, message: dict) -> bool:
        """
        Send a message to every socket of a user.

        Returns True if at least one socket accepted it. Failing sockets are
        unregistered; failures never propagate.
        """
        connections = await self.lookup(user_id)
        if not connections:
            return False

        data = json.dumps(message, default=str)
        closed = []
        delivered = False

        for ws in connections:
            try:
                await ws.send_text(data)
                delivered = True
            except Exception:
                # Connection closed or errored
                closed.append(ws)

        if closed:
            logger.info("Dropping %d stale socket(s) for user %s", len(closed), user_id)
            async with self._lock:
                for ws in closed:
                    self._drop(ws)

        return delivered


# Singleton instance
manager = ConnectionManager()
