"""The auction room: every connected websocket client.

All participants join one logical channel. Sends are best-effort; a client
whose socket fails is dropped from the room and is expected to reconnect and
re-sync from the REST snapshot.

A client that just joined is syncing until its snapshot is sent: broadcasts
for it are buffered meanwhile, so the snapshot is always its first message.
"""

import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class Room:
    """Set of websocket connections that receive every auction event."""

    def __init__(self, name: str = "auction-room") -> None:
        self.name = name
        self._connections: set[WebSocket] = set()
        self._syncing: dict[WebSocket, list[dict[str, Any]]] = {}

    @property
    def size(self) -> int:
        return len(self._connections) + len(self._syncing)

    async def join(self, websocket: WebSocket) -> None:
        """Accept the socket; broadcasts are buffered until sync() runs."""
        await websocket.accept()
        self._syncing[websocket] = []
        logger.info("Client joined %s (%d connected)", self.name, self.size)

    async def sync(self, websocket: WebSocket, snapshot: dict[str, Any]) -> None:
        """Send the snapshot, then the buffered broadcasts newer than it.

        The socket becomes a regular member once the buffer is drained.
        """
        await websocket.send_json(snapshot)
        after = snapshot.get("sequence", 0)
        buffered = self._syncing.get(websocket, [])
        while buffered:
            message = buffered.pop(0)
            if message.get("sequence", after + 1) > after:
                await websocket.send_json(message)
        if self._syncing.pop(websocket, None) is not None:
            self._connections.add(websocket)

    def leave(self, websocket: WebSocket) -> None:
        self._connections.discard(websocket)
        self._syncing.pop(websocket, None)
        logger.info("Client left %s (%d connected)", self.name, self.size)

    async def broadcast(self, message: dict[str, Any]) -> None:
        """Send a message to every member, dropping members that fail."""
        for buffered in self._syncing.values():
            buffered.append(message)
        for websocket in list(self._connections):
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.info("Dropping client from %s after send failure: %s", self.name, e)
                self.leave(websocket)
