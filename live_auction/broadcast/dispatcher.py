"""Event dispatchers: hand committed auction events to the broadcast room.

The engine depends on an EventDispatcher and calls publish() once per
committed operation. Dispatchers stamp each message with a monotonically
increasing sequence number, which lets clients detect missed messages and fall
back to a snapshot re-fetch (delivery is at-most-once, no replay).

Implementations:
- NullDispatcher: drops messages (CLI scripts, tests that do not care)
- RoomDispatcher: queues messages for the asyncio broadcast worker that fans
  them out to every websocket in the room
"""

import asyncio
import logging
import threading
from typing import TYPE_CHECKING, Any

from live_auction.broadcast.room import Room

if TYPE_CHECKING:
    from live_auction.auction.events import AuctionEvent

logger = logging.getLogger(__name__)


class EventDispatcher:
    """Base dispatcher: sequence numbering plus a delivery hook."""

    def __init__(self) -> None:
        self._sequence = 0
        self._lock = threading.Lock()

    @property
    def last_sequence(self) -> int:
        """Sequence number of the most recently published message."""
        return self._sequence

    def publish(self, event: "AuctionEvent") -> dict[str, Any]:
        """Number the event, deliver it and return the wire message."""
        with self._lock:
            self._sequence += 1
            message = event.to_message(self._sequence)
            self._deliver(message)
        return message

    def _deliver(self, message: dict[str, Any]) -> None:
        raise NotImplementedError


class NullDispatcher(EventDispatcher):
    """Dispatcher for contexts without connected clients."""

    def _deliver(self, message: dict[str, Any]) -> None:
        logger.debug("Dropping %s #%d (no broadcast room)", message["event"], message["sequence"])


class RoomDispatcher(EventDispatcher):
    """Thread-safe bridge from worker threads to the room's event loop.

    Sync endpoints run the engine in the thread pool; publish() schedules the
    enqueue on the loop with call_soon_threadsafe, which preserves call order,
    so messages reach the queue in commit order.
    """

    def __init__(self, room: Room, queue_size: int = 1000) -> None:
        super().__init__()
        self.room = room
        self.queue_size = queue_size
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue | None = None

    def bind(self, loop: asyncio.AbstractEventLoop) -> None:
        """Attach to the running event loop (called at application startup)."""
        self._loop = loop
        self._queue = asyncio.Queue(maxsize=self.queue_size)

    def _deliver(self, message: dict[str, Any]) -> None:
        if self._loop is None or self._loop.is_closed():
            logger.warning("Broadcast worker not running, dropping %s", message["event"])
            return
        self._loop.call_soon_threadsafe(self._enqueue, message)

    def _enqueue(self, message: dict[str, Any]) -> None:
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(
                "Broadcast queue full, dropping %s #%d", message["event"], message["sequence"]
            )

    async def run(self) -> None:
        """Broadcast worker: drain the queue into the room until cancelled."""
        if self._queue is None:
            self.bind(asyncio.get_running_loop())
        logger.info("Broadcast worker started for room %s", self.room.name)
        while True:
            message = await self._queue.get()
            try:
                await self.room.broadcast(message)
            except Exception:
                logger.exception("Failed to broadcast %s", message.get("event"))
            finally:
                self._queue.task_done()
