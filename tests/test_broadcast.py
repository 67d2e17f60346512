"""Tests for the broadcast layer: wire format, sequencing, room fan-out.

Async pieces are driven with asyncio.run so the test suite needs no plugin.
"""

import asyncio
import contextlib
import logging
from datetime import UTC, datetime

from live_auction.auction import events
from live_auction.broadcast import NullDispatcher, Room, RoomDispatcher


class FakeSocket:
    """Stands in for a starlette WebSocket."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.accepted = False
        self.sent: list[dict] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, message: dict) -> None:
        if self.fail:
            raise RuntimeError("connection closed")
        self.sent.append(message)


SNAPSHOT = {"event": "state-sync", "sequence": 0, "payload": {}}


async def _wait_for(predicate, timeout: float = 2.0) -> None:
    async def poll():
        while not predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(poll(), timeout)


def test_wire_format():
    event = events.AuctionEvent(
        events.BID_ACCEPTED,
        {"team_id": 1, "amount": 60},
        timestamp=datetime(2024, 3, 1, 18, 30, tzinfo=UTC),
    )

    assert event.to_message(7) == {
        "event": "bid-accepted",
        "sequence": 7,
        "timestamp": "2024-03-01T18:30:00+00:00",
        "payload": {"team_id": 1, "amount": 60},
    }


def test_null_dispatcher_still_numbers_messages():
    dispatcher = NullDispatcher()

    first = dispatcher.publish(events.config_changed("test"))
    second = dispatcher.publish(events.config_changed("test"))

    assert (first["sequence"], second["sequence"]) == (1, 2)
    assert dispatcher.last_sequence == 2


def test_room_drops_clients_whose_send_fails():
    async def scenario():
        room = Room()
        healthy, broken = FakeSocket(), FakeSocket()
        for socket in (healthy, broken):
            await room.join(socket)
            await room.sync(socket, SNAPSHOT)
        broken.fail = True
        await room.broadcast({"event": "config-changed"})
        return room, healthy, broken

    room, healthy, broken = asyncio.run(scenario())

    assert healthy.accepted and broken.accepted
    assert healthy.sent == [SNAPSHOT, {"event": "config-changed"}]
    assert room.size == 1


def test_snapshot_is_the_first_message_of_a_new_client():
    """Broadcasts during the join are held back; those older than the snapshot are dropped."""

    async def scenario():
        room = Room()
        socket = FakeSocket()
        await room.join(socket)
        await room.broadcast({"event": "bid-accepted", "sequence": 4})
        await room.broadcast({"event": "bid-accepted", "sequence": 5})
        assert socket.sent == []

        await room.sync(socket, {"event": "state-sync", "sequence": 4, "payload": {}})
        await room.broadcast({"event": "lot-resolved", "sequence": 6})
        return room, socket

    room, socket = asyncio.run(scenario())

    assert [(m["event"], m["sequence"]) for m in socket.sent] == [
        ("state-sync", 4),
        ("bid-accepted", 5),
        ("lot-resolved", 6),
    ]
    assert room.size == 1


def test_room_dispatcher_delivers_in_publish_order():
    """Messages published from worker threads reach clients in sequence order."""

    async def scenario():
        room = Room()
        socket = FakeSocket()
        await room.join(socket)
        await room.sync(socket, SNAPSHOT)
        dispatcher = RoomDispatcher(room)
        dispatcher.bind(asyncio.get_running_loop())
        worker = asyncio.create_task(dispatcher.run())

        def publish_all():
            for index in range(5):
                dispatcher.publish(events.config_changed("step", index=index))

        await asyncio.to_thread(publish_all)
        await _wait_for(lambda: len(socket.sent) == 6)
        worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await worker
        return socket

    socket = asyncio.run(scenario())

    broadcasts = socket.sent[1:]
    assert [message["sequence"] for message in broadcasts] == [1, 2, 3, 4, 5]
    assert [message["payload"]["index"] for message in broadcasts] == [0, 1, 2, 3, 4]


def test_room_dispatcher_drops_when_queue_is_full(caplog):
    async def scenario():
        dispatcher = RoomDispatcher(Room(), queue_size=1)
        dispatcher.bind(asyncio.get_running_loop())
        dispatcher.publish(events.config_changed("first"))
        dispatcher.publish(events.config_changed("second"))
        await asyncio.sleep(0.05)
        return dispatcher

    with caplog.at_level(logging.WARNING, logger="live_auction.broadcast.dispatcher"):
        dispatcher = asyncio.run(scenario())

    assert dispatcher.last_sequence == 2
    assert "Broadcast queue full" in caplog.text


def test_unbound_room_dispatcher_drops_messages(caplog):
    dispatcher = RoomDispatcher(Room())

    with caplog.at_level(logging.WARNING, logger="live_auction.broadcast.dispatcher"):
        message = dispatcher.publish(events.config_changed("boot"))

    assert message["sequence"] == 1
    assert "Broadcast worker not running" in caplog.text
