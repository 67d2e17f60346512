"""Real-time broadcast layer."""

from .dispatcher import EventDispatcher, NullDispatcher, RoomDispatcher
from .room import Room

__all__ = ["EventDispatcher", "NullDispatcher", "Room", "RoomDispatcher"]
