"""Room lookup, creation and pruning for the hosting app."""
from __future__ import annotations

import asyncio
import logging
import secrets
from typing import Optional

from .channel import WebSocketChannel
from .config import Config
from .constants import ROOM_CODE_ALPHABET
from .room import Room
from .state import cleanup_tasks, rooms

logger = logging.getLogger(__name__)


def normalise_code(room_id: str) -> str:
    return room_id.strip().upper()


def get_room(room_id: str) -> Optional[Room]:
    return rooms.get(normalise_code(room_id))


def open_room(room_id: str) -> Room:
    """Return the room for *room_id*, creating it on first use."""
    code = normalise_code(room_id)
    room = rooms.get(code)
    if room is None:
        room = Room(code, WebSocketChannel())
        rooms[code] = room
        logger.info("room %s created", code)
    return room


def new_room_code(length: Optional[int] = None) -> str:
    length = length or Config.ROOM_CODE_LENGTH
    while True:
        code = "".join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(length))
        if code not in rooms:
            return code


def drop_room(room_id: str) -> None:
    if rooms.pop(room_id, None) is not None:
        logger.info("room %s pruned", room_id)


def cancel_prune(room_id: str) -> None:
    task = cleanup_tasks.pop(room_id, None)
    if task is not None and not task.done():
        task.cancel()


def schedule_prune(room: Room, delay: Optional[float] = None) -> None:
    """Drop *room* once it has stayed without connections for *delay* seconds."""
    delay = Config.ROOM_PRUNE_DELAY_SEC if delay is None else delay
    if len(room.channel):
        return
    if delay <= 0:
        drop_room(room.room_id)
        return
    cancel_prune(room.room_id)

    async def _prune_after_delay(rid: str):
        try:
            await asyncio.sleep(delay)
            room_ref = rooms.get(rid)
            if room_ref is not None and not len(room_ref.channel):
                drop_room(rid)
        except asyncio.CancelledError:
            pass
        finally:
            if cleanup_tasks.get(rid) is asyncio.current_task():
                cleanup_tasks.pop(rid, None)

    cleanup_tasks[room.room_id] = asyncio.create_task(_prune_after_delay(room.room_id))


__all__ = [
    "normalise_code",
    "get_room",
    "open_room",
    "new_room_code",
    "drop_room",
    "cancel_prune",
    "schedule_prune",
]
