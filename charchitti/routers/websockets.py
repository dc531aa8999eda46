from __future__ import annotations

import asyncio
import contextlib
import logging
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..channel import pump
from ..game_logic import handle_disconnect, handle_ws_message
from ..registry import cancel_prune, open_room, schedule_prune

router = APIRouter(prefix="", tags=["ws"])

logger = logging.getLogger(__name__)


@router.websocket("/ws/{room_id}")
async def websocket_endpoint(ws: WebSocket, room_id: str):
    await ws.accept()
    room = open_room(room_id)
    cancel_prune(room.room_id)

    conn_id = uuid.uuid4().hex
    queue = room.channel.attach(conn_id)
    writer = asyncio.create_task(pump(ws, queue))
    room.connect(conn_id)

    try:
        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            # Binary frames go through the same JSON validation as text
            data = message.get("text")
            if data is None:
                data = message.get("bytes") or b""
            handle_ws_message(room, conn_id, data)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("websocket error in room %s for %s", room.room_id, conn_id)
        with contextlib.suppress(RuntimeError):
            await ws.close(code=1011)
    finally:
        room.channel.detach(conn_id)
        handle_disconnect(room, conn_id)
        writer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await writer
        schedule_prune(room)
