"""Queue-backed fan-out from a room to its websocket connections.

Room handlers are synchronous, so they never write to a socket directly.
They drop encoded payloads on per-connection queues and a writer task per
connection drains its queue in order.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict

from fastapi import WebSocket
from pydantic import BaseModel

from .schemas import encode

logger = logging.getLogger(__name__)


class WebSocketChannel:
    def __init__(self) -> None:
        self._queues: Dict[str, asyncio.Queue] = {}

    def __len__(self) -> int:
        return len(self._queues)

    def attach(self, conn_id: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._queues[conn_id] = queue
        return queue

    def detach(self, conn_id: str) -> None:
        self._queues.pop(conn_id, None)

    def send(self, conn_id: str, message: BaseModel) -> None:
        queue = self._queues.get(conn_id)
        if queue is None:
            # Receiver retained in the roster but currently offline
            return
        queue.put_nowait(encode(message))

    def broadcast(self, message: BaseModel) -> None:
        payload = encode(message)
        for queue in list(self._queues.values()):
            queue.put_nowait(payload)


async def pump(ws: WebSocket, queue: asyncio.Queue) -> None:
    """Forward queued payloads to *ws* until cancelled or the socket fails."""
    while True:
        payload: Dict[str, Any] = await queue.get()
        try:
            await ws.send_json(payload)
        except Exception as exc:
            logger.warning("dropping writer after send failure: %s", exc)
            return


__all__ = ["WebSocketChannel", "pump"]
