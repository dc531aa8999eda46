"""
Pytest fixtures for the Char-Chitti room server.
"""

import json
import random
from typing import Any, Dict, List, Optional, Tuple

import pytest

from charchitti.game_logic import handle_ws_message
from charchitti.room import Room
from charchitti.schemas import encode


class RecordingChannel:
    """Channel fake that keeps every outbound payload in arrival order.

    Unicast entries carry the target connection id, broadcasts carry ``None``.
    """

    def __init__(self):
        self.sent: List[Tuple[Optional[str], Dict[str, Any]]] = []
        # Never cleared; lets tests dig out session tokens issued during setup
        self.history: List[Tuple[Optional[str], Dict[str, Any]]] = []

    def send(self, conn_id, message):
        self._record(conn_id, encode(message))

    def broadcast(self, message):
        self._record(None, encode(message))

    def _record(self, target, payload):
        self.sent.append((target, payload))
        self.history.append((target, payload))

    def clear(self):
        self.sent.clear()

    def unicasts(self, conn_id: str, kind: Optional[str] = None) -> List[Dict[str, Any]]:
        return [p for target, p in self.sent if target == conn_id and (kind is None or p["type"] == kind)]

    def broadcasts(self, kind: Optional[str] = None) -> List[Dict[str, Any]]:
        return [p for target, p in self.sent if target is None and (kind is None or p["type"] == kind)]

    def errors(self, conn_id: str) -> List[str]:
        return [p["message"] for p in self.unicasts(conn_id, "error")]

    def last_state(self) -> Dict[str, Any]:
        return self.broadcasts("room_state")[-1]["state"]

    def session_token(self, conn_id: str) -> str:
        tokens = [p["token"] for target, p in self.history if target == conn_id and p["type"] == "session"]
        return tokens[-1]


def send(room: Room, conn_id: str, **payload) -> None:
    """Deliver one JSON frame to *room* as if it came from *conn_id*."""
    handle_ws_message(room, conn_id, json.dumps(payload))


def hand_of(room: Room, conn_id: str) -> List[str]:
    return list(room.players[conn_id].hand)


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def room(channel) -> Room:
    """Empty lobby with a seeded shuffle."""
    return Room("TEST01", channel, rng=random.Random(1234))


@pytest.fixture
def lobby(room, channel) -> Room:
    """Lobby with A (owner) and B seated and entities [Lion, Tiger]."""
    send(room, "A", type="join", name="Alice")
    send(room, "B", type="join", name="Bob")
    send(room, "A", type="update_settings", settings={"entityNames": ["Lion", "Tiger"]})
    channel.clear()
    return room


@pytest.fixture
def playing(lobby, channel) -> Room:
    """Two-player game just dealt; A holds the turn."""
    send(lobby, "A", type="start_game")
    channel.clear()
    return lobby


@pytest.fixture
def three_player_game(room, channel) -> Room:
    for conn_id, name in (("A", "Alice"), ("B", "Bob"), ("C", "Cara")):
        send(room, conn_id, type="join", name=name)
    send(room, "A", type="update_settings", settings={"entityNames": ["Lion", "Tiger", "Bear"]})
    send(room, "A", type="start_game")
    channel.clear()
    return room
