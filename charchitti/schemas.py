"""Pydantic data schemas used across the room server.

This module centralises all wire models so the room, the dispatcher and the
HTTP routers import them from a single location. Every model serialises with
camelCase keys (``roomId``, ``entityNames``) while Python code keeps using
snake_case attributes.
"""
from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, TypeAdapter
from pydantic.alias_generators import to_camel

from .constants import DEFAULT_ENTITIES, DEFAULT_MAX_PLAYERS, DEFAULT_ROOM_NAME, Phase


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -----------------------------
# Runtime state
# -----------------------------

class Player(WireModel):
    """A seat in the room. ``id`` is the connection currently bound to it."""

    id: str
    name: str
    is_owner: bool = False
    is_connected: bool = True
    hand: List[str] = Field(default_factory=list)
    # Wins across every round played in this room
    score: int = 0


class RoomSettings(WireModel):
    """Lobby configuration chosen by the owner."""

    room_name: str = DEFAULT_ROOM_NAME
    max_players: int = DEFAULT_MAX_PLAYERS
    entity_names: List[str] = Field(default_factory=lambda: list(DEFAULT_ENTITIES))
    # Stored and echoed to clients; no handler acts on "auto".
    pass_mode: Literal["manual", "auto"] = "manual"


class SettingsUpdate(WireModel):
    """Partial settings sent by the owner; omitted fields stay as they are."""

    room_name: Optional[str] = None
    max_players: Optional[StrictInt] = None
    entity_names: Optional[List[str]] = None
    pass_mode: Optional[Literal["manual", "auto"]] = None


class RoomState(WireModel):
    """Broadcastable snapshot. Hands are always empty here."""

    room_id: str
    settings: RoomSettings
    players: List[Player]
    phase: Phase
    winner: Optional[str] = None
    winner_name: Optional[str] = None
    winner_entity: Optional[str] = None
    round: int = 1
    owner_id: Optional[str] = None
    player_order: List[str] = []
    current_turn_player_id: Optional[str] = None
    pass_round: int = 0


# -----------------------------
# Client -> server messages
# -----------------------------

class JoinMessage(WireModel):
    type: Literal["join"]
    name: Optional[str] = None


class UpdateSettingsMessage(WireModel):
    type: Literal["update_settings"]
    settings: SettingsUpdate


class StartGameMessage(WireModel):
    type: Literal["start_game"]


class PassChitMessage(WireModel):
    type: Literal["pass_chit"]
    chit_index: StrictInt


class ClaimWinMessage(WireModel):
    type: Literal["claim_win"]


class PlayAgainMessage(WireModel):
    type: Literal["play_again"]


class RejoinMessage(WireModel):
    type: Literal["rejoin"]
    token: str


ClientMessage = Annotated[
    Union[
        JoinMessage,
        UpdateSettingsMessage,
        StartGameMessage,
        PassChitMessage,
        ClaimWinMessage,
        PlayAgainMessage,
        RejoinMessage,
    ],
    Field(discriminator="type"),
]

client_message_adapter: TypeAdapter = TypeAdapter(ClientMessage)


# -----------------------------
# Server -> client messages
# -----------------------------

class RoomStateMessage(WireModel):
    type: Literal["room_state"] = "room_state"
    state: RoomState


class YourHandMessage(WireModel):
    type: Literal["your_hand"] = "your_hand"
    hand: List[str]


class ErrorMessage(WireModel):
    type: Literal["error"] = "error"
    message: str


class GameStartedMessage(WireModel):
    type: Literal["game_started"] = "game_started"


class WinnerMessage(WireModel):
    type: Literal["winner"] = "winner"
    player_id: str
    player_name: str
    entity: str


class PassExecutedMessage(WireModel):
    """Advisory sent whenever the turn pointer completes a full lap."""

    type: Literal["pass_executed"] = "pass_executed"
    pass_round: int


class SessionMessage(WireModel):
    """Private reconnection credentials for the receiving connection."""

    type: Literal["session"] = "session"
    player_id: str
    token: str


def encode(message: BaseModel) -> Dict[str, Any]:
    """Return the JSON-ready dict for *message* using wire (camelCase) keys."""
    return message.model_dump(by_alias=True, mode="json")


# -----------------------------
# REST request / response models
# -----------------------------

class RoomCreatedResponse(WireModel):
    room_id: str


class HealthResponse(WireModel):
    status: str = "ok"
    rooms: int = 0


__all__ = [
    # runtime
    "WireModel",
    "Player",
    "RoomSettings",
    "SettingsUpdate",
    "RoomState",
    # inbound
    "JoinMessage",
    "UpdateSettingsMessage",
    "StartGameMessage",
    "PassChitMessage",
    "ClaimWinMessage",
    "PlayAgainMessage",
    "RejoinMessage",
    "ClientMessage",
    "client_message_adapter",
    # outbound
    "RoomStateMessage",
    "YourHandMessage",
    "ErrorMessage",
    "GameStartedMessage",
    "WinnerMessage",
    "PassExecutedMessage",
    "SessionMessage",
    "encode",
    # http
    "RoomCreatedResponse",
    "HealthResponse",
]
