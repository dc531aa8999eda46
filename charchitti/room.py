from __future__ import annotations

import logging
import random
import secrets
from typing import Dict, List, Optional, Protocol, Tuple

from pydantic import BaseModel

from .constants import DEFAULT_PLAYER_NAME, MAX_PLAYER_NAME_LEN, PHASE_TRANSITIONS, Phase
from .errors import CapacityError, StateError, ValidationError
from .schemas import (
    ErrorMessage,
    Player,
    RoomSettings,
    RoomState,
    RoomStateMessage,
    SessionMessage,
    YourHandMessage,
)

# NOTE: ``Room`` holds state and the primitive mutations on it. The protocol
# handlers that decide *when* to call them live in ``charchitti.game_logic``.

logger = logging.getLogger(__name__)


class Channel(Protocol):
    """Outbound side of the hosting substrate for one room."""

    def send(self, conn_id: str, message: BaseModel) -> None:
        ...

    def broadcast(self, message: BaseModel) -> None:
        ...


def clean_player_name(raw: Optional[str]) -> str:
    name = (raw or "").strip()[:MAX_PLAYER_NAME_LEN]
    return name or DEFAULT_PLAYER_NAME


class Room:
    """Encapsulates runtime state and the outbound channel for one room code."""

    def __init__(self, room_id: str, channel: Channel, rng: Optional[random.Random] = None):
        self.room_id = room_id
        self.channel = channel
        self.rng = rng or random.Random()
        # Insertion order is the roster order used for dealing and owner hand-off
        self.players: Dict[str, Player] = {}
        self.settings = RoomSettings()
        self.phase = Phase.LOBBY
        self.winner: Optional[str] = None
        self.winner_name: Optional[str] = None
        self.winner_entity: Optional[str] = None
        self.round: int = 1
        self.owner_id: Optional[str] = None
        # Fixed clockwise order established at deal time
        self.player_order: List[str] = []
        self.current_turn_index: int = 0
        # Bumped every time the turn pointer wraps back to the first seat
        self.pass_round: int = 0
        # reconnection token -> player id
        self._tokens: Dict[str, str] = {}

    # ---------------------------------------------------------------------
    # Phase helpers
    # ---------------------------------------------------------------------

    def require_phase(self, *allowed: Phase, message: Optional[str] = None) -> None:
        if self.phase not in allowed:
            raise StateError(message)

    def transition(self, target: Phase) -> None:
        if target not in PHASE_TRANSITIONS[self.phase]:
            raise StateError(f"Cannot move from {self.phase.value} to {target.value}")
        logger.info("room %s: %s -> %s", self.room_id, self.phase.value, target.value)
        self.phase = target

    def clear_winner(self) -> None:
        self.winner = None
        self.winner_name = None
        self.winner_entity = None

    @property
    def current_turn_player_id(self) -> Optional[str]:
        if not self.player_order:
            return None
        return self.player_order[self.current_turn_index]

    # -------------------- Roster -------------------- #

    def connected_players(self) -> List[Player]:
        return [p for p in self.players.values() if p.is_connected]

    def has_live_owner(self) -> bool:
        owner = self.players.get(self.owner_id) if self.owner_id else None
        return owner is not None and owner.is_connected

    def claim_ownership(self, player: Player) -> None:
        previous = self.players.get(self.owner_id) if self.owner_id else None
        if previous is not None and previous is not player:
            previous.is_owner = False
        self.owner_id = player.id
        player.is_owner = True

    def add_player(self, conn_id: str, name: Optional[str]) -> Tuple[Player, str]:
        """Seat a new player for *conn_id* and return it with its reconnection token."""
        if self.phase != Phase.LOBBY:
            raise StateError("Game already started")
        if conn_id in self.players:
            raise StateError("Already joined")
        if len(self.connected_players()) >= self.settings.max_players:
            raise CapacityError()

        player = Player(id=conn_id, name=clean_player_name(name))
        self.players[conn_id] = player
        if not self.has_live_owner():
            self.claim_ownership(player)
        token = self.issue_token(conn_id)
        logger.info("room %s: %s joined as %r", self.room_id, conn_id, player.name)
        return player, token

    def mark_disconnected(self, conn_id: str) -> Optional[Player]:
        """Flag *conn_id*'s player as gone. Returns ``None`` for a connection that never joined."""
        player = self.players.get(conn_id)
        if player is None:
            return None
        player.is_connected = False
        if conn_id == self.owner_id:
            successor = next((p for p in self.players.values() if p.is_connected), None)
            if successor is not None:
                self.claim_ownership(successor)
        if self.phase == Phase.LOBBY:
            # Frees the slot; nothing of a lobby seat is worth keeping
            del self.players[conn_id]
            self.forget_tokens(conn_id)
        logger.info("room %s: %s left (%s)", self.room_id, conn_id, self.phase.value)
        return player

    def rebind_player(self, token: str, conn_id: str) -> Tuple[Player, str]:
        """Move a retained player onto connection *conn_id*, keeping its seat."""
        old_id = self._tokens.get(token)
        if old_id is None or old_id not in self.players:
            raise ValidationError("Unknown session token")
        if conn_id in self.players:
            raise StateError("Already joined")
        player = self.players[old_id]
        if player.is_connected:
            raise StateError("That player is still connected")
        if self.phase == Phase.LOBBY and len(self.connected_players()) >= self.settings.max_players:
            raise CapacityError()

        self.players = {(conn_id if pid == old_id else pid): p for pid, p in self.players.items()}
        self.player_order = [conn_id if pid == old_id else pid for pid in self.player_order]
        if self.owner_id == old_id:
            self.owner_id = conn_id
        if self.winner == old_id:
            self.winner = conn_id
        player.id = conn_id
        player.is_connected = True
        if not self.has_live_owner():
            self.claim_ownership(player)

        self.forget_tokens(old_id)
        new_token = self.issue_token(conn_id)
        logger.info("room %s: %s re-bound to %s", self.room_id, old_id, conn_id)
        return player, new_token

    def issue_token(self, player_id: str) -> str:
        token = secrets.token_urlsafe(16)
        self._tokens[token] = player_id
        return token

    def forget_tokens(self, player_id: str) -> None:
        self._tokens = {t: pid for t, pid in self._tokens.items() if pid != player_id}

    # -------------------- Snapshot -------------------- #

    def snapshot(self) -> RoomState:
        """Public projection of the room; every hand is redacted."""
        return RoomState(
            room_id=self.room_id,
            settings=self.settings.model_copy(deep=True),
            players=[p.model_copy(update={"hand": []}) for p in self.players.values()],
            phase=self.phase,
            winner=self.winner,
            winner_name=self.winner_name,
            winner_entity=self.winner_entity,
            round=self.round,
            owner_id=self.owner_id,
            player_order=list(self.player_order),
            current_turn_player_id=self.current_turn_player_id,
            pass_round=self.pass_round,
        )

    # -------------------- Messaging -------------------- #

    def connect(self, conn_id: str) -> None:
        """Greet a freshly opened connection with the current snapshot."""
        self.send(conn_id, RoomStateMessage(state=self.snapshot()))

    def broadcast_state(self) -> None:
        self.broadcast(RoomStateMessage(state=self.snapshot()))

    def broadcast(self, message: BaseModel) -> None:
        self.channel.broadcast(message)

    def send(self, conn_id: str, message: BaseModel) -> None:
        self.channel.send(conn_id, message)

    def send_hand(self, player: Player) -> None:
        self.send(player.id, YourHandMessage(hand=list(player.hand)))

    def send_session(self, player: Player, token: str) -> None:
        self.send(player.id, SessionMessage(player_id=player.id, token=token))

    def send_error(self, conn_id: str, message: str) -> None:
        self.send(conn_id, ErrorMessage(message=message))


__all__ = ["Channel", "Room", "clean_player_name"]
