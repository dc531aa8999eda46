"""Core Char-Chitti game mechanics.

This module implements the rules of the game while remaining completely
framework-agnostic. All functions operate only on in-memory
`charchitti.room.Room` instances; the websocket router feeds them raw frames
without the rules ever touching FastAPI.

Every handler is synchronous and validates before it mutates, so a rejected
action (any ``GameError``) leaves the room exactly as it was.
"""
from __future__ import annotations

import logging
import random
from typing import Iterable, List, Optional, Union

from pydantic import ValidationError as PayloadError

from .constants import (
    CHITS_PER_ENTITY,
    HAND_SIZE,
    MAX_ENTITIES,
    MAX_ENTITY_NAME_LEN,
    MAX_PLAYERS,
    MAX_ROOM_NAME_LEN,
    MIN_ENTITIES,
    MIN_PLAYERS,
    Phase,
)
from .errors import (
    AuthorizationError,
    ClaimRejected,
    GameError,
    TurnViolationError,
    ValidationError,
)
from .room import Room
from .schemas import (
    ClaimWinMessage,
    ClientMessage,
    GameStartedMessage,
    JoinMessage,
    PassChitMessage,
    PassExecutedMessage,
    PlayAgainMessage,
    RejoinMessage,
    StartGameMessage,
    UpdateSettingsMessage,
    WinnerMessage,
    client_message_adapter,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Settings normalisation
# ---------------------------------------------------------------------------

def clean_entity_names(raw: Iterable[str]) -> List[str]:
    """Trim, truncate and de-duplicate *raw*; reject lists left with fewer than 2 names."""
    cleaned: List[str] = []
    for name in raw:
        name = name.strip()[:MAX_ENTITY_NAME_LEN]
        if name and name not in cleaned:
            cleaned.append(name)
    cleaned = cleaned[:MAX_ENTITIES]
    if len(cleaned) < MIN_ENTITIES:
        raise ValidationError(f"Need at least {MIN_ENTITIES} entity names")
    return cleaned


def clamp_max_players(value: int) -> int:
    return max(MIN_PLAYERS, min(MAX_PLAYERS, value))


def clean_room_name(raw: str, current: str) -> str:
    return raw.strip()[:MAX_ROOM_NAME_LEN] or current


# ---------------------------------------------------------------------------
# Dealing
# ---------------------------------------------------------------------------

def pad_entity_names(names: List[str], count: int) -> List[str]:
    """Return *names* extended with ``EntityK`` placeholders up to *count* entries."""
    padded = list(names)
    k = len(padded)
    while len(padded) < count:
        k += 1
        placeholder = f"Entity{k}"
        if placeholder not in padded:
            padded.append(placeholder)
    return padded


def build_chit_pool(names: List[str], num_players: int) -> List[str]:
    """Four chits of each of the first *num_players* names, cycling *names* if short."""
    pool: List[str] = []
    for i in range(num_players):
        pool.extend([names[i % len(names)]] * CHITS_PER_ENTITY)
    return pool


def deal_hands(names: List[str], num_players: int, rng: Optional[random.Random] = None) -> List[List[str]]:
    """Shuffle a fresh pool and split it into contiguous hands of four."""
    pool = build_chit_pool(names, num_players)
    (rng or random).shuffle(pool)
    return [pool[i * HAND_SIZE:(i + 1) * HAND_SIZE] for i in range(num_players)]


# ---------------------------------------------------------------------------
# Winning
# ---------------------------------------------------------------------------

def winning_entity(hand: List[str]) -> Optional[str]:
    """Return the matched entity if *hand* is four of a kind, else ``None``."""
    if len(hand) != HAND_SIZE:
        return None
    first = hand[0]
    if all(chit == first for chit in hand):
        return first
    return None


# ---------------------------------------------------------------------------
# Roster handlers
# ---------------------------------------------------------------------------

def handle_join(room: Room, conn_id: str, msg: JoinMessage) -> None:
    player, token = room.add_player(conn_id, msg.name)
    room.send_session(player, token)
    room.broadcast_state()


def handle_rejoin(room: Room, conn_id: str, msg: RejoinMessage) -> None:
    player, token = room.rebind_player(msg.token, conn_id)
    room.send_session(player, token)
    room.broadcast_state()
    if room.phase != Phase.LOBBY:
        room.send_hand(player)


def handle_disconnect(room: Room, conn_id: str) -> None:
    if room.mark_disconnected(conn_id) is not None:
        room.broadcast_state()


# ---------------------------------------------------------------------------
# Lobby handlers
# ---------------------------------------------------------------------------

def handle_update_settings(room: Room, conn_id: str, msg: UpdateSettingsMessage) -> None:
    if conn_id != room.owner_id:
        raise AuthorizationError("Only owner can change settings")
    room.require_phase(Phase.LOBBY, message="Cannot change settings during game")

    update = msg.settings
    changes = {}
    if update.entity_names is not None:
        changes["entity_names"] = clean_entity_names(update.entity_names)
    if update.max_players is not None:
        changes["max_players"] = clamp_max_players(update.max_players)
    if update.room_name is not None:
        changes["room_name"] = clean_room_name(update.room_name, room.settings.room_name)
    if update.pass_mode is not None:
        changes["pass_mode"] = update.pass_mode

    room.settings = room.settings.model_copy(update=changes)
    room.broadcast_state()


def handle_start_game(room: Room, conn_id: str) -> None:
    if conn_id != room.owner_id:
        raise AuthorizationError("Only owner can start the game")
    room.require_phase(Phase.LOBBY, message="Game already in progress")
    players = room.connected_players()
    if len(players) < MIN_PLAYERS:
        raise ValidationError(f"Need at least {MIN_PLAYERS} players to start")

    room.settings.entity_names = pad_entity_names(room.settings.entity_names, len(players))
    hands = deal_hands(room.settings.entity_names, len(players), room.rng)
    for player, hand in zip(players, hands):
        player.hand = hand

    # Lock the player order for clockwise passing
    room.player_order = [p.id for p in players]
    room.current_turn_index = 0
    room.pass_round = 1
    room.clear_winner()
    room.transition(Phase.PLAYING)
    logger.info("room %s: dealt %d chits to %d players", room.room_id, len(players) * HAND_SIZE, len(players))

    room.broadcast_state()
    room.broadcast(GameStartedMessage())
    for player in players:
        room.send_hand(player)


# ---------------------------------------------------------------------------
# In-game handlers
# ---------------------------------------------------------------------------

def handle_pass_chit(room: Room, conn_id: str, msg: PassChitMessage) -> None:
    if room.phase != Phase.PLAYING:
        logger.debug("room %s: pass from %s ignored outside play", room.room_id, conn_id)
        return
    sender = room.players.get(conn_id)
    if sender is None:
        return
    if conn_id != room.current_turn_player_id:
        raise TurnViolationError()
    if not 0 <= msg.chit_index < len(sender.hand):
        raise ValidationError("Chit index out of range")

    next_index = (room.current_turn_index + 1) % len(room.player_order)
    receiver = room.players[room.player_order[next_index]]

    chit = sender.hand.pop(msg.chit_index)
    receiver.hand.append(chit)
    room.send_hand(sender)
    room.send_hand(receiver)

    room.current_turn_index = next_index
    if next_index == 0:
        room.pass_round += 1
        room.broadcast(PassExecutedMessage(pass_round=room.pass_round))
    room.broadcast_state()


def handle_claim_win(room: Room, conn_id: str) -> None:
    if room.phase != Phase.PLAYING:
        return
    player = room.players.get(conn_id)
    if player is None:
        return
    entity = winning_entity(player.hand)
    if entity is None:
        raise ClaimRejected()

    room.transition(Phase.FINISHED)
    room.winner = player.id
    room.winner_name = player.name
    room.winner_entity = entity
    player.score += 1
    logger.info("room %s: %s wins round %d with %s", room.room_id, player.name, room.round, entity)

    room.broadcast(WinnerMessage(player_id=player.id, player_name=player.name, entity=entity))
    room.broadcast_state()


def handle_play_again(room: Room, conn_id: str) -> None:
    if conn_id != room.owner_id:
        raise AuthorizationError("Only owner can start another round")
    if room.phase != Phase.FINISHED:
        return
    room.transition(Phase.LOBBY)
    room.clear_winner()
    room.round += 1
    for player in room.players.values():
        player.hand = []
    room.broadcast_state()


# ---------------------------------------------------------------------------
# Primary dispatcher used by websocket endpoint
# ---------------------------------------------------------------------------

def _describe(exc: PayloadError) -> str:
    errors = exc.errors()
    if not errors:
        return "Malformed message"
    first = errors[0]
    if first["type"] == "json_invalid":
        return "Malformed JSON"
    if first["type"] in ("union_tag_invalid", "union_tag_not_found"):
        return "Unknown message type"
    loc = ".".join(str(part) for part in first.get("loc", ()))
    return f"Invalid {loc}: {first['msg']}" if loc else first["msg"]


def parse_client_message(raw: Union[str, bytes, dict]) -> ClientMessage:
    """Validate one inbound frame; any defect becomes a ``ValidationError``."""
    try:
        if isinstance(raw, dict):
            return client_message_adapter.validate_python(raw)
        return client_message_adapter.validate_json(raw)
    except PayloadError as exc:
        raise ValidationError(_describe(exc)) from exc


def dispatch(room: Room, conn_id: str, msg: ClientMessage) -> None:
    if isinstance(msg, JoinMessage):
        handle_join(room, conn_id, msg)
    elif isinstance(msg, UpdateSettingsMessage):
        handle_update_settings(room, conn_id, msg)
    elif isinstance(msg, StartGameMessage):
        handle_start_game(room, conn_id)
    elif isinstance(msg, PassChitMessage):
        handle_pass_chit(room, conn_id, msg)
    elif isinstance(msg, ClaimWinMessage):
        handle_claim_win(room, conn_id)
    elif isinstance(msg, PlayAgainMessage):
        handle_play_again(room, conn_id)
    elif isinstance(msg, RejoinMessage):
        handle_rejoin(room, conn_id, msg)


def handle_ws_message(room: Room, conn_id: str, raw: Union[str, bytes, dict]) -> None:
    try:
        dispatch(room, conn_id, parse_client_message(raw))
    except GameError as exc:
        logger.info("room %s: rejected %s from %s: %s", room.room_id, type(exc).__name__, conn_id, exc)
        room.send_error(conn_id, str(exc))


__all__ = [
    "clean_entity_names",
    "clamp_max_players",
    "clean_room_name",
    "pad_entity_names",
    "build_chit_pool",
    "deal_hands",
    "winning_entity",
    "handle_join",
    "handle_rejoin",
    "handle_disconnect",
    "handle_update_settings",
    "handle_start_game",
    "handle_pass_chit",
    "handle_claim_win",
    "handle_play_again",
    "parse_client_message",
    "dispatch",
    "handle_ws_message",
]
