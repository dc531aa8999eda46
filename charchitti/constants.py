from enum import Enum


class Phase(str, Enum):
    LOBBY = "lobby"
    PLAYING = "playing"
    FINISHED = "finished"


# Every legal phase change. Anything not listed here is rejected by Room.transition.
PHASE_TRANSITIONS: dict[Phase, set[Phase]] = {
    Phase.LOBBY: {Phase.PLAYING},
    Phase.PLAYING: {Phase.FINISHED},
    Phase.FINISHED: {Phase.LOBBY},
}

CHITS_PER_ENTITY = 4
HAND_SIZE = 4

MIN_PLAYERS = 2
MAX_PLAYERS = 8

MIN_ENTITIES = 2
MAX_ENTITIES = 10
MAX_ENTITY_NAME_LEN = 20

MAX_PLAYER_NAME_LEN = 20
DEFAULT_PLAYER_NAME = "Player"
MAX_ROOM_NAME_LEN = 40

DEFAULT_ROOM_NAME = "Char-Chitti Room"
DEFAULT_MAX_PLAYERS = 4
DEFAULT_ENTITIES = ["Lion", "Tiger", "Elephant", "Monkey"]

# Room codes avoid look-alike characters (0/O, 1/I/L).
ROOM_CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"

__all__ = [
    "Phase",
    "PHASE_TRANSITIONS",
    "CHITS_PER_ENTITY",
    "HAND_SIZE",
    "MIN_PLAYERS",
    "MAX_PLAYERS",
    "MIN_ENTITIES",
    "MAX_ENTITIES",
    "MAX_ENTITY_NAME_LEN",
    "MAX_PLAYER_NAME_LEN",
    "DEFAULT_PLAYER_NAME",
    "MAX_ROOM_NAME_LEN",
    "DEFAULT_ROOM_NAME",
    "DEFAULT_MAX_PLAYERS",
    "DEFAULT_ENTITIES",
    "ROOM_CODE_ALPHABET",
]
