"""Rejections raised by room handlers.

Every error is recoverable: the handler raising it has not touched room
state, and the dispatcher reports ``str(error)`` to the originating
connection only.
"""
from __future__ import annotations


class GameError(Exception):
    """Base class for every action the room refuses."""

    default_message = "Action rejected"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class AuthorizationError(GameError):
    """A non-owner attempted an owner-only action."""

    default_message = "Only the room owner can do that"


class StateError(GameError):
    """The action is not valid in the room's current phase."""

    default_message = "Not allowed right now"


class CapacityError(GameError):
    default_message = "Room is full"


class ValidationError(GameError):
    """Malformed payload, bad settings or an out-of-range chit index."""

    default_message = "Invalid request"


class TurnViolationError(GameError):
    default_message = "It's not your turn!"


class ClaimRejected(GameError):
    default_message = "Invalid win claim: not 4 matching chits!"


__all__ = [
    "GameError",
    "AuthorizationError",
    "StateError",
    "CapacityError",
    "ValidationError",
    "TurnViolationError",
    "ClaimRejected",
]
