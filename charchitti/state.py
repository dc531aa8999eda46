"""Centralised in-memory runtime state.

This keeps the singletons that are shared across the whole application so
other modules can simply import them without worrying about circular
imports. Rooms never look at each other; the registry only maps room codes
to their authority.
"""
from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Dict

if TYPE_CHECKING:
    from .room import Room

rooms: Dict[str, "Room"] = {}

# Pending prune tasks for rooms that currently have no connection
cleanup_tasks: Dict[str, asyncio.Task] = {}

__all__ = ["rooms", "cleanup_tasks"]
