from __future__ import annotations

from fastapi import APIRouter, HTTPException

from ..registry import get_room, new_room_code, open_room, schedule_prune
from ..schemas import HealthResponse, RoomCreatedResponse, RoomState
from ..state import rooms

router = APIRouter(prefix="", tags=["rooms"])


@router.post("/rooms", response_model=RoomCreatedResponse, response_model_by_alias=True)
async def create_room():
    room = open_room(new_room_code())
    # Nobody is connected yet; the room goes away if nobody shows up
    schedule_prune(room)
    return RoomCreatedResponse(room_id=room.room_id)


@router.get("/rooms/{room_id}", response_model=RoomState, response_model_by_alias=True)
async def get_room_state(room_id: str):
    room = get_room(room_id)
    if not room:
        raise HTTPException(status_code=404, detail="Room not found")
    return room.snapshot()


@router.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(rooms=len(rooms))
