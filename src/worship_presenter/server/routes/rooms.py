"""Room, slide relay and viewer WebSocket endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect

from ...core.payload import LocalMediaStatus, SlideUpdatePayload
from ..models import CreateRoomRequest, DeliveryResponse, RoomResponse
from ..rooms import Room, RoomRegistry

logger = logging.getLogger(__name__)
router = APIRouter()

# Global room registry reference - set in main.py
room_registry: Optional[RoomRegistry] = None


def set_registry(registry: Optional[RoomRegistry]) -> None:
    """Set the global room registry reference.

    Args:
        registry: RoomRegistry instance
    """
    global room_registry
    room_registry = registry


def get_registry() -> RoomRegistry:
    """Get the room registry.

    Raises:
        HTTPException: If the server has not started yet
    """
    if room_registry is None:
        raise HTTPException(503, "Room registry not initialized")
    return room_registry


def room_to_response(room: Room) -> RoomResponse:
    return RoomResponse(
        room_id=room.room_id,
        pin=room.pin,
        background_image=room.background_image,
        viewer_count=len(room.viewers),
    )


def require_room(room_id: str) -> Room:
    room = get_registry().get_by_id(room_id)
    if room is None:
        raise HTTPException(404, f"Room not found: {room_id}")
    return room


@router.post("/rooms", response_model=RoomResponse)
async def create_room(request: CreateRoomRequest) -> RoomResponse:
    """Create a room for a presenter."""
    room = get_registry().create_room(request.background_image)
    return room_to_response(room)


@router.get("/rooms/{pin}", response_model=RoomResponse)
async def get_room(pin: str) -> RoomResponse:
    """Look up a room by viewer PIN."""
    room = get_registry().get_by_pin(pin)
    if room is None:
        raise HTTPException(404, f"No room with PIN {pin}")
    return room_to_response(room)


@router.delete("/rooms/{room_id}", response_model=RoomResponse)
async def delete_room(room_id: str) -> RoomResponse:
    """Close a room when its presenter leaves, freeing the PIN."""
    room = require_room(room_id)
    get_registry().remove_room(room_id)
    return room_to_response(room)


@router.post("/rooms/{room_id}/slide", response_model=DeliveryResponse)
async def publish_slide(room_id: str, payload: SlideUpdatePayload) -> DeliveryResponse:
    """Relay a slide update to every viewer of the room."""
    room = require_room(room_id)
    delivered = await get_registry().publish_slide(room, payload.model_dump(mode="json"))
    return DeliveryResponse(room_id=room_id, delivered=delivered)


@router.post("/rooms/{room_id}/local-media", response_model=DeliveryResponse)
async def publish_local_media(room_id: str, status: LocalMediaStatus) -> DeliveryResponse:
    """Tell viewers whether local media is covering them."""
    room = require_room(room_id)
    delivered = await get_registry().publish_local_media(room, status.visible)
    return DeliveryResponse(room_id=room_id, delivered=delivered)


@router.websocket("/rooms/{pin}/ws")
async def viewer_socket(websocket: WebSocket, pin: str) -> None:
    """Viewer connection: receives slide updates until it disconnects."""
    registry = room_registry
    room = registry.get_by_pin(pin) if registry is not None else None
    if room is None:
        await websocket.close(code=4404)
        return

    await registry.connect(room, websocket)
    try:
        while True:
            # Viewers only listen; anything they send is ignored
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        registry.disconnect(room, websocket)
