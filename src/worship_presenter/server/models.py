"""Pydantic models for relay API requests and responses."""

from pydantic import BaseModel


class CreateRoomRequest(BaseModel):
    """Request to create a room."""

    background_image: str = ""


class RoomResponse(BaseModel):
    """A room as seen by presenters and viewers."""

    room_id: str
    pin: str
    background_image: str = ""
    viewer_count: int = 0


class DeliveryResponse(BaseModel):
    """Result of a fan-out to viewers."""

    room_id: str
    delivered: int
