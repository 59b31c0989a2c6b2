"""In-memory room registry and viewer fan-out.

Each room keeps the last slide update it relayed so a viewer that joins
late is brought up to date immediately. Rooms left idle with nobody
watching are expired by a periodic sweep.
"""

import asyncio
import logging
import secrets
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from fastapi import WebSocket

logger = logging.getLogger(__name__)

# Confusable characters (0/O, 1/I) are left out
PIN_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


@dataclass
class Room:
    """A live room.

    Attributes:
        room_id: Room identifier used by the presenter
        pin: Code viewers join with
        background_image: Background shown behind slides
        created_at: When the room was created
        last_activity: Last time the presenter or a viewer used the room
        last_payload: Last slide update relayed to viewers
        local_media_visible: Last local media status relayed
        viewers: Connected viewer sockets
    """

    room_id: str
    pin: str
    background_image: str = ""
    created_at: datetime = field(default_factory=datetime.now)
    last_activity: datetime = field(default_factory=datetime.now)
    last_payload: Optional[Dict[str, Any]] = None
    local_media_visible: Optional[bool] = None
    viewers: set = field(default_factory=set)

    def touch(self) -> None:
        self.last_activity = datetime.now()

    def is_expired(self, max_idle: timedelta, now: datetime) -> bool:
        """Idle longer than ``max_idle`` with no viewer connected."""
        return not self.viewers and now - self.last_activity > max_idle


def slide_message(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "slide_update", "payload": payload}


def local_media_message(visible: bool) -> Dict[str, Any]:
    return {"type": "local_media_status", "visible": visible}


class RoomRegistry:
    """Rooms by id and by PIN."""

    def __init__(self, pin_length: int = 4):
        self.pin_length = pin_length
        self._by_id: Dict[str, Room] = {}
        self._by_pin: Dict[str, Room] = {}

    def __len__(self) -> int:
        return len(self._by_id)

    def generate_pin(self) -> str:
        """Generate a PIN no live room uses."""
        while True:
            pin = "".join(secrets.choice(PIN_ALPHABET) for _ in range(self.pin_length))
            if pin not in self._by_pin:
                return pin

    def create_room(self, background_image: str = "") -> Room:
        room = Room(room_id=uuid.uuid4().hex, pin=self.generate_pin(), background_image=background_image)
        self._by_id[room.room_id] = room
        self._by_pin[room.pin] = room
        logger.info(f"Created room {room.room_id} with PIN {room.pin}")
        return room

    def get_by_id(self, room_id: str) -> Optional[Room]:
        return self._by_id.get(room_id)

    def get_by_pin(self, pin: str) -> Optional[Room]:
        return self._by_pin.get(pin.strip().upper())

    def remove_room(self, room_id: str) -> bool:
        room = self._by_id.pop(room_id, None)
        if room is None:
            return False
        self._by_pin.pop(room.pin, None)
        logger.info(f"Removed room {room.room_id} (PIN {room.pin})")
        return True

    def expire_rooms(self, max_idle: timedelta, now: Optional[datetime] = None) -> int:
        """Remove rooms idle longer than ``max_idle`` with no viewers.

        Returns:
            Number of rooms removed
        """
        now = now or datetime.now()
        expired = [room.room_id for room in self._by_id.values() if room.is_expired(max_idle, now)]
        for room_id in expired:
            self.remove_room(room_id)
        if expired:
            logger.info(f"Expired {len(expired)} idle room(s)")
        return len(expired)

    async def cleanup_loop(self, interval: float, max_idle: timedelta) -> None:
        """Expire idle rooms every ``interval`` seconds until cancelled."""
        while True:
            await asyncio.sleep(interval)
            try:
                self.expire_rooms(max_idle)
            except Exception as e:
                logger.error(f"Room cleanup failed: {e}")

    async def connect(self, room: Room, websocket: WebSocket) -> None:
        """Accept a viewer and replay the room's current screen to it."""
        await websocket.accept()
        room.viewers.add(websocket)
        room.touch()
        logger.info(f"Viewer joined room {room.pin} ({len(room.viewers)} connected)")

        if room.last_payload is not None:
            await websocket.send_json(slide_message(room.last_payload))
        if room.local_media_visible:
            await websocket.send_json(local_media_message(True))

    def disconnect(self, room: Room, websocket: WebSocket) -> None:
        room.viewers.discard(websocket)
        room.touch()
        logger.info(f"Viewer left room {room.pin} ({len(room.viewers)} connected)")

    async def publish(self, room: Room, message: Dict[str, Any]) -> int:
        """Send a message to every viewer, dropping viewers that fail.

        Returns:
            Number of viewers the message reached
        """
        room.touch()
        delivered = 0
        for websocket in list(room.viewers):
            try:
                await websocket.send_json(message)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping viewer of room {room.pin}: {e}")
                room.viewers.discard(websocket)
        return delivered

    async def publish_slide(self, room: Room, payload: Dict[str, Any]) -> int:
        room.last_payload = payload
        return await self.publish(room, slide_message(payload))

    async def publish_local_media(self, room: Room, visible: bool) -> int:
        room.local_media_visible = visible
        return await self.publish(room, local_media_message(visible))
