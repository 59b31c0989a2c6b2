"""HTTP client for opening and closing broadcast rooms on the relay server."""

from dataclasses import dataclass
from typing import Any, Dict

import requests

from worship_presenter.logging_config import get_logger
from worship_presenter.services.transport import TransportError

logger = get_logger(__name__)


@dataclass
class RoomInfo:
    """A broadcast room.

    Attributes:
        room_id: Relay-assigned room identifier
        pin: Short code viewers type to join
        background_image: Background shown behind slides
    """

    room_id: str
    pin: str
    background_image: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoomInfo":
        return cls(
            room_id=data["room_id"],
            pin=data["pin"],
            background_image=data.get("background_image") or "",
        )


class RoomClient:
    """Opens and closes rooms on the relay server.

    Attributes:
        base_url: Base URL of the relay server
        timeout: Request timeout in seconds
    """

    def __init__(self, base_url: str, timeout: int = 10):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def create_room(self, background_image: str = "") -> RoomInfo:
        """Create a room for this presenter session.

        Args:
            background_image: Background shown behind slides

        Returns:
            RoomInfo with the id and viewer PIN

        Raises:
            TransportError: If the relay cannot be reached or rejects the request
        """
        try:
            response = requests.post(
                f"{self.base_url}/api/v1/rooms",
                json={"background_image": background_image},
                timeout=self.timeout,
            )
            response.raise_for_status()
            room = RoomInfo.from_dict(response.json())
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"Cannot connect to relay at {self.base_url}: {e}")
        except requests.exceptions.RequestException as e:
            status = getattr(e.response, "status_code", None)
            raise TransportError(f"Room creation failed: {e}", status_code=status)
        except (KeyError, ValueError) as e:
            raise TransportError(f"Invalid room response: {e}")

        logger.info(f"Created room {room.room_id} (PIN {room.pin})")
        return room

    def close_room(self, room_id: str) -> bool:
        """Close a room so the relay frees its PIN.

        Args:
            room_id: Room to close

        Returns:
            True if the room was closed, False if the relay no longer had it

        Raises:
            TransportError: If the relay cannot be reached or rejects the request
        """
        try:
            response = requests.delete(
                f"{self.base_url}/api/v1/rooms/{room_id}",
                timeout=self.timeout,
            )
            if response.status_code == 404:
                logger.info(f"Room {room_id} already gone")
                return False
            response.raise_for_status()
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"Cannot connect to relay at {self.base_url}: {e}")
        except requests.exceptions.RequestException as e:
            status = getattr(e.response, "status_code", None)
            raise TransportError(f"Closing room failed: {e}", status_code=status)

        logger.info(f"Closed room {room_id}")
        return True
