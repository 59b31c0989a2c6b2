"""Real-time transport from the presenter to viewer displays.

The broadcast encoder is the only caller. ``InMemoryTransport`` records
what would have been sent; ``RelayTransport`` posts to the relay server from
a single background worker, so payloads leave in the order they were
produced without blocking the UI on network I/O.
"""

import queue
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

import requests

from worship_presenter.core.payload import SlideUpdatePayload
from worship_presenter.logging_config import get_logger

logger = get_logger(__name__)


class TransportError(Exception):
    """Error communicating with the relay server."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BroadcastTransport(ABC):
    """Outbound channel to the viewers of a room."""

    @abstractmethod
    def send_slide_update(self, payload: SlideUpdatePayload) -> None:
        """Send a slide update to every viewer of ``payload.room_id``."""

    @abstractmethod
    def send_local_media_status(self, room_id: str, visible: bool) -> None:
        """Tell viewers whether local (HDMI-only) media is covering them."""

    def close(self) -> None:
        """Release resources held by the transport."""


class InMemoryTransport(BroadcastTransport):
    """Transport that keeps everything it is asked to send.

    Attributes:
        payloads: Slide updates in send order
        local_media: (room_id, visible) status updates in send order
    """

    def __init__(self):
        self.payloads: List[SlideUpdatePayload] = []
        self.local_media: List[Tuple[str, bool]] = []

    def send_slide_update(self, payload: SlideUpdatePayload) -> None:
        self.payloads.append(payload)

    def send_local_media_status(self, room_id: str, visible: bool) -> None:
        self.local_media.append((room_id, visible))

    @property
    def last_payload(self) -> Optional[SlideUpdatePayload]:
        """Most recently sent slide update, if any."""
        return self.payloads[-1] if self.payloads else None


class RelayTransport(BroadcastTransport):
    """Transport that posts to the relay server over HTTP.

    Attributes:
        base_url: Base URL of the relay server
        timeout: Request timeout in seconds
    """

    def __init__(self, base_url: str, timeout: int = 5):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._queue: "queue.Queue[Optional[Tuple[str, Dict[str, Any]]]]" = queue.Queue()
        self._worker: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    def _ensure_worker(self) -> None:
        with self._lock:
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(
                    target=self._run, name="relay-transport", daemon=True
                )
                self._worker.start()

    def _run(self) -> None:
        while True:
            job = self._queue.get()
            try:
                if job is None:
                    return
                path, body = job
                self._post(path, body)
            except TransportError as e:
                logger.error(f"Relay send failed: {e}")
            finally:
                self._queue.task_done()

    def _post(self, path: str, body: Dict[str, Any]) -> None:
        """POST a JSON body to the relay.

        Raises:
            TransportError: If the request fails
        """
        try:
            response = requests.post(
                f"{self.base_url}{path}",
                json=body,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"Cannot connect to relay at {self.base_url}: {e}")
        except requests.exceptions.RequestException as e:
            status = getattr(e.response, "status_code", None)
            raise TransportError(f"POST {path} failed: {e}", status_code=status)

    def _enqueue(self, path: str, body: Dict[str, Any]) -> None:
        self._ensure_worker()
        self._queue.put((path, body))

    def send_slide_update(self, payload: SlideUpdatePayload) -> None:
        self._enqueue(
            f"/api/v1/rooms/{payload.room_id}/slide",
            payload.model_dump(mode="json"),
        )

    def send_local_media_status(self, room_id: str, visible: bool) -> None:
        self._enqueue(f"/api/v1/rooms/{room_id}/local-media", {"visible": visible})

    def flush(self) -> None:
        """Block until every queued message has been sent (or failed)."""
        if self._worker is not None:
            self._queue.join()

    def close(self) -> None:
        """Send what is queued, then stop the worker."""
        if self._worker is None:
            return
        self._queue.put(None)
        self._worker.join(timeout=self.timeout)
        self._worker = None
