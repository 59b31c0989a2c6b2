"""Tests for the relay server HTTP and WebSocket API."""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from worship_presenter import __version__
from worship_presenter.server.main import app


def slide_body(room_id, pin, kind="blank"):
    return {"room_id": room_id, "room_pin": pin, "primary": {"kind": kind}}


@pytest.fixture
def client():
    """Test client with the lifespan (and so the room registry) running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def created(client):
    """A room created through the API."""
    response = client.post("/api/v1/rooms", json={"background_image": "bg.png"})
    assert response.status_code == 200
    return response.json()


class TestServiceEndpoints:
    """Tests for root and health endpoints."""

    def test_root(self, client):
        """Returns service info."""
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["version"] == __version__

    def test_health_counts_rooms(self, client, created):
        """Reports healthy with the number of live rooms."""
        data = client.get("/api/v1/health").json()

        assert data["status"] == "healthy"
        assert data["rooms"] == 1


class TestRooms:
    """Tests for room creation and lookup."""

    def test_create_room(self, created):
        """Creates a room with an id, a PIN and the background."""
        assert len(created["room_id"]) == 32
        assert len(created["pin"]) == 4
        assert created["background_image"] == "bg.png"
        assert created["viewer_count"] == 0

    def test_create_room_without_body_fields(self, client):
        """Creates a room with an empty background by default."""
        response = client.post("/api/v1/rooms", json={})

        assert response.status_code == 200
        assert response.json()["background_image"] == ""

    def test_get_by_pin(self, client, created):
        """Finds a room by PIN in any letter case."""
        response = client.get(f"/api/v1/rooms/{created['pin'].lower()}")

        assert response.status_code == 200
        assert response.json()["room_id"] == created["room_id"]

    def test_unknown_pin(self, client):
        """Returns 404 for an unknown PIN."""
        assert client.get("/api/v1/rooms/ZZZZZZ").status_code == 404

    def test_delete_room(self, client, created):
        """Closes a room and frees its PIN."""
        response = client.delete(f"/api/v1/rooms/{created['room_id']}")

        assert response.status_code == 200
        assert response.json()["pin"] == created["pin"]
        assert client.get(f"/api/v1/rooms/{created['pin']}").status_code == 404
        assert client.get("/api/v1/health").json()["rooms"] == 0

    def test_delete_unknown_room(self, client):
        """Returns 404 when deleting a room that does not exist."""
        assert client.delete("/api/v1/rooms/missing").status_code == 404


class TestRelay:
    """Tests for relaying updates to viewers."""

    def test_slide_to_unknown_room(self, client):
        """Returns 404 when the room does not exist."""
        response = client.post("/api/v1/rooms/missing/slide", json=slide_body("missing", "ABCD"))

        assert response.status_code == 404

    def test_invalid_payload(self, client, created):
        """Rejects a payload without room identifiers."""
        response = client.post(f"/api/v1/rooms/{created['room_id']}/slide", json={"primary": {}})

        assert response.status_code == 422

    def test_no_viewers(self, client, created):
        """Accepts an update with nobody watching."""
        response = client.post(
            f"/api/v1/rooms/{created['room_id']}/slide",
            json=slide_body(created["room_id"], created["pin"]),
        )

        assert response.json() == {"room_id": created["room_id"], "delivered": 0}

    def test_fan_out(self, client, created):
        """Delivers an update to every connected viewer."""
        room_id, pin = created["room_id"], created["pin"]

        with client.websocket_connect(f"/api/v1/rooms/{pin}/ws") as first:
            with client.websocket_connect(f"/api/v1/rooms/{pin}/ws") as second:
                response = client.post(f"/api/v1/rooms/{room_id}/slide", json=slide_body(room_id, pin, "none"))

                assert response.json()["delivered"] == 2
                for viewer in (first, second):
                    message = viewer.receive_json()
                    assert message["type"] == "slide_update"
                    assert message["payload"]["primary"]["kind"] == "none"
                    assert message["payload"]["room_pin"] == pin

                assert client.get(f"/api/v1/rooms/{pin}").json()["viewer_count"] == 2

    def test_late_viewer_gets_current_screen(self, client, created):
        """Replays the last update to a viewer that joins afterwards."""
        room_id, pin = created["room_id"], created["pin"]
        client.post(f"/api/v1/rooms/{room_id}/slide", json=slide_body(room_id, pin, "blank"))

        with client.websocket_connect(f"/api/v1/rooms/{pin}/ws") as viewer:
            message = viewer.receive_json()

        assert message["type"] == "slide_update"
        assert message["payload"]["primary"]["kind"] == "blank"

    def test_local_media_status(self, client, created):
        """Relays local media status and replays it while visible."""
        room_id, pin = created["room_id"], created["pin"]

        with client.websocket_connect(f"/api/v1/rooms/{pin}/ws") as viewer:
            response = client.post(f"/api/v1/rooms/{room_id}/local-media", json={"visible": True})
            assert response.json()["delivered"] == 1
            assert viewer.receive_json() == {"type": "local_media_status", "visible": True}

        with client.websocket_connect(f"/api/v1/rooms/{pin}/ws") as late:
            assert late.receive_json() == {"type": "local_media_status", "visible": True}

    def test_unknown_pin_socket_closed(self, client):
        """Closes a viewer socket for an unknown PIN."""
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/api/v1/rooms/ZZZZ/ws"):
                pass

        assert exc_info.value.code == 4404
