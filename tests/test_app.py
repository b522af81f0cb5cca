import pytest
from fastapi.testclient import TestClient

from app import app


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def test_create_join_and_chat(client):
    with client.websocket_connect("/ws") as x:
        x.send_json({"type": "create-room", "roomId": "AB12CD"})
        assert x.receive_json() == {"type": "room-created", "roomId": "AB12CD", "userCount": 1}

        with client.websocket_connect("/ws") as y:
            y.send_json({"type": "join-room", "roomId": "ab12cd"})
            assert y.receive_json() == {"type": "joined-room", "roomId": "AB12CD"}
            assert y.receive_json() == {"type": "user-count-update", "userCount": 2}
            assert x.receive_json() == {"type": "user-count-update", "userCount": 2}

            y.send_json({"type": "chat-message", "roomId": "AB12CD", "content": "hello", "sender": "y"})
            assert y.receive_json() == {"type": "chat-message", "content": "hello", "sender": "y", "isOwnMessage": True}
            assert x.receive_json() == {"type": "chat-message", "content": "hello", "sender": "y", "isOwnMessage": False}

        assert x.receive_json() == {"type": "user-count-update", "userCount": 1}


def test_root_path_serves_the_relay(client):
    with client.websocket_connect("/") as ws:
        ws.send_json({"type": "create-room"})
        created = ws.receive_json()

    assert created["type"] == "room-created"
    assert len(created["roomId"]) == 6
    assert created["userCount"] == 1


def test_errors_keep_the_connection_open(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_text("definitely not json")
        assert ws.receive_json() == {"type": "error", "message": "Invalid message"}

        ws.send_json({"type": "shout"})
        assert ws.receive_json() == {"type": "error", "message": "Unknown message type"}

        ws.send_json({"type": "join-room", "roomId": "QQQQQQ"})
        assert ws.receive_json() == {"type": "error", "message": "Room not found"}

        ws.send_json({"type": "create-room", "roomId": "OPEN01"})
        assert ws.receive_json()["type"] == "room-created"


def test_room_survives_its_last_member(client):
    with client.websocket_connect("/ws") as x:
        x.send_json({"type": "create-room", "roomId": "KEEP01"})
        x.receive_json()

    with client.websocket_connect("/ws") as y:
        y.send_json({"type": "join-room", "roomId": "KEEP01"})
        assert y.receive_json() == {"type": "joined-room", "roomId": "KEEP01"}
        assert y.receive_json() == {"type": "user-count-update", "userCount": 1}


def test_reserve_room_over_http_then_join(client):
    response = client.post("/rooms/")
    assert response.status_code == 201
    body = response.json()
    assert body["ws_url"].endswith("/ws")
    room_id = body["room_id"]

    details = client.get(f"/rooms/{room_id.lower()}")
    assert details.status_code == 200
    assert details.json()["user_count"] == 0
    assert details.json()["is_empty"] is True

    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "join-room", "roomId": room_id})
        assert ws.receive_json() == {"type": "joined-room", "roomId": room_id}
        assert ws.receive_json() == {"type": "user-count-update", "userCount": 1}

        assert client.get(f"/rooms/{room_id}").json()["user_count"] == 1


def test_room_details_not_found(client):
    response = client.get("/rooms/NOPE00")

    assert response.status_code == 404
    assert response.json() == {"detail": "Room not found"}


def test_health(client):
    client.post("/rooms/")

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "rooms": 1}
