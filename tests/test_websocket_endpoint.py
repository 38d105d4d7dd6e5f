"""WebSocket endpoint authentication (sync TestClient)."""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from grievance_api.main import app


def test_ping_pong_with_valid_token(db, student, auth_headers):
    token = auth_headers(student)["x-auth-token"]
    # The endpoint opens its own session on the same connection
    db.commit()
    with TestClient(app) as client:
        with client.websocket_connect(f"/ws/notifications?token={token}") as ws:
            ws.send_text("ping")
            assert ws.receive_text() == "pong"


def test_invalid_token_is_closed(db):
    with TestClient(app) as client:
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect("/ws/notifications?token=bad") as ws:
                ws.receive_text()
    assert exc.value.code == 4001
