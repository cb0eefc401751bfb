"""Tests for the HTTP endpoints and the bridge WebSocket."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from serial.tools.list_ports_common import ListPortInfo

from u120_bridge.api.dependencies import app_state
from u120_bridge.main import app


@pytest.fixture
def client():
    """Test client with the real lifespan."""
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


class TestRootEndpoint:
    """Tests for GET / endpoint."""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "U120 Bridge"
        assert "version" in data
        assert data["status"] == "running"


class TestHealthEndpoint:
    """Tests for GET /health endpoint."""

    def test_health_idle(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "idle"
        assert data["session_state"] == "idle"
        assert data["port"] is None
        assert data["last_record_available"] is False

    def test_health_not_initialized(self, client):
        manager = app_state.manager
        app_state.manager = None
        try:
            response = client.get("/health")
        finally:
            app_state.manager = manager

        assert response.json()["status"] == "unhealthy"

    def test_health_while_reading(self, client, serial_driver):
        with client.websocket_connect("/") as ws:
            ws.send_json({"action": "start-reading", "data": {"port": "/dev/ttyUSB0"}})
            ws.receive_json()

            data = client.get("/health").json()

            assert data["status"] == "healthy"
            assert data["port"] == "/dev/ttyUSB0"
            assert data["clients"] == 1

            ws.send_json({"action": "stop-reading"})
            ws.receive_json()


class TestPortsEndpoint:
    """Tests for GET /api/ports endpoint."""

    def test_ports(self, client):
        ports = [ListPortInfo("/dev/ttyUSB1"), ListPortInfo("/dev/ttyACM0")]

        with patch("u120_bridge.serial.connection.serial_list_ports.comports", return_value=ports):
            response = client.get("/api/ports")

        assert response.status_code == 200
        assert [p["path"] for p in response.json()] == ["/dev/ttyACM0", "/dev/ttyUSB1"]


class TestStatusEndpoint:
    """Tests for GET /api/status endpoint."""

    def test_status_idle(self, client):
        response = client.get("/api/status")

        assert response.status_code == 200
        assert response.json() == {"status": "disconnected", "message": "No active session."}


class TestBridgeSocket:
    """Tests for the WebSocket channel at /."""

    def test_get_status(self, client):
        with client.websocket_connect("/") as ws:
            ws.send_json({"action": "get-status"})
            reply = ws.receive_json()

        assert reply["action"] == "sync-status"
        assert reply["data"]["status"] == "disconnected"

    def test_garbage_does_not_close_channel(self, client):
        with client.websocket_connect("/") as ws:
            ws.send_text("this is not json")
            ws.send_bytes(b"\x00\x01\x02")
            ws.send_json({"action": "get-status"})
            reply = ws.receive_json()

        assert reply["action"] == "sync-status"

    def test_start_and_stop_reading(self, client, serial_driver):
        with client.websocket_connect("/") as ws:
            ws.send_json({"action": "start-reading", "data": {"port": "/dev/ttyUSB0", "baudRate": 4800}})
            opened = ws.receive_json()

            ws.send_json({"action": "stop-reading"})
            closed = ws.receive_json()

        assert opened == {
            "action": "device-status",
            "status": "connected",
            "message": "Listening on /dev/ttyUSB0. Please perform a test.",
        }
        assert serial_driver.transports[0].kwargs["baudrate"] == 4800
        assert closed["status"] == "disconnected"

    def test_invalid_config(self, client, serial_driver):
        with client.websocket_connect("/") as ws:
            ws.send_json({"action": "start-reading", "data": {"baudRate": 9600}})
            reply = ws.receive_json()

        assert reply == {"action": "device-error", "message": "Port configuration is missing."}
        assert serial_driver.transports == []
