"""
==============================================================================
Scanner WebSocket Tests
==============================================================================

Tests for the /ws/scan message protocol.

==============================================================================
"""

import base64

import cv2
import numpy as np
import pytest
from fastapi.testclient import TestClient

from labelscan.pipeline import RawDecodeEvent
from labelscan.scanner import FrameDecoder

from conftest import VALID_CODE


def encoded_frame() -> str:
    """Blank PNG frame as base64."""
    ok, buffer = cv2.imencode(".png", np.zeros((8, 8, 3), dtype=np.uint8))
    assert ok
    return base64.b64encode(buffer.tobytes()).decode("ascii")


@pytest.fixture
def ws_url(operator_token: str) -> str:
    return f"/ws/scan?token={operator_token}"


class TestConnection:
    """Tests for connection setup and teardown."""

    def test_ready_message(self, client: TestClient, ws_url: str):
        with client.websocket_connect(ws_url) as ws:
            ready = ws.receive_json()

        assert ready["type"] == "ready"
        assert ready["state"]["last_result"] is None
        assert ready["capture"]["facing_mode"] == "environment"

    def test_missing_token(self, client: TestClient):
        with client.websocket_connect("/ws/scan") as ws:
            message = ws.receive_json()

        assert message["type"] == "error"
        assert message["code"] == "AUTH_REQUIRED"

    def test_invalid_token(self, client: TestClient):
        with client.websocket_connect("/ws/scan?token=garbage") as ws:
            assert ws.receive_json()["code"] == "AUTH_REQUIRED"

    def test_stop(self, client: TestClient, ws_url: str):
        with client.websocket_connect(ws_url) as ws:
            ws.receive_json()
            ws.send_json({"type": "stop"})
            reply = ws.receive_json()

        assert reply["type"] == "state"
        assert {"command": "stop"} in reply["commands"]


class TestMessages:
    """Tests for one-reply-per-message dispatch."""

    def test_decode_flow(self, client: TestClient, ws_url: str):
        with client.websocket_connect(ws_url) as ws:
            ws.receive_json()

            ws.send_json({"type": "decode", "text": f"*{VALID_CODE}*", "format": "CODE_39"})
            first = ws.receive_json()
            ws.send_json({"type": "decode", "text": f"*{VALID_CODE}*", "format": "CODE_39"})
            second = ws.receive_json()

        assert first["outcome"]["reason"] == "unstable"
        assert second["type"] == "outcome"
        assert second["outcome"]["code"] == VALID_CODE
        assert second["state"]["last_result"] == VALID_CODE
        assert {"command": "feedback", "code": VALID_CODE} in second["commands"]

    def test_devices_and_capabilities(self, client: TestClient, ws_url: str):
        with client.websocket_connect(ws_url) as ws:
            ws.receive_json()

            ws.send_json({"type": "devices", "devices": [
                {"id": "f", "label": "Front"},
                {"id": "b", "label": "Back Camera"},
            ]})
            devices = ws.receive_json()

            ws.send_json({"type": "capabilities", "torch": True, "zoomRange": [1, 2]})
            capabilities = ws.receive_json()

            ws.send_json({"type": "torch", "on": True})
            torch = ws.receive_json()

            ws.send_json({"type": "zoom", "value": 5})
            zoom = ws.receive_json()

        assert devices["state"]["selected_device"]["id"] == "b"
        assert capabilities["state"]["torch_available"] is True
        assert torch["commands"] == [{"command": "torch", "on": True}]
        assert zoom["state"]["zoom"] == 2.0

    def test_permission_and_decode_error(self, client: TestClient, ws_url: str):
        with client.websocket_connect(ws_url) as ws:
            ws.receive_json()

            ws.send_json({"type": "permission", "granted": False})
            permission = ws.receive_json()
            ws.send_json({"type": "decode_error", "message": "NotFoundException"})
            error = ws.receive_json()

        assert permission["state"]["notices"][0]["code"] == "PERMISSION_DENIED"
        assert error["state"]["stats"]["decode_errors"] == 1

    def test_select_unknown_device(self, client: TestClient, ws_url: str):
        with client.websocket_connect(ws_url) as ws:
            ws.receive_json()
            ws.send_json({"type": "select_device", "device_id": "ghost"})
            reply = ws.receive_json()

        assert reply["type"] == "error"
        assert reply["code"] == "DEVICE_NOT_FOUND"

    @pytest.mark.parametrize("message", [
        {"type": "teleport"},
        {"type": "permission"},
        {"type": "zoom", "value": "wide"},
        ["not", "an", "object"],
    ])
    def test_invalid_messages(self, client: TestClient, ws_url: str, message):
        with client.websocket_connect(ws_url) as ws:
            ws.receive_json()
            ws.send_json(message)
            reply = ws.receive_json()

            # connection stays usable
            ws.send_json({"type": "decode_error"})
            follow_up = ws.receive_json()

        assert reply["type"] == "error"
        assert reply["code"] == "INVALID_MESSAGE"
        assert follow_up["type"] == "state"

    def test_non_json_text(self, client: TestClient, ws_url: str):
        with client.websocket_connect(ws_url) as ws:
            ws.receive_json()
            ws.send_text("hello")
            reply = ws.receive_json()

        assert reply["code"] == "INVALID_MESSAGE"


class TestFrames:
    """Tests for server-side frame decoding."""

    def test_frame_with_code(self, client: TestClient, ws_url: str, monkeypatch):
        monkeypatch.setattr(
            FrameDecoder, "decode",
            lambda self, frame: [RawDecodeEvent(text=f"*{VALID_CODE}*", format_tag="CODE39")]
        )

        with client.websocket_connect(ws_url) as ws:
            ws.receive_json()
            ws.send_json({"type": "frame", "frame": encoded_frame()})
            first = ws.receive_json()
            ws.send_json({"type": "frame", "frame": encoded_frame()})
            second = ws.receive_json()

        assert first["outcome"]["reason"] == "unstable"
        assert second["outcome"]["status"] == "accepted"
        assert second["state"]["last_result"] == VALID_CODE

    def test_frame_with_two_symbols(self, client: TestClient, ws_url: str, monkeypatch):
        """Test a label with a second barcode still stabilizes on the code."""
        monkeypatch.setattr(
            FrameDecoder, "decode",
            lambda self, frame: [
                RawDecodeEvent(text="4006381333931", format_tag="EAN13"),
                RawDecodeEvent(text=VALID_CODE, format_tag="CODE128"),
            ]
        )

        with client.websocket_connect(ws_url) as ws:
            ws.receive_json()
            ws.send_json({"type": "frame", "frame": encoded_frame()})
            first = ws.receive_json()
            ws.send_json({"type": "frame", "frame": encoded_frame()})
            second = ws.receive_json()

        assert first["outcome"]["reason"] == "unstable"
        assert second["outcome"]["status"] == "accepted"
        assert second["outcome"]["code"] == VALID_CODE
        assert second["state"]["stats"]["decoded"] == 2

    def test_frame_without_code(self, client: TestClient, ws_url: str, monkeypatch):
        monkeypatch.setattr(FrameDecoder, "decode", lambda self, frame: [])

        with client.websocket_connect(ws_url) as ws:
            ws.receive_json()
            ws.send_json({"type": "frame", "frame": encoded_frame()})
            reply = ws.receive_json()

        assert reply["outcome"] is None
        assert reply["state"]["stats"]["decode_errors"] == 1

    def test_unreadable_image(self, client: TestClient, ws_url: str):
        payload = base64.b64encode(b"not an image").decode("ascii")

        with client.websocket_connect(ws_url) as ws:
            ws.receive_json()
            ws.send_json({"type": "frame", "frame": payload})
            reply = ws.receive_json()

        assert reply["type"] == "outcome"
        assert reply["state"]["stats"]["decode_errors"] == 1

    def test_invalid_base64(self, client: TestClient, ws_url: str):
        with client.websocket_connect(ws_url) as ws:
            ws.receive_json()
            ws.send_json({"type": "frame", "frame": "***"})
            reply = ws.receive_json()

        assert reply["code"] == "INVALID_MESSAGE"
