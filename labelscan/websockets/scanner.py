"""
==============================================================================
Scanner WebSocket Module
==============================================================================

Real-time scanning session over a WebSocket connection.

Protocol:
---------
1. Client connects with JWT token as query parameter
2. Server answers "ready" with the session state and capture configuration
3. Client sends one JSON message per event; the server answers each with
   exactly one JSON message ("state", "outcome" or "error") carrying the
   capture commands the client must apply
4. Client sends "stop" (or disconnects); the camera stop is requested

Client Message Types:
--------------------
    devices         {"devices": [{"id", "label"}]}
    permission      {"granted": bool}
    decode          {"text": str, "format": str}
    decode_error    {"message": str}
    capabilities    {"torch": bool, "zoomRange": [min, max]}
    frame           {"frame": base64 image}
    select_device   {"device_id": str}
    torch           {"on": bool}  (omit to toggle)
    zoom            {"value": float}
    stop            {}

==============================================================================
"""

import base64
import binascii
import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from labelscan.config import get_settings
from labelscan.core import exceptions
from labelscan.core.dependencies import AuthenticationManager
from labelscan.core.exceptions import AppException
from labelscan.core.security import get_security_manager
from labelscan.pipeline import QueuedCaptureLayer, ScanController
from labelscan.scanner import FrameDecoder
from labelscan.schemas.auth import OperatorInfo
from labelscan.schemas.scanner import (
    CapabilitiesReport,
    DecodeErrorReport,
    DecodeRequest,
    DeviceSelectRequest,
    DevicesReport,
    PermissionReport,
    ScanState,
    TorchRequest,
    ZoomRequest,
)
from labelscan.services.session_service import get_session_manager


# Module logger
logger = logging.getLogger(__name__)

router = APIRouter()


class ScannerWebSocketHandler:
    """
    Handler for one scanning WebSocket connection.

    Manages the lifecycle of a scanning session including:
    - Authentication
    - Controller creation
    - Message dispatch
    - Camera stop on teardown
    """

    def __init__(self, websocket: WebSocket):
        self._websocket = websocket
        self._auth = AuthenticationManager(get_security_manager())
        self._sessions = get_session_manager()
        self._capture = QueuedCaptureLayer()
        self._controller: Optional[ScanController] = None
        self._decoder = FrameDecoder(get_settings().barcode_format_list)
        self._user: Optional[OperatorInfo] = None

    @property
    def controller(self) -> Optional[ScanController]:
        return self._controller

    def authenticate(self, token: Optional[str]) -> bool:
        """Authenticate operator from token."""
        try:
            self._user = self._auth.get_current_user_ws(token)
            return True
        except AppException as e:
            logger.warning(f"Auth failed: {e.code}")
            return False

    # =========================================================================
    # REPLIES
    # =========================================================================

    def _reply(self, message_type: str, **extra: Any) -> Dict[str, Any]:
        reply = {
            "type": message_type,
            "state": ScanState.from_controller(self._controller).model_dump(mode="json"),
            "commands": self._capture.drain(),
        }
        reply.update(extra)
        return reply

    def error_reply(self, error: AppException) -> Dict[str, Any]:
        return {
            "type": "error",
            "code": error.code,
            "message": error.message,
        }

    async def send_error(self, message: str, code: str = "ERROR") -> None:
        """Send error message to client."""
        await self._websocket.send_json({
            "type": "error",
            "code": code,
            "message": message
        })

    # =========================================================================
    # MESSAGE DISPATCH
    # =========================================================================

    def handle_message(self, data: Any) -> Dict[str, Any]:
        """
        Apply one client message to the controller.

        Returns:
            The single reply for this message
        """
        if not isinstance(data, dict):
            return self.error_reply(exceptions.invalid_message("expected a JSON object"))

        message_type = data.get("type")

        try:
            if message_type == "devices":
                report = DevicesReport.model_validate(data)
                self._controller.on_devices_found(report.devices)

            elif message_type == "permission":
                self._controller.on_permission_result(PermissionReport.model_validate(data).granted)

            elif message_type == "decode":
                request = DecodeRequest.model_validate(data)
                outcome = self._controller.on_decode_success(request.text, request.format_tag)
                return self._reply("outcome", outcome=outcome.model_dump(mode="json"))

            elif message_type == "decode_error":
                self._controller.on_decode_error(DecodeErrorReport.model_validate(data).message)

            elif message_type == "capabilities":
                self._controller.on_capabilities(CapabilitiesReport.model_validate(data).to_probe_result())

            elif message_type == "frame":
                return self.handle_frame(data)

            elif message_type == "select_device":
                request = DeviceSelectRequest.model_validate(data)
                if self._controller.select_device_by_id(request.device_id) is None:
                    return self.error_reply(exceptions.device_not_found(request.device_id))

            elif message_type == "torch":
                request = TorchRequest.model_validate(data)
                if request.on is None:
                    self._controller.toggle_torch()
                else:
                    self._controller.torch_on = request.on

            elif message_type == "zoom":
                self._controller.zoom = ZoomRequest.model_validate(data).value

            elif message_type == "stop":
                self._controller.close()

            else:
                return self.error_reply(exceptions.invalid_message(f"unknown type {message_type!r}"))

        except ValidationError as e:
            return self.error_reply(exceptions.invalid_message(str(e.errors()[0].get("msg", "invalid payload"))))

        return self._reply("state")

    def handle_frame(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Decode an uploaded frame and run it through the pipeline as one read."""
        payload = data.get("frame")

        if not isinstance(payload, str) or not payload:
            return self.error_reply(exceptions.invalid_message("frame must be a base64 string"))

        try:
            image = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            return self.error_reply(exceptions.invalid_message("frame is not valid base64"))

        try:
            events = self._decoder.decode_image_bytes(image)
        except Exception as e:
            self._controller.on_decode_error(e)
            return self._reply("outcome", outcome=None)

        event = self._decoder.primary_event(events)
        if event is None:
            self._controller.on_decode_error(None)
            return self._reply("outcome", outcome=None)

        outcome = self._controller.on_decode_event(event)
        return self._reply("outcome", outcome=outcome.model_dump(mode="json"))

    # =========================================================================
    # CONNECTION LIFECYCLE
    # =========================================================================

    async def run(self, token: Optional[str]) -> None:
        """Main handler loop."""
        await self._websocket.accept()
        logger.info("📱 Scanner WebSocket connected")

        if not self.authenticate(token):
            await self.send_error("Authentication required", "AUTH_REQUIRED")
            await self._websocket.close()
            return

        logger.info(f"✅ Operator authenticated: {self._user.email}")

        self._controller = self._sessions.create_controller(self._capture)

        try:
            await self._websocket.send_json(self._reply(
                "ready",
                capture=self._sessions.capture_config().model_dump(mode="json")
            ))

            while True:
                text = await self._websocket.receive_text()

                try:
                    data = json.loads(text)
                except ValueError:
                    await self._websocket.send_json(
                        self.error_reply(exceptions.invalid_message("not valid JSON"))
                    )
                    continue

                await self._websocket.send_json(self.handle_message(data))

                if self._controller.closed:
                    logger.info("🛑 Client requested stop")
                    break

        except WebSocketDisconnect:
            logger.info("📱 Client disconnected")
        except Exception as e:
            logger.error(f"WebSocket error: {e}")
            raise
        finally:
            self._controller.close()
            logger.info("✅ Scanner WebSocket closed")


@router.websocket("/ws/scan")
async def websocket_scan(websocket: WebSocket, token: str = Query(None)):
    """Real-time scanning session via WebSocket."""
    handler = ScannerWebSocketHandler(websocket)
    await handler.run(token)
