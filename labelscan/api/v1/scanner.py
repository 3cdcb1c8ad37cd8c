"""
==============================================================================
Scanner Endpoints
==============================================================================

REST surface of a scanning session.

The operator's browser owns the camera: it reports devices, permission,
decoded frames and probe answers here, applies the UI's device/torch/zoom
choices, and executes the capture commands returned in every response.

Endpoints:
----------
    POST   /scanner/session        start (or restart) a session
    DELETE /scanner/session        tear the session down
    GET    /scanner/state          current session state
    GET    /scanner/history        recent reads, newest first
    POST   /scanner/devices        enumerated cameras
    POST   /scanner/permission     camera permission answer
    POST   /scanner/decode         one decoded frame
    POST   /scanner/decode-error   one failed frame
    POST   /scanner/capabilities   capability probe answer
    PUT    /scanner/device         switch camera
    PUT    /scanner/torch          torch on/off (toggle if omitted)
    PUT    /scanner/zoom           zoom level (clamped)

==============================================================================
"""

from fastapi import APIRouter, Depends

from labelscan.core import exceptions
from labelscan.core.dependencies import get_current_user, get_scan_session
from labelscan.schemas.auth import OperatorInfo
from labelscan.schemas.common import MessageResponse
from labelscan.schemas.scanner import (
    CapabilitiesReport,
    DecodeErrorReport,
    DecodeRequest,
    DecodeResponse,
    DeviceSelectRequest,
    DevicesReport,
    HistoryResponse,
    PermissionReport,
    ScanStateResponse,
    SessionResponse,
    TorchRequest,
    ZoomRequest,
)
from labelscan.services.session_service import (
    ScanSession,
    ScanSessionManager,
    get_session_manager,
)


router = APIRouter(prefix="/scanner", tags=["Scanner"])


class ScannerController:
    """Controller translating REST calls into pipeline callbacks."""

    def __init__(self, session: ScanSession):
        self._session = session
        self._pipeline = session.controller

    def state(self) -> ScanStateResponse:
        return ScanStateResponse(
            state=self._session.state(),
            commands=self._session.drain_commands()
        )

    def history(self) -> HistoryResponse:
        return HistoryResponse(
            capacity=self._pipeline.history_capacity,
            items=self._pipeline.history
        )

    def decode(self, request: DecodeRequest) -> DecodeResponse:
        outcome = self._pipeline.on_decode_success(request.text, request.format_tag)
        return DecodeResponse(
            outcome=outcome,
            state=self._session.state(),
            commands=self._session.drain_commands()
        )

    def decode_error(self, report: DecodeErrorReport) -> ScanStateResponse:
        self._pipeline.on_decode_error(report.message)
        return self.state()

    def devices(self, report: DevicesReport) -> ScanStateResponse:
        self._pipeline.on_devices_found(report.devices)
        return self.state()

    def permission(self, report: PermissionReport) -> ScanStateResponse:
        self._pipeline.on_permission_result(report.granted)
        return self.state()

    def capabilities(self, report: CapabilitiesReport) -> ScanStateResponse:
        self._pipeline.on_capabilities(report.to_probe_result())
        return self.state()

    def select_device(self, request: DeviceSelectRequest) -> ScanStateResponse:
        if self._pipeline.select_device_by_id(request.device_id) is None:
            raise exceptions.device_not_found(request.device_id)
        return self.state()

    def torch(self, request: TorchRequest) -> ScanStateResponse:
        if request.on is None:
            self._pipeline.toggle_torch()
        else:
            self._pipeline.torch_on = request.on
        return self.state()

    def zoom(self, request: ZoomRequest) -> ScanStateResponse:
        self._pipeline.zoom = request.value
        return self.state()


# =============================================================================
# SESSION LIFECYCLE
# =============================================================================

@router.post("/session", response_model=SessionResponse)
async def start_session(
    user: OperatorInfo = Depends(get_current_user),
    sessions: ScanSessionManager = Depends(get_session_manager)
):
    """Start a scan session for the current operator."""
    session = sessions.start(user.email)
    return SessionResponse(
        state=session.state(),
        capture=sessions.capture_config(),
        commands=session.drain_commands()
    )


@router.delete("/session", response_model=MessageResponse)
async def end_session(
    user: OperatorInfo = Depends(get_current_user),
    sessions: ScanSessionManager = Depends(get_session_manager)
):
    """Tear down the current operator's scan session."""
    if not sessions.end(user.email):
        raise exceptions.session_not_found()
    return MessageResponse(message="Scan session closed")


# =============================================================================
# STATE
# =============================================================================

@router.get("/state", response_model=ScanStateResponse)
async def get_state(session: ScanSession = Depends(get_scan_session)):
    """Current session state and pending capture commands."""
    return ScannerController(session).state()


@router.get("/history", response_model=HistoryResponse)
async def get_history(session: ScanSession = Depends(get_scan_session)):
    """Recent sanitized reads, newest first."""
    return ScannerController(session).history()


# =============================================================================
# CAPTURE LAYER REPORTS
# =============================================================================

@router.post("/devices", response_model=ScanStateResponse)
async def report_devices(report: DevicesReport, session: ScanSession = Depends(get_scan_session)):
    """Report enumerated cameras; the preferred one is selected."""
    return ScannerController(session).devices(report)


@router.post("/permission", response_model=ScanStateResponse)
async def report_permission(report: PermissionReport, session: ScanSession = Depends(get_scan_session)):
    """Report the camera permission answer."""
    return ScannerController(session).permission(report)


@router.post("/decode", response_model=DecodeResponse)
async def report_decode(request: DecodeRequest, session: ScanSession = Depends(get_scan_session)):
    """Run one decoded frame through the pipeline."""
    return ScannerController(session).decode(request)


@router.post("/decode-error", response_model=ScanStateResponse)
async def report_decode_error(report: DecodeErrorReport, session: ScanSession = Depends(get_scan_session)):
    """Report one failed frame decode."""
    return ScannerController(session).decode_error(report)


@router.post("/capabilities", response_model=ScanStateResponse)
async def report_capabilities(report: CapabilitiesReport, session: ScanSession = Depends(get_scan_session)):
    """Report torch/zoom capabilities of the active track."""
    return ScannerController(session).capabilities(report)


# =============================================================================
# UI CONTROLS
# =============================================================================

@router.put("/device", response_model=ScanStateResponse)
async def select_device(request: DeviceSelectRequest, session: ScanSession = Depends(get_scan_session)):
    """Switch to another enumerated camera."""
    return ScannerController(session).select_device(request)


@router.put("/torch", response_model=ScanStateResponse)
async def set_torch(request: TorchRequest, session: ScanSession = Depends(get_scan_session)):
    """Switch the torch on/off, or toggle it."""
    return ScannerController(session).torch(request)


@router.put("/zoom", response_model=ScanStateResponse)
async def set_zoom(request: ZoomRequest, session: ScanSession = Depends(get_scan_session)):
    """Request a zoom level; out-of-range values are clamped."""
    return ScannerController(session).zoom(request)
