"""
==============================================================================
Scanner Schemas Module
==============================================================================

Request and response schemas for the scanner REST and WebSocket API.

Client reports (capture layer → server):
---------------------------------------
- DevicesReport, PermissionReport, DecodeRequest, DecodeErrorReport,
  CapabilitiesReport

UI requests:
-----------
- DeviceSelectRequest, TorchRequest, ZoomRequest

Every response carries the capture commands the client must apply.

==============================================================================
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from labelscan.pipeline import (
    DecodeOutcome,
    DeviceDescriptor,
    HistoryEntry,
    Notice,
    ScanController,
)


# =============================================================================
# CLIENT REPORTS
# =============================================================================

class DevicesReport(BaseModel):
    """Enumerated cameras."""
    devices: List[DeviceDescriptor] = Field(default_factory=list)


class PermissionReport(BaseModel):
    """Camera permission answer."""
    granted: bool


class DecodeRequest(BaseModel):
    """One decoded frame."""

    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(default="", max_length=4096)
    format_tag: str = Field(default="", alias="format", max_length=64)


class DecodeErrorReport(BaseModel):
    """One failed frame decode."""
    message: Optional[str] = None


class CapabilitiesReport(BaseModel):
    """Capability probe answer for the active track."""

    model_config = ConfigDict(populate_by_name=True)

    torch: bool = False
    zoom_range: Optional[List[float]] = Field(default=None, alias="zoomRange")

    def to_probe_result(self) -> Dict[str, Any]:
        return {"torch": self.torch, "zoom_range": self.zoom_range}


# =============================================================================
# UI REQUESTS
# =============================================================================

class DeviceSelectRequest(BaseModel):
    """Switch to another enumerated camera."""
    device_id: str = Field(..., min_length=1)


class TorchRequest(BaseModel):
    """Torch request; omit `on` to toggle."""
    on: Optional[bool] = None


class ZoomRequest(BaseModel):
    """Zoom request; clamped server-side."""
    value: float


# =============================================================================
# RESPONSES
# =============================================================================

class ScanState(BaseModel):
    """Externally visible state of one scanning session."""
    last_result: Optional[str] = None
    last_ignored: Optional[str] = None
    devices: List[DeviceDescriptor] = Field(default_factory=list)
    selected_device: Optional[DeviceDescriptor] = None
    permission_granted: Optional[bool] = None
    torch_on: bool = False
    torch_available: bool = False
    zoom: float = 1.0
    zoom_supported: bool = False
    zoom_min: float = 1.0
    zoom_max: float = 1.0
    notices: List[Notice] = Field(default_factory=list)
    stats: Dict[str, int] = Field(default_factory=dict)

    @classmethod
    def from_controller(cls, controller: ScanController) -> "ScanState":
        """Snapshot a controller."""
        capabilities = controller.capabilities
        return cls(
            last_result=controller.last_result,
            last_ignored=controller.last_ignored,
            devices=controller.devices,
            selected_device=controller.selected_device,
            permission_granted=controller.permission_granted,
            torch_on=capabilities.torch_on,
            torch_available=capabilities.torch_supported,
            zoom=capabilities.zoom,
            zoom_supported=capabilities.zoom_supported,
            zoom_min=capabilities.zoom_min,
            zoom_max=capabilities.zoom_max,
            notices=controller.notices,
            stats=controller.stats,
        )


class CaptureConfig(BaseModel):
    """Camera configuration the client should request."""
    formats: List[str]
    facing_mode: str = Field(default="environment")
    width: int
    height: int
    frame_rate: int
    feedback_enabled: bool


class ScanStateResponse(BaseModel):
    """Session state plus pending capture commands."""
    success: bool = Field(default=True)
    state: ScanState
    commands: List[Dict[str, Any]] = Field(default_factory=list)


class SessionResponse(ScanStateResponse):
    """Response to starting a scan session."""
    capture: CaptureConfig


class DecodeResponse(ScanStateResponse):
    """Response to a decode report."""
    outcome: DecodeOutcome


class HistoryResponse(BaseModel):
    """Recent reads, newest first."""
    success: bool = Field(default=True)
    capacity: int
    items: List[HistoryEntry]
