"""
==============================================================================
Pipeline Models Module
==============================================================================

Pydantic models and enums shared by the scan pipeline.

==============================================================================
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ScanStatus(str, enum.Enum):
    """Outcome of one decode event."""
    ACCEPTED = "accepted"
    IGNORED = "ignored"


class IgnoreReason(str, enum.Enum):
    """Why a decode event was routed to the ignored slot."""
    UNSTABLE = "unstable"
    COOLDOWN = "cooldown"
    NO_PATTERN = "no-pattern"


class ProbeStatus(str, enum.Enum):
    """Per-capability negotiation state for the active device."""
    UNPROBED = "unprobed"
    SUPPORTED = "supported"
    UNSUPPORTED = "unsupported"


class RawDecodeEvent(BaseModel):
    """One successful frame decode as reported by the capture layer."""
    text: str = Field(default="")
    format_tag: str = Field(default="")


class DeviceDescriptor(BaseModel):
    """Camera handle plus human-readable label."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Opaque device identifier")
    label: str = Field(default="", description="Label reported by the capture layer")


class HistoryEntry(BaseModel):
    """Sanitized read kept for diagnostics."""

    model_config = ConfigDict(frozen=True)

    text: str
    format_tag: str = ""
    timestamp: datetime


class CapabilityState(BaseModel):
    """
    Torch and zoom state of the active track.

    Flags are derived from the probe status; zoom is kept inside
    [zoom_min, zoom_max] by the negotiator.
    """
    torch_status: ProbeStatus = ProbeStatus.UNPROBED
    zoom_status: ProbeStatus = ProbeStatus.UNPROBED
    torch_on: bool = False
    zoom_min: float = 1.0
    zoom_max: float = 1.0
    zoom: float = 1.0

    @property
    def torch_supported(self) -> bool:
        return self.torch_status == ProbeStatus.SUPPORTED

    @property
    def zoom_supported(self) -> bool:
        return self.zoom_status == ProbeStatus.SUPPORTED


class DecodeOutcome(BaseModel):
    """Result of running one decode event through the pipeline."""
    status: ScanStatus
    reason: Optional[IgnoreReason] = None
    text: str = ""
    code: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.status == ScanStatus.ACCEPTED


class Notice(BaseModel):
    """User-facing, non-fatal condition."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
