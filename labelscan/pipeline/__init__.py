"""
==============================================================================
Pipeline Package - Scan Result Stabilization
==============================================================================

Turns a noisy stream of decode attempts into trustworthy label codes.

Classes:
--------
- ScanController: Per-session orchestration and UI state
- PatternExtractor: J5 storage label grammar
- StabilityGate / CooldownGate: Acceptance gates
- CapabilityNegotiator: Camera choice, torch and zoom
- HistoryLog: Bounded read history
- CaptureLayer / QueuedCaptureLayer: Capture collaborator interface

==============================================================================
"""

from .capabilities import CapabilityNegotiator, choose_device
from .capture import CaptureLayer, QueuedCaptureLayer
from .controller import ScanController
from .extractor import PatternExtractor, extract_code
from .gates import CooldownGate, StabilityGate
from .history import HistoryLog
from .models import (
    CapabilityState,
    DecodeOutcome,
    DeviceDescriptor,
    HistoryEntry,
    IgnoreReason,
    Notice,
    ProbeStatus,
    RawDecodeEvent,
    ScanStatus,
)
from .notices import NoticeBoard
from .sanitizer import sanitize

__all__ = [
    "CapabilityNegotiator",
    "choose_device",
    "CaptureLayer",
    "QueuedCaptureLayer",
    "ScanController",
    "PatternExtractor",
    "extract_code",
    "CooldownGate",
    "StabilityGate",
    "HistoryLog",
    "CapabilityState",
    "DecodeOutcome",
    "DeviceDescriptor",
    "HistoryEntry",
    "IgnoreReason",
    "Notice",
    "ProbeStatus",
    "RawDecodeEvent",
    "ScanStatus",
    "NoticeBoard",
    "sanitize",
]
