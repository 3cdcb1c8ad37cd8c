"""
==============================================================================
Schemas Package - Pydantic Models
==============================================================================

Request and response schemas using Pydantic for validation.

This package provides:
- Common: Shared response schemas
- Auth: Authentication schemas
- Scanner: Scan session schemas

==============================================================================
"""

from .common import MessageResponse
from .auth import LoginRequest, TokenResponse, RefreshRequest, OperatorInfo, CurrentUserResponse
from .scanner import (
    CapabilitiesReport,
    CaptureConfig,
    DecodeErrorReport,
    DecodeRequest,
    DecodeResponse,
    DeviceSelectRequest,
    DevicesReport,
    HistoryResponse,
    PermissionReport,
    ScanState,
    ScanStateResponse,
    SessionResponse,
    TorchRequest,
    ZoomRequest,
)

__all__ = [
    # Common
    "MessageResponse",
    # Auth
    "LoginRequest",
    "TokenResponse",
    "RefreshRequest",
    "OperatorInfo",
    "CurrentUserResponse",
    # Scanner
    "CapabilitiesReport",
    "CaptureConfig",
    "DecodeErrorReport",
    "DecodeRequest",
    "DecodeResponse",
    "DeviceSelectRequest",
    "DevicesReport",
    "HistoryResponse",
    "PermissionReport",
    "ScanState",
    "ScanStateResponse",
    "SessionResponse",
    "TorchRequest",
    "ZoomRequest",
]
