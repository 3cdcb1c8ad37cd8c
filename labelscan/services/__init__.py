"""
==============================================================================
Services Package - Business Logic Layer
==============================================================================

Service classes between the API routers and the scan pipeline.

This package provides:
- AuthService: Operator login and token management
- ScanSessionManager: Per-operator scan sessions

    ┌─────────────────┐
    │   API Router    │
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │    Service      │
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │ Scan Pipeline   │
    └─────────────────┘

==============================================================================
"""

from .auth_service import AuthService, get_auth_service
from .session_service import ScanSession, ScanSessionManager, get_session_manager

__all__ = [
    "AuthService",
    "get_auth_service",
    "ScanSession",
    "ScanSessionManager",
    "get_session_manager",
]
