"""
==============================================================================
WebSocket Package
==============================================================================

Real-time WebSocket handlers for barcode scanning.

Handlers:
---------
- scanner: Scanning session driven by the operator's browser camera

==============================================================================
"""

from .scanner import router as scanner_router

__all__ = ["scanner_router"]
