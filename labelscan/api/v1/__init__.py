"""
==============================================================================
API v1 Endpoints
==============================================================================

Version 1 of the REST API.

Routers:
--------
- health: Health check endpoints
- auth: Authentication endpoints
- scanner: Scan session endpoints

==============================================================================
"""

from . import health, auth, scanner

__all__ = ["health", "auth", "scanner"]
