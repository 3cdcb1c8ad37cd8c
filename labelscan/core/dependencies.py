"""
==============================================================================
FastAPI Dependencies Module
==============================================================================

Dependency injection for authentication and the scan session registry.

This module implements:
- AuthenticationManager: Class-based authentication logic
- FastAPI dependencies for route protection

Dependency Hierarchy:
--------------------
                    ┌─────────────────┐
                    │ security_scheme │
                    └────────┬────────┘
                             │
                    ┌────────▼────────┐
                    │get_current_user │
                    └────────┬────────┘
                             │
                    ┌────────▼────────┐
                    │ get_scan_session│
                    └─────────────────┘

Usage Examples:
--------------
    @router.get("/state")
    async def state(session: ScanSession = Depends(get_scan_session)):
        ...

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from labelscan.config import get_settings
from labelscan.core import exceptions
from labelscan.core.security import SecurityManager, get_security_manager
from labelscan.schemas.auth import OperatorInfo
from labelscan.services.session_service import (
    ScanSession,
    ScanSessionManager,
    get_session_manager,
)


# Module logger
logger = logging.getLogger(__name__)

# HTTP Bearer security scheme for Swagger UI
security_scheme = HTTPBearer(auto_error=False)


class AuthenticationManager:
    """
    Manages operator authentication.

    Tokens are accepted only when their subject is the configured demo
    operator.

    Example:
        >>> auth = AuthenticationManager(get_security_manager())
        >>> operator = auth.authenticate_from_token(token)
    """

    def __init__(self, security: SecurityManager) -> None:
        self._security = security
        self._settings = get_settings()

    # =========================================================================
    # TOKEN EXTRACTION METHODS
    # =========================================================================

    def extract_token_from_header(
        self,
        credentials: Optional[HTTPAuthorizationCredentials]
    ) -> str:
        """
        Extract JWT token from HTTP Authorization header.

        Raises:
            AppException: If no credentials provided
        """
        if not credentials:
            logger.debug("No authorization credentials provided")
            raise exceptions.token_invalid()

        return credentials.credentials

    def extract_token_from_query(self, token: Optional[str]) -> str:
        """
        Extract JWT token from query parameter (for WebSocket).

        Raises:
            AppException: If no token provided
        """
        if not token:
            logger.debug("No token in query parameter")
            raise exceptions.token_invalid()

        return token

    # =========================================================================
    # OPERATOR AUTHENTICATION METHODS
    # =========================================================================

    def authenticate_from_token(
        self,
        token: str,
        token_type: str = SecurityManager.TOKEN_TYPE_ACCESS
    ) -> OperatorInfo:
        """
        Authenticate the operator from a JWT token.

        Args:
            token: JWT token string
            token_type: Expected token type ('access' or 'refresh')

        Returns:
            Authenticated operator

        Raises:
            AppException: If token is invalid, expired, or names another user
        """
        claims = self._security.verify_token(token, token_type)

        if claims is None:
            logger.debug("Token verification failed")
            raise exceptions.token_expired()

        if claims.email != self._settings.demo_user_email.lower():
            logger.warning(f"Token subject is not a known operator: {claims.sub}")
            raise exceptions.token_invalid()

        return OperatorInfo(email=claims.email, name=claims.display_name)

    def get_current_user(
        self,
        credentials: Optional[HTTPAuthorizationCredentials]
    ) -> OperatorInfo:
        """Get the operator from the HTTP Authorization header."""
        token = self.extract_token_from_header(credentials)
        return self.authenticate_from_token(token)

    def get_current_user_ws(self, token: Optional[str]) -> OperatorInfo:
        """Get the operator from a WebSocket query parameter."""
        token = self.extract_token_from_query(token)
        return self.authenticate_from_token(token)


# =============================================================================
# FASTAPI DEPENDENCY FUNCTIONS
# =============================================================================

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme)
) -> OperatorInfo:
    """
    FastAPI dependency to get the current authenticated operator.

    Raises:
        AppException: If authentication fails
    """
    auth_manager = AuthenticationManager(get_security_manager())
    return auth_manager.get_current_user(credentials)


async def get_scan_session(
    user: OperatorInfo = Depends(get_current_user),
    manager: ScanSessionManager = Depends(get_session_manager)
) -> ScanSession:
    """
    FastAPI dependency returning the caller's active scan session.

    Raises:
        AppException: SESSION_NOT_FOUND if no session was started
    """
    session = manager.get(user.email)

    if session is None:
        raise exceptions.session_not_found()

    return session
