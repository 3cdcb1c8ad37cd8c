"""
==============================================================================
Authentication Service Module
==============================================================================

Operator login and token management.

The service knows a single demo operator configured in settings; the
configured password is hashed once at start-up and verified with passlib.

Authentication Flow:
-------------------
    ┌─────────────┐
    │   Login     │
    │  Request    │
    └──────┬──────┘
           │
    ┌──────▼──────┐     ┌─────────────┐
    │ Match e-mail│────▶│  Unknown    │ → INVALID_CREDENTIALS
    └──────┬──────┘     └─────────────┘
           │
    ┌──────▼──────┐     ┌─────────────┐
    │  Verify     │────▶│  Password   │ → INVALID_CREDENTIALS
    │  Password   │     │   Wrong     │
    └──────┬──────┘     └─────────────┘
           │
    ┌──────▼──────┐
    │  Generate   │
    │   Tokens    │
    └─────────────┘

==============================================================================
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional, Tuple

from labelscan.config import get_settings
from labelscan.core import exceptions
from labelscan.core.security import SecurityManager, get_security_manager
from labelscan.schemas.auth import OperatorInfo


# Module logger
logger = logging.getLogger(__name__)


class AuthService:
    """
    Authentication service for operator login and token refresh.

    Attributes:
        _security: SecurityManager for crypto operations
        _settings: Application settings
        _password_hash: Hash of the configured operator password

    Example:
        >>> auth_service = AuthService()
        >>> operator, access, refresh = auth_service.authenticate(
        ...     "operator@labelscan.local", "scanner123"
        ... )
    """

    def __init__(self, security: Optional[SecurityManager] = None) -> None:
        self._security = security or get_security_manager()
        self._settings = get_settings()
        self._password_hash = self._security.hash_password(self._settings.demo_user_password)

    # =========================================================================
    # AUTHENTICATION METHODS
    # =========================================================================

    def authenticate(self, email: str, password: str) -> Tuple[OperatorInfo, str, str]:
        """
        Authenticate the operator with e-mail and password.

        Args:
            email: Login e-mail (case-insensitive)
            password: Plain text password

        Returns:
            Tuple of (OperatorInfo, access_token, refresh_token)

        Raises:
            AppException: INVALID_CREDENTIALS on unknown e-mail or wrong password
        """
        email = email.lower().strip()

        if email != self._settings.demo_user_email.lower():
            logger.warning(f"Login attempt for unknown operator: {email}")
            raise exceptions.invalid_credentials()

        if not self._security.verify_password(password, self._password_hash):
            logger.warning(f"Invalid password for operator: {email}")
            raise exceptions.invalid_credentials()

        operator = self._operator(email)
        access_token, refresh_token = self._issue_tokens(operator)

        logger.info(f"✅ Operator logged in: {email}")
        return operator, access_token, refresh_token

    def refresh_tokens(self, refresh_token: str) -> Tuple[OperatorInfo, str, str]:
        """
        Issue a new token pair from a refresh token.

        Raises:
            AppException: TOKEN_EXPIRED / TOKEN_INVALID
        """
        claims = self._security.verify_token(refresh_token, SecurityManager.TOKEN_TYPE_REFRESH)

        if claims is None:
            raise exceptions.token_expired()

        email = claims.email

        if email != self._settings.demo_user_email.lower():
            raise exceptions.token_invalid()

        operator = self._operator(email)
        access_token, new_refresh_token = self._issue_tokens(operator)

        logger.debug(f"Tokens refreshed for {email}")
        return operator, access_token, new_refresh_token

    def get_token_expiry_seconds(self) -> int:
        return self._security.get_access_token_expire_seconds()

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _operator(self, email: str) -> OperatorInfo:
        return OperatorInfo(email=email, name=email.split("@")[0])

    def _issue_tokens(self, operator: OperatorInfo) -> Tuple[str, str]:
        return self._security.issue_token_pair(operator.email, operator.name)


@lru_cache(maxsize=1)
def get_auth_service() -> AuthService:
    """Get the global AuthService instance."""
    return AuthService()
