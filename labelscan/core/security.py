"""
==============================================================================
Security Module - Operator Tokens & Password Hashing
==============================================================================

Issues and verifies the bearer tokens that guard the scanner routes.

Token Claims:
------------
{
    "sub": "operator@labelscan.local",  # Operator e-mail
    "name": "operator",                 # Display name
    "type": "access|refresh",
    "exp": 1234567890,
    "iat": 1234567890
}

Verified tokens come back as OperatorClaims; handlers never read the raw
JWT payload.

==============================================================================
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional, Tuple

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, ConfigDict, ValidationError

from labelscan.config import get_settings


# Module logger
logger = logging.getLogger(__name__)


class OperatorClaims(BaseModel):
    """Verified claims of an operator token."""
    model_config = ConfigDict(frozen=True)

    sub: str
    name: str = ""
    type: str
    exp: datetime
    iat: datetime

    @property
    def email(self) -> str:
        return self.sub.lower()

    @property
    def display_name(self) -> str:
        return self.name or self.email.split("@")[0]


class SecurityManager:
    """
    Operator credential and token handling.

    Attributes:
        _pwd_context: Passlib context for the demo operator password
        _settings: Application settings reference

    Example:
        >>> security = SecurityManager()
        >>> access, refresh = security.issue_token_pair("operator@labelscan.local", "operator")
        >>> security.verify_token(access).email
        'operator@labelscan.local'
    """

    TOKEN_TYPE_ACCESS = "access"
    TOKEN_TYPE_REFRESH = "refresh"

    HASH_SCHEMES = ["pbkdf2_sha256"]

    def __init__(self) -> None:
        self._pwd_context = CryptContext(schemes=self.HASH_SCHEMES, deprecated="auto")
        self._settings = get_settings()

        logger.debug("SecurityManager initialized")

    # =========================================================================
    # PASSWORDS
    # =========================================================================

    def hash_password(self, plain_password: str) -> str:
        """
        Hash an operator password.

        Raises:
            ValueError: If the password is empty
        """
        if not plain_password:
            raise ValueError("Password cannot be empty")

        return self._pwd_context.hash(plain_password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Check a password against a stored hash; malformed hashes never match."""
        try:
            return self._pwd_context.verify(plain_password, hashed_password)
        except (ValueError, TypeError) as e:
            logger.warning(f"Password verification error: {type(e).__name__}")
            return False

    # =========================================================================
    # TOKEN ISSUE
    # =========================================================================

    def create_access_token(
        self,
        email: str,
        name: str = "",
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create an access token for an operator.

        Args:
            email: Operator e-mail (token subject)
            name: Display name
            expires_delta: Lifetime override (defaults to settings)
        """
        lifetime = expires_delta or timedelta(minutes=self._settings.access_token_expire_minutes)
        return self._encode(email, name, self.TOKEN_TYPE_ACCESS, lifetime)

    def create_refresh_token(
        self,
        email: str,
        name: str = "",
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """Create a refresh token for an operator."""
        lifetime = expires_delta or timedelta(days=self._settings.refresh_token_expire_days)
        return self._encode(email, name, self.TOKEN_TYPE_REFRESH, lifetime)

    def issue_token_pair(self, email: str, name: str = "") -> Tuple[str, str]:
        """Access and refresh token for one operator login."""
        return (
            self.create_access_token(email, name),
            self.create_refresh_token(email, name),
        )

    def _encode(self, email: str, name: str, token_type: str, lifetime: timedelta) -> str:
        now = datetime.now(timezone.utc)
        expire = now + lifetime

        claims = {
            "sub": email,
            "name": name,
            "type": token_type,
            "exp": expire,
            "iat": now,
        }

        logger.debug(f"Created {token_type} token for {email}, expires: {expire.isoformat()}")
        return jwt.encode(claims, self._settings.jwt_secret_key, algorithm=self._settings.jwt_algorithm)

    # =========================================================================
    # TOKEN VERIFICATION
    # =========================================================================

    def verify_token(
        self,
        token: str,
        token_type: str = TOKEN_TYPE_ACCESS
    ) -> Optional[OperatorClaims]:
        """
        Verify signature, expiry and type of an operator token.

        Args:
            token: Encoded JWT
            token_type: Expected token type ('access' or 'refresh')

        Returns:
            OperatorClaims, or None if the token is unusable
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.jwt_secret_key,
                algorithms=[self._settings.jwt_algorithm]
            )
        except jwt.ExpiredSignatureError:
            logger.debug("Token verification failed: token expired")
            return None
        except JWTError as e:
            logger.warning(f"Token verification failed: {e}")
            return None

        try:
            claims = OperatorClaims.model_validate(payload)
        except ValidationError:
            logger.warning("Token claims incomplete")
            return None

        if claims.type != token_type:
            logger.warning(f"Token type mismatch: expected {token_type}, got {claims.type}")
            return None

        return claims

    def get_access_token_expire_seconds(self) -> int:
        return self._settings.access_token_expire_seconds


@lru_cache(maxsize=1)
def get_security_manager() -> SecurityManager:
    """Get the global SecurityManager instance."""
    return SecurityManager()
