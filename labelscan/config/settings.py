"""
==============================================================================
Application Settings Module
==============================================================================

Configuration management using Pydantic Settings.

A single cached Settings instance is shared by the whole application.

Configuration Priority (highest to lowest):
------------------------------------------
1. Environment variables
2. .env file
3. Default values

Security Considerations:
-----------------------
- Never commit .env files to version control
- Use a strong JWT_SECRET_KEY in production
- Change the demo user credentials outside local development

==============================================================================
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Module logger
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_name: Display name for the application
        app_env: Environment mode (development/staging/production)
        debug: Enable debug mode for verbose logging
        host: Server bind address
        port: Server port number
        jwt_secret_key: Secret key for JWT token signing
        jwt_algorithm: Algorithm for JWT signing (e.g., HS256)
        access_token_expire_minutes: Access token lifetime in minutes
        refresh_token_expire_days: Refresh token lifetime in days
        demo_user_email: Login e-mail of the demo operator
        demo_user_password: Login password of the demo operator
        required_stable_reads: Identical reads needed before acceptance
        cooldown_ms: Minimum time between two accepted codes
        history_capacity: Reads kept in the diagnostic history
        rear_camera_tokens: Comma-separated rear camera label fragments
        feedback_enabled: Ask the client for haptic/audio feedback
        barcode_formats: Comma-separated 1D formats the client should decode
        camera_width / camera_height / camera_frame_rate: Ideal capture mode
        cors_origins: Allowed CORS origins (JSON array string)

    Example:
        >>> settings = Settings()
        >>> settings.cooldown_ms
        900
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    # =========================================================================
    # APPLICATION SETTINGS
    # =========================================================================
    app_name: str = Field(
        default="Label Scan API",
        description="Display name for the application"
    )

    app_env: str = Field(
        default="development",
        description="Environment mode: development, staging, production"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode for verbose logging"
    )

    # =========================================================================
    # SERVER SETTINGS
    # =========================================================================
    host: str = Field(default="0.0.0.0", description="Server bind address")

    port: int = Field(default=8000, ge=1, le=65535, description="Server port number")

    # =========================================================================
    # JWT AUTHENTICATION SETTINGS
    # =========================================================================
    jwt_secret_key: str = Field(
        default="change-this-in-production",
        min_length=16,
        description="Secret key for JWT token signing"
    )

    jwt_algorithm: str = Field(default="HS256", description="Algorithm for JWT signing")

    access_token_expire_minutes: int = Field(
        default=30,
        ge=1,
        le=1440,
        description="Access token lifetime in minutes"
    )

    refresh_token_expire_days: int = Field(
        default=7,
        ge=1,
        le=90,
        description="Refresh token lifetime in days"
    )

    # =========================================================================
    # DEMO USER SETTINGS
    # =========================================================================
    demo_user_email: str = Field(
        default="operator@labelscan.local",
        description="Login e-mail of the demo operator"
    )

    demo_user_password: str = Field(
        default="scanner123",
        min_length=6,
        description="Login password of the demo operator"
    )

    # =========================================================================
    # SCAN PIPELINE SETTINGS
    # =========================================================================
    required_stable_reads: int = Field(
        default=2,
        ge=1,
        le=10,
        description="Identical consecutive reads needed before acceptance"
    )

    cooldown_ms: int = Field(
        default=900,
        ge=0,
        le=60000,
        description="Minimum milliseconds between two accepted codes"
    )

    history_capacity: int = Field(
        default=20,
        ge=1,
        le=500,
        description="Number of reads kept in the diagnostic history"
    )

    rear_camera_tokens: str = Field(
        default="back,rear,environment,trás,trasera,traseira",
        description="Comma-separated rear camera label fragments"
    )

    feedback_enabled: bool = Field(
        default=True,
        description="Ask the client for haptic/audio feedback on acceptance"
    )

    # =========================================================================
    # CAPTURE SETTINGS
    # =========================================================================
    barcode_formats: str = Field(
        default="CODE_128,CODE_39,CODE_93,ITF,CODABAR,EAN_13,EAN_8,UPC_A,UPC_E",
        description="Comma-separated barcode formats to decode"
    )

    camera_width: int = Field(default=1920, ge=160, le=7680, description="Ideal frame width")

    camera_height: int = Field(default=1080, ge=120, le=4320, description="Ideal frame height")

    camera_frame_rate: int = Field(default=30, ge=1, le=120, description="Ideal frame rate")

    # =========================================================================
    # CORS SETTINGS
    # =========================================================================
    cors_origins: str = Field(
        default='["*"]',
        description="Allowed CORS origins as JSON array string"
    )

    # =========================================================================
    # VALIDATORS
    # =========================================================================
    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, value: str) -> str:
        """Normalize the environment name, falling back to development."""
        valid_envs = {"development", "staging", "production"}
        normalized = value.lower().strip()

        if normalized not in valid_envs:
            logger.warning(
                f"Unknown environment '{value}', defaulting to 'development'"
            )
            return "development"

        return normalized

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, value: str) -> str:
        """
        Validate JWT algorithm is supported.

        Raises:
            ValueError: If algorithm is not supported
        """
        supported = {"HS256", "HS384", "HS512"}

        if value.upper() not in supported:
            raise ValueError(
                f"Unsupported JWT algorithm: {value}. "
                f"Supported: {', '.join(sorted(supported))}"
            )

        return value.upper()

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================
    @property
    def rear_camera_token_list(self) -> List[str]:
        """Rear camera label fragments as a list."""
        return _split_csv(self.rear_camera_tokens)

    @property
    def barcode_format_list(self) -> List[str]:
        """Barcode format names, upper-cased."""
        return [name.upper() for name in _split_csv(self.barcode_formats)]

    @property
    def cors_origins_list(self) -> List[str]:
        """
        Parse CORS origins from JSON string to list.

        Returns:
            List of allowed origin strings
        """
        try:
            origins = json.loads(self.cors_origins)
            if isinstance(origins, list):
                return origins
            return ["*"]
        except json.JSONDecodeError:
            logger.warning(
                f"Invalid CORS origins JSON: {self.cors_origins}, "
                "defaulting to ['*']"
            )
            return ["*"]

    @property
    def access_token_expire_seconds(self) -> int:
        """Get access token expiry in seconds."""
        return self.access_token_expire_minutes * 60

    def __repr__(self) -> str:
        return (
            f"Settings(app_name={self.app_name!r}, "
            f"app_env={self.app_env!r}, "
            f"debug={self.debug})"
        )


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the global Settings instance.

    Returns:
        Global Settings instance
    """
    settings = Settings()

    if settings.debug:
        logger.info(f"Configuration loaded: {settings}")

    return settings
