"""
==============================================================================
Authentication Schemas Module
==============================================================================

Request and response schemas for authentication endpoints.

==============================================================================
"""

from pydantic import BaseModel, Field, field_validator

from labelscan.utils.validators import EmailValidator, PasswordValidator


class LoginRequest(BaseModel):
    """Login credentials."""
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        is_valid, normalized, error = EmailValidator().validate(v)
        if not is_valid:
            raise ValueError(error)
        return normalized

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        is_valid, error = PasswordValidator().validate(v)
        if not is_valid:
            raise ValueError(error)
        return v


class OperatorInfo(BaseModel):
    """Authenticated operator."""
    email: str
    name: str


class TokenResponse(BaseModel):
    """Token response after authentication."""
    success: bool = Field(default=True)
    access_token: str
    refresh_token: str
    token_type: str = Field(default="bearer")
    expires_in: int
    user: OperatorInfo


class RefreshRequest(BaseModel):
    """Token refresh request."""
    refresh_token: str


class CurrentUserResponse(BaseModel):
    """Current operator response."""
    success: bool = Field(default=True)
    user: OperatorInfo
