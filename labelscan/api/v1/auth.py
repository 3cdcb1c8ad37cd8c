"""
==============================================================================
Authentication Endpoints
==============================================================================

Operator login, token refresh and logout.

==============================================================================
"""

from fastapi import APIRouter, Depends

from labelscan.core.dependencies import get_current_user
from labelscan.services.auth_service import AuthService, get_auth_service
from labelscan.services.session_service import ScanSessionManager, get_session_manager
from labelscan.schemas.auth import (
    CurrentUserResponse,
    LoginRequest,
    OperatorInfo,
    RefreshRequest,
    TokenResponse,
)
from labelscan.schemas.common import MessageResponse


router = APIRouter(prefix="/auth", tags=["Authentication"])


class AuthController:
    """Controller for authentication operations."""

    def __init__(self, service: AuthService):
        self._service = service

    def login(self, request: LoginRequest) -> TokenResponse:
        """Authenticate operator and generate tokens."""
        operator, access_token, refresh_token = self._service.authenticate(
            request.email,
            request.password
        )

        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self._service.get_token_expiry_seconds(),
            user=operator
        )

    def refresh(self, request: RefreshRequest) -> TokenResponse:
        """Refresh tokens."""
        operator, access_token, refresh_token = self._service.refresh_tokens(
            request.refresh_token
        )

        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self._service.get_token_expiry_seconds(),
            user=operator
        )


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest, service: AuthService = Depends(get_auth_service)):
    """Authenticate operator and get tokens."""
    controller = AuthController(service)
    return controller.login(request)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(request: RefreshRequest, service: AuthService = Depends(get_auth_service)):
    """Refresh access token using refresh token."""
    controller = AuthController(service)
    return controller.refresh(request)


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user_info(user: OperatorInfo = Depends(get_current_user)):
    """Get current authenticated operator."""
    return CurrentUserResponse(user=user)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    user: OperatorInfo = Depends(get_current_user),
    sessions: ScanSessionManager = Depends(get_session_manager)
):
    """Log out: release the operator's scan session. Tokens are discarded client-side."""
    sessions.end(user.email)
    return MessageResponse(message="Logged out")
