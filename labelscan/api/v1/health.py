"""
==============================================================================
Health Check Endpoints
==============================================================================

System health status endpoints for monitoring and orchestration.

==============================================================================
"""

from fastapi import APIRouter, Depends

from labelscan.services.session_service import ScanSessionManager, get_session_manager


router = APIRouter(prefix="/health", tags=["Health"])


class HealthController:
    """Controller for health check operations."""

    def __init__(self, sessions: ScanSessionManager):
        self._sessions = sessions

    def get_health(self) -> dict:
        """Get full health status."""
        return {
            "status": "healthy",
            "components": {
                "api": "healthy",
                "pipeline": "healthy",
            },
            "details": {
                "active_sessions": len(self._sessions)
            }
        }


@router.get("")
async def health_check(sessions: ScanSessionManager = Depends(get_session_manager)):
    """
    Health check endpoint.

    Returns API status and the number of active scan sessions.
    """
    controller = HealthController(sessions)
    return controller.get_health()


@router.get("/ready")
async def readiness_check():
    """Readiness probe for container orchestration."""
    return {"ready": True}


@router.get("/live")
async def liveness_check():
    """Liveness probe for container orchestration."""
    return {"alive": True}
