"""
==============================================================================
Scan Session Service Module
==============================================================================

Per-operator registry of scanning sessions.

A session couples one ScanController with the QueuedCaptureLayer that
relays its camera requests to the operator's browser. Sessions live in
memory only and are discarded on teardown.

Session Lifecycle:
-----------------
    start()  ──▶  decode / device / torch / zoom calls  ──▶  end()
       │                                                       │
       └─ an existing session for the same operator is         └─ controller.close()
          closed first                                            (camera stop requested)

==============================================================================
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, List, Optional

from labelscan.config import Settings, get_settings
from labelscan.pipeline import QueuedCaptureLayer, ScanController
from labelscan.schemas.scanner import CaptureConfig, ScanState


# Module logger
logger = logging.getLogger(__name__)


class ScanSession:
    """
    One operator's scanning session.

    Attributes:
        owner: Operator e-mail
        controller: Pipeline for this session
        capture: Command relay to the operator's camera
        started_at: Session start time (UTC)
    """

    def __init__(
        self,
        owner: str,
        controller: ScanController,
        capture: QueuedCaptureLayer
    ) -> None:
        self.owner = owner
        self.controller = controller
        self.capture = capture
        self.started_at = datetime.now(timezone.utc)

    def state(self) -> ScanState:
        return ScanState.from_controller(self.controller)

    def drain_commands(self) -> List[Dict[str, Any]]:
        return self.capture.drain()

    def close(self) -> None:
        self.controller.close()


class ScanSessionManager:
    """
    In-memory session registry keyed by operator e-mail.

    Also builds controllers from settings for transports that manage
    their own session lifetime (WebSocket).

    Example:
        >>> manager = ScanSessionManager()
        >>> session = manager.start("operator@labelscan.local")
        >>> manager.end("operator@labelscan.local")
        True
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._sessions: Dict[str, ScanSession] = {}

    def create_controller(self, capture: QueuedCaptureLayer) -> ScanController:
        """Build a controller configured from settings."""
        settings = self._settings
        return ScanController(
            capture,
            required_stable_reads=settings.required_stable_reads,
            cooldown_ms=settings.cooldown_ms,
            history_capacity=settings.history_capacity,
            rear_tokens=settings.rear_camera_token_list,
            feedback=capture.request_feedback if settings.feedback_enabled else None,
        )

    def capture_config(self) -> CaptureConfig:
        """Camera configuration advertised to clients."""
        settings = self._settings
        return CaptureConfig(
            formats=settings.barcode_format_list,
            width=settings.camera_width,
            height=settings.camera_height,
            frame_rate=settings.camera_frame_rate,
            feedback_enabled=settings.feedback_enabled,
        )

    def start(self, owner: str) -> ScanSession:
        """
        Start a fresh session, closing any previous one of the operator.

        Args:
            owner: Operator e-mail

        Returns:
            New ScanSession
        """
        self.end(owner)

        capture = QueuedCaptureLayer()
        session = ScanSession(owner, self.create_controller(capture), capture)
        self._sessions[owner] = session

        logger.info(f"📷 Scan session started for {owner}")
        return session

    def get(self, owner: str) -> Optional[ScanSession]:
        return self._sessions.get(owner)

    def end(self, owner: str) -> bool:
        """
        Close and forget the operator's session.

        Returns:
            True if a session existed
        """
        session = self._sessions.pop(owner, None)

        if session is None:
            return False

        session.close()
        logger.info(f"🛑 Scan session ended for {owner}")
        return True

    def close_all(self) -> int:
        """Close every session; returns how many were closed."""
        owners = list(self._sessions)
        for owner in owners:
            self.end(owner)
        return len(owners)

    def __len__(self) -> int:
        return len(self._sessions)


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

@lru_cache(maxsize=1)
def get_session_manager() -> ScanSessionManager:
    """Get the global ScanSessionManager instance."""
    return ScanSessionManager()
