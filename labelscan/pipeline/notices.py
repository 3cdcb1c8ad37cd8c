"""
==============================================================================
Notice Board Module
==============================================================================

Collects user-facing, non-fatal conditions (permission denied, no camera,
torch/zoom failures). Each notice code is reported once per session.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Dict, List

from .models import Notice


# Module logger
logger = logging.getLogger(__name__)


# Notice codes
PERMISSION_DENIED = "PERMISSION_DENIED"
NO_DEVICES = "NO_DEVICES"
CAPABILITY_PROBE_FAILED = "CAPABILITY_PROBE_FAILED"
TORCH_APPLY_FAILED = "TORCH_APPLY_FAILED"
ZOOM_APPLY_FAILED = "ZOOM_APPLY_FAILED"
CAMERA_STOP_FAILED = "CAMERA_STOP_FAILED"


class NoticeBoard:
    """Once-only notice registry keyed by notice code."""

    def __init__(self) -> None:
        self._notices: Dict[str, Notice] = {}

    def notify(self, code: str, message: str) -> bool:
        """
        Report a notice.

        Args:
            code: Machine-readable notice code
            message: Text shown to the user

        Returns:
            True if this is the first report of the code
        """
        if code in self._notices:
            logger.debug(f"Notice {code} already reported")
            return False

        self._notices[code] = Notice(code=code, message=message)
        logger.warning(f"Notice {code}: {message}")
        return True

    def has(self, code: str) -> bool:
        return code in self._notices

    def notices(self) -> List[Notice]:
        """Reported notices in report order."""
        return list(self._notices.values())
