"""
==============================================================================
Capture Layer Interface Module
==============================================================================

Narrow interface to the camera/decoder collaborator.

Classes:
--------
- CaptureLayer: Abstract interface consumed by the pipeline
- QueuedCaptureLayer: Relays requests to a remote (browser) camera as
  command messages, drained by the REST and WebSocket handlers

All requests are fire-and-forget: the pipeline never waits for the
hardware to confirm them.

==============================================================================
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .models import DeviceDescriptor


# Module logger
logger = logging.getLogger(__name__)


class CaptureLayer(ABC):
    """
    Camera and decoder collaborator.

    Implementations may raise from any method; the pipeline downgrades
    such failures to notices.
    """

    @abstractmethod
    def enumerate_devices(self) -> Optional[List[DeviceDescriptor]]:
        """
        List available camera devices.

        Returns:
            Devices in capture-layer order, or None when the list is
            delivered later through ScanController.on_devices_found()
        """

    @abstractmethod
    def probe_capabilities(self) -> Optional[Dict[str, Any]]:
        """
        Query torch/zoom support of the active track.

        Returns:
            {"torch": bool, "zoom_range": [min, max]} with either key
            optional, or None when the answer is delivered later
        """

    @abstractmethod
    def apply_torch(self, on: bool) -> None:
        """Request the torch on or off."""

    @abstractmethod
    def apply_zoom(self, value: float) -> None:
        """Request a zoom level."""

    @abstractmethod
    def stop(self) -> None:
        """Stop frame delivery and release the camera."""

    def activate_device(self, device: DeviceDescriptor) -> None:
        """Switch the active track to device. No-op by default."""


class QueuedCaptureLayer(CaptureLayer):
    """
    Capture layer for a camera living in a remote client.

    Every request becomes a command dictionary queued until the transport
    handler drains and delivers it. Device lists and probe answers arrive
    later through ScanController.on_devices_found() and on_capabilities().

    Example:
        >>> capture = QueuedCaptureLayer()
        >>> capture.apply_torch(True)
        >>> capture.drain()
        [{'command': 'torch', 'on': True}]
    """

    def __init__(self) -> None:
        self._commands: List[Dict[str, Any]] = []
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    def enumerate_devices(self) -> Optional[List[DeviceDescriptor]]:
        self._queue({"command": "enumerate"})
        return None

    def probe_capabilities(self) -> Optional[Dict[str, Any]]:
        self._queue({"command": "probe"})
        return None

    def apply_torch(self, on: bool) -> None:
        self._queue({"command": "torch", "on": on})

    def apply_zoom(self, value: float) -> None:
        self._queue({"command": "zoom", "value": value})

    def activate_device(self, device: DeviceDescriptor) -> None:
        self._queue({"command": "select_device", "device_id": device.id})

    def stop(self) -> None:
        self._queue({"command": "stop"})
        self._stopped = True

    def request_feedback(self, code: str) -> None:
        """Ask the client for haptic/audio feedback on an accepted code."""
        self._queue({"command": "feedback", "code": code})

    def drain(self) -> List[Dict[str, Any]]:
        """Return and clear pending commands."""
        commands, self._commands = self._commands, []
        return commands

    def _queue(self, command: Dict[str, Any]) -> None:
        logger.debug(f"Queued capture command: {command}")
        self._commands.append(command)
