"""
==============================================================================
Capability Negotiator Module
==============================================================================

Camera device selection and torch/zoom negotiation.

Per-capability state machine (reset on every device switch):
------------------------------------------------------------

    ┌──────────┐  probe result   ┌─────────────┐
    │ UNPROBED │───────────────▶│  SUPPORTED  │
    └────┬─────┘                 └─────────────┘
         │ probe failed /        ┌─────────────┐
         └─ capability absent ─▶│ UNSUPPORTED │
                                 └─────────────┘

Controls for a capability that is not SUPPORTED are inert. Probe answers
may arrive late and out of order; the last one written wins.

==============================================================================
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from . import notices as notice_codes
from .capture import CaptureLayer
from .models import CapabilityState, DeviceDescriptor, ProbeStatus
from .notices import NoticeBoard


# Module logger
logger = logging.getLogger(__name__)


# Label fragments meaning "rear camera" (en, es, pt)
DEFAULT_REAR_TOKENS: Tuple[str, ...] = (
    "back",
    "rear",
    "environment",
    "trás",
    "trasera",
    "traseira",
)


def choose_device(
    devices: Sequence[DeviceDescriptor],
    rear_tokens: Iterable[str] = DEFAULT_REAR_TOKENS
) -> Optional[DeviceDescriptor]:
    """
    Pick the preferred camera.

    Args:
        devices: Enumerated devices in capture-layer order
        rear_tokens: Case-insensitive label fragments for rear cameras

    Returns:
        First rear-looking device, else the first device, else None
    """
    if not devices:
        return None

    tokens = [token.casefold() for token in rear_tokens if token]

    for device in devices:
        label = (device.label or "").casefold()
        if any(token in label for token in tokens):
            return device

    return devices[0]


def parse_zoom_range(value: Any) -> Optional[Tuple[float, float]]:
    """
    Read a [min, max] zoom range from a probe result.

    Returns:
        (min, max) tuple, or None if the value is not a usable range
    """
    if isinstance(value, Mapping):
        value = (value.get("min"), value.get("max"))

    if not isinstance(value, (list, tuple)) or len(value) != 2:
        return None

    try:
        low, high = float(value[0]), float(value[1])
    except (TypeError, ValueError):
        return None

    if not (math.isfinite(low) and math.isfinite(high)) or low > high:
        return None

    return low, high


class CapabilityNegotiator:
    """
    Owns device choice and CapabilityState for one scanning session.

    Every call into the capture layer is wrapped; failures become notices
    on the shared NoticeBoard and never propagate.

    Attributes:
        _capture: Capture layer collaborator
        _notices: Session notice board
        _rear_tokens: Rear camera label fragments
        _devices: Last enumerated device list
        _selected: Active device, if any
        _state: Torch/zoom state of the active device
    """

    def __init__(
        self,
        capture: CaptureLayer,
        notices: NoticeBoard,
        rear_tokens: Iterable[str] = DEFAULT_REAR_TOKENS
    ) -> None:
        self._capture = capture
        self._notices = notices
        self._rear_tokens = tuple(rear_tokens)
        self._devices: List[DeviceDescriptor] = []
        self._selected: Optional[DeviceDescriptor] = None
        self._state = CapabilityState()

    # =========================================================================
    # READ-ONLY STATE
    # =========================================================================

    @property
    def devices(self) -> List[DeviceDescriptor]:
        return list(self._devices)

    @property
    def selected_device(self) -> Optional[DeviceDescriptor]:
        return self._selected

    @property
    def state(self) -> CapabilityState:
        return self._state.model_copy()

    def find_device(self, device_id: str) -> Optional[DeviceDescriptor]:
        """Look up an enumerated device by id."""
        for device in self._devices:
            if device.id == device_id:
                return device
        return None

    # =========================================================================
    # DEVICE SELECTION
    # =========================================================================

    def on_devices_found(self, devices: Sequence[DeviceDescriptor]) -> Optional[DeviceDescriptor]:
        """
        Handle a device enumeration result.

        Args:
            devices: Enumerated devices

        Returns:
            Selected device, or None if the list is empty
        """
        self._devices = list(devices or [])
        chosen = choose_device(self._devices, self._rear_tokens)

        if chosen is None:
            logger.info("No camera devices enumerated")
            self._selected = None
            self._state = CapabilityState()
            self._notices.notify(notice_codes.NO_DEVICES, "No camera was found on this device")
            return None

        logger.info(f"Selected camera {chosen.label or chosen.id!r} of {len(self._devices)}")
        self._activate(chosen)
        return chosen

    def switch_device(self, device: DeviceDescriptor) -> None:
        """
        Make another enumerated device active and re-probe it.

        Raises:
            ValueError: If device was not enumerated
        """
        if self.find_device(device.id) is None:
            raise ValueError(f"Unknown device: {device.id}")

        logger.info(f"Switching camera to {device.label or device.id!r}")
        self._activate(device)

    def _activate(self, device: DeviceDescriptor) -> None:
        self._selected = device
        self._state = CapabilityState()

        try:
            self._capture.activate_device(device)
        except Exception as e:
            logger.warning(f"Camera activation request failed: {e}")

        self.probe()

    # =========================================================================
    # CAPABILITY PROBE
    # =========================================================================

    def probe(self) -> None:
        """Best-effort capability query for the active track."""
        try:
            result = self._capture.probe_capabilities()
        except Exception as e:
            logger.warning(f"Capability probe failed: {e}")
            self._state.torch_status = ProbeStatus.UNSUPPORTED
            self._state.zoom_status = ProbeStatus.UNSUPPORTED
            self._state.torch_on = False
            self._notices.notify(
                notice_codes.CAPABILITY_PROBE_FAILED,
                "Camera controls are unavailable; scanning continues without them"
            )
            return

        if result is not None:
            self.apply_probe_result(result)

    def apply_probe_result(self, result: Mapping[str, Any]) -> CapabilityState:
        """
        Record probed capabilities.

        Args:
            result: {"torch": bool, "zoom_range": [min, max]}; "zoomRange"
                is accepted as an alias, missing keys mean unsupported

        Returns:
            Updated capability state
        """
        state = self._state

        if result.get("torch"):
            state.torch_status = ProbeStatus.SUPPORTED
        else:
            state.torch_status = ProbeStatus.UNSUPPORTED
            state.torch_on = False

        zoom_range = parse_zoom_range(result.get("zoom_range", result.get("zoomRange")))

        if zoom_range is None:
            state.zoom_status = ProbeStatus.UNSUPPORTED
            state.zoom_min = state.zoom_max = state.zoom = 1.0
        else:
            state.zoom_status = ProbeStatus.SUPPORTED
            state.zoom_min, state.zoom_max = zoom_range
            state.zoom = self.clamp_zoom(state.zoom)

        logger.debug(
            f"Capabilities: torch={state.torch_status.value}, "
            f"zoom={state.zoom_status.value} [{state.zoom_min}, {state.zoom_max}]"
        )
        return self.state

    # =========================================================================
    # USER CONTROLS
    # =========================================================================

    def set_torch(self, on: bool) -> bool:
        """
        Request the torch on or off.

        Returns:
            True if the request was issued (torch supported)
        """
        if not self._state.torch_supported:
            logger.debug("Torch request ignored: not supported")
            return False

        self._state.torch_on = bool(on)

        try:
            self._capture.apply_torch(self._state.torch_on)
        except Exception as e:
            logger.warning(f"Torch apply failed: {e}")
            self._notices.notify(notice_codes.TORCH_APPLY_FAILED, "The torch could not be switched")

        return True

    def toggle_torch(self) -> bool:
        """Flip the torch; returns the requested state."""
        self.set_torch(not self._state.torch_on)
        return self._state.torch_on

    def clamp_zoom(self, value: float) -> float:
        """Clamp value into the probed zoom range."""
        return min(max(value, self._state.zoom_min), self._state.zoom_max)

    def set_zoom(self, value: float) -> float:
        """
        Request a zoom level, clamped to [zoom_min, zoom_max].

        Returns:
            The zoom level now reported
        """
        try:
            requested = float(value)
        except (TypeError, ValueError):
            logger.debug(f"Zoom request ignored: {value!r} is not a number")
            return self._state.zoom

        if math.isnan(requested):
            return self._state.zoom

        self._state.zoom = self.clamp_zoom(requested)

        if self._state.zoom_supported:
            try:
                self._capture.apply_zoom(self._state.zoom)
            except Exception as e:
                logger.warning(f"Zoom apply failed: {e}")
                self._notices.notify(notice_codes.ZOOM_APPLY_FAILED, "The zoom level could not be applied")

        return self._state.zoom
