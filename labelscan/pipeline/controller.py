"""
==============================================================================
Scan Controller Module
==============================================================================

Orchestrates the pipeline for one scanning session.

Decode Event Flow:
-----------------
    raw text / raw result
           │
    ┌──────▼──────┐
    │  Sanitize   │
    └──────┬──────┘
    ┌──────▼──────┐
    │   History   │  (always)
    └──────┬──────┘
    ┌──────▼──────┐     ┌─────────────┐
    │  Stability  │────▶│  IGNORED    │ unstable
    └──────┬──────┘     └─────────────┘
    ┌──────▼──────┐     ┌─────────────┐
    │  Cooldown   │────▶│  IGNORED    │ cooldown
    └──────┬──────┘     └─────────────┘
    ┌──────▼──────┐     ┌─────────────┐
    │  Extractor  │────▶│  IGNORED    │ no-pattern
    └──────┬──────┘     └─────────────┘
    ┌──────▼──────┐
    │  ACCEPTED   │
    └─────────────┘

The controller is single-threaded: callers serialize decode events and
lifecycle callbacks. One controller is built per session and discarded
after close().

==============================================================================
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from . import notices as notice_codes
from .capabilities import DEFAULT_REAR_TOKENS, CapabilityNegotiator
from .capture import CaptureLayer
from .extractor import PatternExtractor
from .gates import (
    DEFAULT_COOLDOWN_MS,
    DEFAULT_REQUIRED_STABLE_READS,
    CooldownGate,
    StabilityGate,
)
from .history import DEFAULT_HISTORY_CAPACITY, HistoryLog
from .models import (
    CapabilityState,
    DecodeOutcome,
    DeviceDescriptor,
    HistoryEntry,
    IgnoreReason,
    Notice,
    RawDecodeEvent,
    ScanStatus,
)
from .notices import NoticeBoard
from .sanitizer import sanitize


# Module logger
logger = logging.getLogger(__name__)


def monotonic_ms() -> float:
    """Default clock: monotonic milliseconds."""
    return time.monotonic() * 1000.0


def to_decode_event(raw: Any, format_tag: str = "") -> RawDecodeEvent:
    """
    Normalize what a decoder hands over into a RawDecodeEvent.

    Accepts plain text, a RawDecodeEvent, a mapping with "text" and
    "format"/"format_tag", or a result object exposing text/get_text()
    and format/type.
    """
    if isinstance(raw, RawDecodeEvent):
        return raw

    if raw is None or isinstance(raw, (str, bytes)):
        return RawDecodeEvent(text=coerce_text(raw), format_tag=format_tag or "")

    if isinstance(raw, Mapping):
        text = raw.get("text", "")
        tag = raw.get("format_tag", raw.get("format", format_tag))
        return RawDecodeEvent(text=coerce_text(text), format_tag=str(tag or ""))

    getter = getattr(raw, "get_text", None)
    text = getter() if callable(getter) else getattr(raw, "text", "")
    tag = getattr(raw, "format", None) or getattr(raw, "type", None) or format_tag

    return RawDecodeEvent(text=coerce_text(text), format_tag=str(tag or ""))


def coerce_text(value: Any) -> str:
    """Coerce decoder payloads to str without altering the text itself."""
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


class ScanController:
    """
    Stabilization and validation pipeline for one scanning session.

    Owns the stability and cooldown gates, the pattern extractor, the
    capability negotiator, the history log and the notice board. Exposes
    the state the UI reads (last_result, last_ignored, devices, torch,
    zoom, history, notices).

    Attributes:
        _capture: Capture layer collaborator
        _stability: StabilityGate
        _cooldown: CooldownGate
        _extractor: PatternExtractor
        _history: HistoryLog
        _notices: NoticeBoard
        _negotiator: CapabilityNegotiator
        _feedback: Optional callback fired with each accepted code
        _clock: Monotonic millisecond clock

    Example:
        >>> controller = ScanController(QueuedCaptureLayer())
        >>> first = controller.on_decode_success("*J5-STR-264019-00016-41131-336923*")
        >>> outcome = controller.on_decode_success("*J5-STR-264019-00016-41131-336923*")
        >>> controller.last_result
        'J5-STR-264019-00016-41131-336923'
    """

    def __init__(
        self,
        capture: CaptureLayer,
        required_stable_reads: int = DEFAULT_REQUIRED_STABLE_READS,
        cooldown_ms: float = DEFAULT_COOLDOWN_MS,
        history_capacity: int = DEFAULT_HISTORY_CAPACITY,
        rear_tokens: Iterable[str] = DEFAULT_REAR_TOKENS,
        feedback: Optional[Callable[[str], None]] = None,
        clock: Callable[[], float] = monotonic_ms,
    ) -> None:
        self._capture = capture
        self._stability = StabilityGate(required_stable_reads)
        self._cooldown = CooldownGate(cooldown_ms)
        self._extractor = PatternExtractor()
        self._history = HistoryLog(history_capacity)
        self._notices = NoticeBoard()
        self._negotiator = CapabilityNegotiator(capture, self._notices, rear_tokens)
        self._feedback = feedback
        self._clock = clock

        self._last_result: Optional[str] = None
        self._last_ignored: Optional[str] = None
        self._permission_granted: Optional[bool] = None
        self._closed = False
        self._stats: Dict[str, int] = {
            "decoded": 0,
            "decode_errors": 0,
            "accepted": 0,
            IgnoreReason.UNSTABLE.value: 0,
            IgnoreReason.COOLDOWN.value: 0,
            IgnoreReason.NO_PATTERN.value: 0,
        }

        logger.debug(
            f"Scan controller created (stable_reads={required_stable_reads}, "
            f"cooldown_ms={cooldown_ms}, history={history_capacity})"
        )

    # =========================================================================
    # DECODE EVENTS
    # =========================================================================

    def on_decode_success(self, raw_text: Any, format_tag: str = "") -> DecodeOutcome:
        """Capture-layer callback for one decoded frame."""
        return self.on_decode_event(raw_text, format_tag)

    def on_decode_event(self, raw: Any, format_tag: str = "") -> DecodeOutcome:
        """
        Run one decode event through the pipeline.

        Args:
            raw: Decoded text or structured decode result
            format_tag: Barcode format when raw is plain text

        Returns:
            DecodeOutcome describing acceptance or the ignore reason
        """
        event = to_decode_event(raw, format_tag)
        text = sanitize(event.text)
        self._stats["decoded"] += 1

        self._history.append(text, event.format_tag)

        if not self._stability.observe(text):
            return self._ignore(text, IgnoreReason.UNSTABLE)

        now = self._clock()

        if not self._cooldown.is_open(now):
            return self._ignore(text, IgnoreReason.COOLDOWN)

        code = self._extractor.extract(text)

        if code is None:
            return self._ignore(text, IgnoreReason.NO_PATTERN)

        return self._accept(text, code, now)

    def on_decode_error(self, error: Any = None) -> None:
        """Per-frame decode failure: routine, counted only."""
        self._stats["decode_errors"] += 1

    def _accept(self, text: str, code: str, now: float) -> DecodeOutcome:
        self._last_result = code
        self._last_ignored = None
        self._cooldown.mark_accepted(now)
        self._stats["accepted"] += 1

        logger.info(f"Accepted {code}")
        self._fire_feedback(code)

        return DecodeOutcome(status=ScanStatus.ACCEPTED, text=text, code=code)

    def _ignore(self, text: str, reason: IgnoreReason) -> DecodeOutcome:
        self._last_ignored = text
        self._stats[reason.value] += 1

        logger.debug(f"Ignored {text!r}: {reason.value}")
        return DecodeOutcome(status=ScanStatus.IGNORED, reason=reason, text=text)

    def _fire_feedback(self, code: str) -> None:
        if self._feedback is None:
            return

        try:
            self._feedback(code)
        except Exception as e:
            logger.warning(f"Scan feedback failed: {e}")

    # =========================================================================
    # CAPTURE LIFECYCLE CALLBACKS
    # =========================================================================

    def on_devices_found(self, devices: Sequence[Any]) -> Optional[DeviceDescriptor]:
        """
        Device enumeration callback.

        Args:
            devices: DeviceDescriptor items or {"id", "label"} mappings

        Returns:
            Selected device or None
        """
        descriptors = [
            device if isinstance(device, DeviceDescriptor) else DeviceDescriptor.model_validate(device)
            for device in devices or []
        ]
        return self._negotiator.on_devices_found(descriptors)

    def on_permission_result(self, granted: bool) -> None:
        """
        Camera permission callback.

        A denial is reported once as a notice. A grant with no known
        devices triggers an enumeration; a failed enumeration counts as
        finding no camera.
        """
        self._permission_granted = bool(granted)

        if not granted:
            self._notices.notify(notice_codes.PERMISSION_DENIED, "Camera permission was denied")
            return

        if self._negotiator.devices:
            return

        try:
            devices = self._capture.enumerate_devices()
        except Exception as e:
            logger.warning(f"Device enumeration failed: {e}")
            devices = []

        if devices is not None:
            self.on_devices_found(devices)

    def on_capabilities(self, result: Mapping[str, Any]) -> CapabilityState:
        """Late capability probe answer from the capture layer."""
        return self._negotiator.apply_probe_result(result)

    def close(self) -> None:
        """
        Tear the session down: ask the capture layer to stop.

        Never raises; calling it twice is harmless.
        """
        if self._closed:
            return

        self._closed = True

        try:
            self._capture.stop()
        except Exception as e:
            logger.warning(f"Camera stop failed: {e}")
            self._notices.notify(notice_codes.CAMERA_STOP_FAILED, "The camera could not be released")

        logger.debug("Scan controller closed")

    # =========================================================================
    # UI STATE
    # =========================================================================

    @property
    def last_result(self) -> Optional[str]:
        return self._last_result

    @property
    def last_ignored(self) -> Optional[str]:
        return self._last_ignored

    @property
    def devices(self) -> List[DeviceDescriptor]:
        return self._negotiator.devices

    @property
    def selected_device(self) -> Optional[DeviceDescriptor]:
        return self._negotiator.selected_device

    @selected_device.setter
    def selected_device(self, device: DeviceDescriptor) -> None:
        self._negotiator.switch_device(device)

    def select_device_by_id(self, device_id: str) -> Optional[DeviceDescriptor]:
        """Switch to an enumerated device; None if the id is unknown."""
        device = self._negotiator.find_device(device_id)
        if device is not None:
            self._negotiator.switch_device(device)
        return device

    @property
    def torch_on(self) -> bool:
        return self._negotiator.state.torch_on

    @torch_on.setter
    def torch_on(self, on: bool) -> None:
        self._negotiator.set_torch(on)

    def toggle_torch(self) -> bool:
        return self._negotiator.toggle_torch()

    @property
    def torch_available(self) -> bool:
        return self._negotiator.state.torch_supported

    @property
    def zoom(self) -> float:
        return self._negotiator.state.zoom

    @zoom.setter
    def zoom(self, value: float) -> None:
        self._negotiator.set_zoom(value)

    @property
    def zoom_supported(self) -> bool:
        return self._negotiator.state.zoom_supported

    @property
    def zoom_min(self) -> float:
        return self._negotiator.state.zoom_min

    @property
    def zoom_max(self) -> float:
        return self._negotiator.state.zoom_max

    @property
    def capabilities(self) -> CapabilityState:
        return self._negotiator.state

    @property
    def history(self) -> List[HistoryEntry]:
        return self._history.entries()

    @property
    def history_capacity(self) -> int:
        return self._history.capacity

    @property
    def notices(self) -> List[Notice]:
        return self._notices.notices()

    @property
    def permission_granted(self) -> Optional[bool]:
        return self._permission_granted

    @property
    def stats(self) -> Dict[str, int]:
        return dict(self._stats)

    @property
    def closed(self) -> bool:
        return self._closed
