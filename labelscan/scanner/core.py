"""
==============================================================================
Local Capture Module
==============================================================================

OpenCV camera + pyzbar decoder feeding a ScanController.

Classes:
--------
- FrameDecoder: Decodes barcodes in OpenCV frames or encoded images
- OpenCVCaptureLayer: CaptureLayer backed by cv2.VideoCapture
- LiveScanner: Camera loop turning frames into decode events

Capability Notes:
----------------
- Torch: OpenCV exposes no torch control; always reported unsupported
- Zoom: CAP_PROP_ZOOM is applied when the backend accepts it; OpenCV does
  not report zoom limits, so the configured range is advertised

==============================================================================
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Iterable, List, Optional, Tuple

import cv2
import numpy as np

from labelscan.pipeline import (
    CaptureLayer,
    DecodeOutcome,
    DeviceDescriptor,
    PatternExtractor,
    RawDecodeEvent,
    ScanController,
    sanitize,
)


# Module logger
logger = logging.getLogger(__name__)


# Client-side format names -> pyzbar ZBarSymbol names
PYZBAR_SYMBOLS: Dict[str, str] = {
    "CODE_128": "CODE128",
    "CODE_39": "CODE39",
    "CODE_93": "CODE93",
    "ITF": "I25",
    "CODABAR": "CODABAR",
    "EAN_13": "EAN13",
    "EAN_8": "EAN8",
    "UPC_A": "UPCA",
    "UPC_E": "UPCE",
    "QR_CODE": "QRCODE",
}


class FrameDecoder:
    """
    Barcode decoder for OpenCV frames.

    Example:
        >>> decoder = FrameDecoder(["CODE_128", "CODE_39"])
        >>> events = decoder.decode(frame)
    """

    def __init__(self, formats: Optional[Iterable[str]] = None) -> None:
        self._formats = [name.upper() for name in formats] if formats else []
        self._extractor = PatternExtractor()

    @property
    def formats(self) -> List[str]:
        return list(self._formats)

    def symbol_names(self) -> List[str]:
        """pyzbar symbol names for the configured formats."""
        return [PYZBAR_SYMBOLS[name] for name in self._formats if name in PYZBAR_SYMBOLS]

    def decode(self, frame: np.ndarray) -> List[RawDecodeEvent]:
        """
        Decode all barcodes in a frame.

        Args:
            frame: OpenCV image (numpy array)

        Returns:
            One RawDecodeEvent per barcode found (empty if none)
        """
        if frame is None or frame.size == 0:
            return []

        # libzbar is loaded only once frames are actually decoded
        from pyzbar.pyzbar import ZBarSymbol, decode

        symbols = [ZBarSymbol[name] for name in self.symbol_names()] or None
        barcodes = decode(frame, symbols=symbols)

        return [self.to_event(barcode) for barcode in barcodes]

    def decode_image_bytes(self, data: bytes) -> List[RawDecodeEvent]:
        """
        Decode barcodes in an encoded image (JPEG/PNG bytes).

        Raises:
            ValueError: If the bytes are not a readable image
        """
        nparr = np.frombuffer(data, np.uint8)
        frame = cv2.imdecode(nparr, cv2.IMREAD_COLOR)

        if frame is None:
            raise ValueError("Image could not be decoded")

        return self.decode(frame)

    def primary_event(self, events: List[RawDecodeEvent]) -> Optional[RawDecodeEvent]:
        """
        Reduce the barcodes found in one frame to a single decode event.

        A frame is one read: the first symbol carrying a label code wins,
        otherwise the first symbol found.

        Returns:
            The frame's decode event, or None for an empty list
        """
        for event in events:
            if self._extractor.extract(sanitize(event.text)) is not None:
                return event

        return events[0] if events else None

    @staticmethod
    def to_event(barcode: Any) -> RawDecodeEvent:
        """Convert a pyzbar Decoded result into a RawDecodeEvent."""
        data = barcode.data
        text = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else str(data)
        return RawDecodeEvent(text=text, format_tag=str(barcode.type or ""))


class OpenCVCaptureLayer(CaptureLayer):
    """
    CaptureLayer for a locally attached camera.

    Attributes:
        _cap: Active cv2.VideoCapture, if any
        _width / _height / _frame_rate: Requested capture mode
        _zoom_range: Advertised zoom range when the backend accepts zoom
        _max_devices: Number of camera indices probed on enumeration
    """

    def __init__(
        self,
        width: int = 1920,
        height: int = 1080,
        frame_rate: int = 30,
        zoom_range: Tuple[float, float] = (1.0, 5.0),
        max_devices: int = 4
    ) -> None:
        self._cap = None
        self._active_index: Optional[int] = None
        self._width = width
        self._height = height
        self._frame_rate = frame_rate
        self._zoom_range = zoom_range
        self._max_devices = max_devices

    @property
    def is_open(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    def enumerate_devices(self) -> List[DeviceDescriptor]:
        devices = []

        for index in range(self._max_devices):
            if index == self._active_index and self.is_open:
                devices.append(self._descriptor(index))
                continue

            cap = cv2.VideoCapture(index)
            try:
                if cap.isOpened():
                    devices.append(self._descriptor(index))
            finally:
                cap.release()

        logger.debug(f"Enumerated {len(devices)} camera(s)")
        return devices

    def activate_device(self, device: DeviceDescriptor) -> None:
        self._release()

        index = int(device.id)
        cap = cv2.VideoCapture(index)

        if not cap.isOpened():
            cap.release()
            raise RuntimeError(f"Cannot open camera {index}")

        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._height)
        cap.set(cv2.CAP_PROP_FPS, self._frame_rate)

        self._cap = cap
        self._active_index = index
        logger.info(f"📷 Camera {index} opened")

    def probe_capabilities(self) -> Optional[Dict[str, Any]]:
        if not self.is_open:
            raise RuntimeError("No active camera")

        current = self._cap.get(cv2.CAP_PROP_ZOOM)
        zoom_supported = current > 0 and self._cap.set(cv2.CAP_PROP_ZOOM, current)

        return {
            "torch": False,
            "zoom_range": list(self._zoom_range) if zoom_supported else None,
        }

    def apply_torch(self, on: bool) -> None:
        logger.debug("Torch is not controllable through OpenCV")

    def apply_zoom(self, value: float) -> None:
        if not self.is_open:
            raise RuntimeError("No active camera")

        if not self._cap.set(cv2.CAP_PROP_ZOOM, value):
            raise RuntimeError(f"Backend rejected zoom {value}")

    def read(self) -> Optional[np.ndarray]:
        """Grab one frame; None when no frame could be read."""
        if not self.is_open:
            return None

        ret, frame = self._cap.read()
        return frame if ret else None

    def stop(self) -> None:
        self._release()
        logger.debug("Camera released")

    def _release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            self._active_index = None

    @staticmethod
    def _descriptor(index: int) -> DeviceDescriptor:
        return DeviceDescriptor(id=str(index), label=f"Camera {index}")


class LiveScanner:
    """
    Camera loop feeding a ScanController.

    Example:
        >>> capture = OpenCVCaptureLayer()
        >>> controller = ScanController(capture)
        >>> codes = LiveScanner(controller, capture, FrameDecoder()).run(duration_seconds=30)
    """

    def __init__(
        self,
        controller: ScanController,
        capture: OpenCVCaptureLayer,
        decoder: FrameDecoder
    ) -> None:
        self._controller = controller
        self._capture = capture
        self._decoder = decoder

    def start(self) -> bool:
        """
        Enumerate cameras and let the controller pick one.

        Returns:
            True if a camera was selected
        """
        self._controller.on_permission_result(True)
        return self._controller.selected_device is not None

    def process_frame(self, frame: np.ndarray) -> Optional[DecodeOutcome]:
        """
        Decode one frame and feed it to the controller as a single read.

        A frame without barcodes, or one the decoder chokes on, counts as
        a routine decode failure.
        """
        try:
            events = self._decoder.decode(frame)
        except Exception as e:
            self._controller.on_decode_error(e)
            return None

        event = self._decoder.primary_event(events)
        if event is None:
            self._controller.on_decode_error(None)
            return None

        return self._controller.on_decode_event(event)

    def run(
        self,
        duration_seconds: float = 30,
        max_frames: Optional[int] = None
    ) -> List[str]:
        """
        Scan until the duration elapses, max_frames is reached or the
        camera stops delivering frames.

        Args:
            duration_seconds: How long to scan (0 = indefinite)
            max_frames: Optional frame budget

        Returns:
            Accepted codes in acceptance order
        """
        accepted: List[str] = []

        if not self.start():
            logger.error("No camera available for live scanning")
            self._controller.close()
            return accepted

        logger.info("📷 Starting live scan")
        start_time = time.monotonic()
        frames = 0

        try:
            while True:
                frame = self._capture.read()
                if frame is None:
                    logger.warning("Failed to read frame")
                    break

                frames += 1
                outcome = self.process_frame(frame)
                if outcome is not None and outcome.accepted:
                    accepted.append(outcome.code)
                    logger.info(f"✓ Accepted: {outcome.code}")

                if max_frames is not None and frames >= max_frames:
                    break

                if duration_seconds > 0 and time.monotonic() - start_time >= duration_seconds:
                    logger.info(f"Duration {duration_seconds}s reached")
                    break
        finally:
            self._controller.close()

        logger.info(f"📊 {frames} frames, {len(accepted)} accepted")
        return accepted
