"""
==============================================================================
Local Capture Tests
==============================================================================

OpenCV camera access is replaced by a fake VideoCapture; frames are plain
numpy arrays and decoding is stubbed.

==============================================================================
"""

from types import SimpleNamespace

import cv2
import numpy as np
import pytest

from labelscan.pipeline import DeviceDescriptor, RawDecodeEvent, ScanController
from labelscan.pipeline import notices as notice_codes
from labelscan.scanner import FrameDecoder, LiveScanner, OpenCVCaptureLayer
from labelscan.scanner import core

from conftest import VALID_CODE, FakeClock


class FakeVideoCapture:
    """Stand-in for cv2.VideoCapture."""

    available = {0, 1}
    zoom = 1.0
    frames = 3

    def __init__(self, index):
        self.index = index
        self.opened = index in self.available
        self.released = False
        self.props = {}
        self.reads = 0

    def isOpened(self):
        return self.opened and not self.released

    def release(self):
        self.released = True

    def set(self, prop, value):
        if prop == cv2.CAP_PROP_ZOOM and self.zoom <= 0:
            return False
        self.props[prop] = value
        return True

    def get(self, prop):
        if prop == cv2.CAP_PROP_ZOOM:
            return self.zoom
        return self.props.get(prop, 0)

    def read(self):
        if self.reads >= self.frames:
            return False, None
        self.reads += 1
        return True, np.zeros((4, 4, 3), dtype=np.uint8)


@pytest.fixture
def fake_cv2(monkeypatch):
    opened = []

    def factory(index):
        cap = FakeVideoCapture(index)
        opened.append(cap)
        return cap

    monkeypatch.setattr(core.cv2, "VideoCapture", factory)
    monkeypatch.setattr(FakeVideoCapture, "zoom", 1.0)
    return opened


class TestFrameDecoder:
    """Tests for decoder configuration and result conversion."""

    def test_symbol_names(self):
        decoder = FrameDecoder(["code_128", "ITF", "UPC_A", "AZTEC"])
        assert decoder.symbol_names() == ["CODE128", "I25", "UPCA"]

    def test_to_event(self):
        barcode = SimpleNamespace(data=b"*J5-STR*", type="CODE39")
        event = FrameDecoder.to_event(barcode)
        assert event == RawDecodeEvent(text="*J5-STR*", format_tag="CODE39")

    def test_empty_frame(self):
        assert FrameDecoder().decode(np.zeros((0, 0), dtype=np.uint8)) == []

    def test_unreadable_image_bytes(self):
        with pytest.raises(ValueError):
            FrameDecoder().decode_image_bytes(b"definitely not a png")

    def test_primary_event_prefers_label_code(self):
        ean = RawDecodeEvent(text="4006381333931", format_tag="EAN13")
        label = RawDecodeEvent(text=f"*{VALID_CODE}*", format_tag="CODE39")

        assert FrameDecoder().primary_event([ean, label]) == label

    def test_primary_event_falls_back_to_first(self):
        first = RawDecodeEvent(text="4006381333931", format_tag="EAN13")
        second = RawDecodeEvent(text="hello", format_tag="QRCODE")

        assert FrameDecoder().primary_event([first, second]) == first
        assert FrameDecoder().primary_event([]) is None


class TestOpenCVCaptureLayer:
    """Tests for the local camera capture layer."""

    def test_enumerate_devices(self, fake_cv2):
        devices = OpenCVCaptureLayer(max_devices=3).enumerate_devices()

        assert [d.id for d in devices] == ["0", "1"]
        assert devices[0].label == "Camera 0"
        assert all(cap.released for cap in fake_cv2)

    def test_activate_applies_capture_mode(self, fake_cv2):
        capture = OpenCVCaptureLayer(width=1280, height=720, frame_rate=15)
        capture.activate_device(DeviceDescriptor(id="1", label="Camera 1"))

        cap = fake_cv2[-1]
        assert capture.is_open
        assert cap.props[cv2.CAP_PROP_FRAME_WIDTH] == 1280
        assert cap.props[cv2.CAP_PROP_FRAME_HEIGHT] == 720
        assert cap.props[cv2.CAP_PROP_FPS] == 15

    def test_activate_missing_camera(self, fake_cv2):
        with pytest.raises(RuntimeError):
            OpenCVCaptureLayer().activate_device(DeviceDescriptor(id="7", label="Camera 7"))

    def test_probe_reports_zoom_range(self, fake_cv2):
        capture = OpenCVCaptureLayer(zoom_range=(1.0, 3.0))
        capture.activate_device(DeviceDescriptor(id="0", label="Camera 0"))

        assert capture.probe_capabilities() == {"torch": False, "zoom_range": [1.0, 3.0]}

    def test_probe_without_zoom(self, fake_cv2, monkeypatch):
        monkeypatch.setattr(FakeVideoCapture, "zoom", 0.0)
        capture = OpenCVCaptureLayer()
        capture.activate_device(DeviceDescriptor(id="0", label="Camera 0"))

        assert capture.probe_capabilities() == {"torch": False, "zoom_range": None}

    def test_probe_without_camera(self):
        with pytest.raises(RuntimeError):
            OpenCVCaptureLayer().probe_capabilities()

    def test_apply_zoom(self, fake_cv2):
        capture = OpenCVCaptureLayer()
        capture.activate_device(DeviceDescriptor(id="0", label="Camera 0"))
        capture.apply_zoom(2.5)

        assert fake_cv2[-1].props[cv2.CAP_PROP_ZOOM] == 2.5

    def test_stop_releases(self, fake_cv2):
        capture = OpenCVCaptureLayer()
        capture.activate_device(DeviceDescriptor(id="0", label="Camera 0"))
        capture.stop()

        assert not capture.is_open
        assert capture.read() is None

    def test_controller_integration(self, fake_cv2):
        """Test a controller negotiates the local camera end to end."""
        capture = OpenCVCaptureLayer(max_devices=2)
        controller = ScanController(capture, clock=FakeClock())
        controller.on_permission_result(True)

        assert controller.selected_device.id == "0"
        assert controller.torch_available is False
        assert controller.zoom_supported is True

        controller.zoom = 9
        assert controller.zoom == 5.0

        controller.close()
        assert not capture.is_open


class StubDecoder(FrameDecoder):
    """Decoder returning scripted results per frame."""

    def __init__(self, script):
        super().__init__()
        self._script = list(script)

    def decode(self, frame):
        result = self._script.pop(0) if self._script else []
        if isinstance(result, Exception):
            raise result
        return result


class TestLiveScanner:
    """Tests for the camera loop."""

    def test_run_accepts_stable_code(self, fake_cv2, monkeypatch):
        monkeypatch.setattr(FakeVideoCapture, "frames", 4)
        event = RawDecodeEvent(text=f"*{VALID_CODE}*", format_tag="CODE39")
        decoder = StubDecoder([[event], RuntimeError("zbar choked"), [event], []])

        capture = OpenCVCaptureLayer(max_devices=1)
        controller = ScanController(capture, clock=FakeClock())
        codes = LiveScanner(controller, capture, decoder).run(duration_seconds=0)

        assert codes == [VALID_CODE]
        assert controller.stats["decode_errors"] == 2
        assert controller.closed

    def test_label_with_second_barcode(self, fake_cv2, monkeypatch):
        """Test an extra symbol in every frame does not break the stability run."""
        monkeypatch.setattr(FakeVideoCapture, "frames", 10)
        frame_events = [
            RawDecodeEvent(text=VALID_CODE, format_tag="CODE128"),
            RawDecodeEvent(text="4006381333931", format_tag="EAN13"),
        ]
        decoder = StubDecoder([list(frame_events) for _ in range(10)])

        capture = OpenCVCaptureLayer(max_devices=1)
        controller = ScanController(capture, clock=FakeClock())
        codes = LiveScanner(controller, capture, decoder).run(duration_seconds=0)

        assert codes == [VALID_CODE]
        assert controller.stats["decoded"] == 10

    def test_max_frames(self, fake_cv2, monkeypatch):
        monkeypatch.setattr(FakeVideoCapture, "frames", 100)
        capture = OpenCVCaptureLayer(max_devices=1)
        controller = ScanController(capture, clock=FakeClock())

        LiveScanner(controller, capture, StubDecoder([])).run(duration_seconds=0, max_frames=5)

        assert controller.stats["decode_errors"] == 5
        assert controller.closed

    def test_no_camera(self, fake_cv2, monkeypatch):
        monkeypatch.setattr(FakeVideoCapture, "available", set())
        capture = OpenCVCaptureLayer(max_devices=2)
        controller = ScanController(capture, clock=FakeClock())

        assert LiveScanner(controller, capture, StubDecoder([])).run() == []
        assert controller.closed
        assert [n.code for n in controller.notices] == [notice_codes.NO_DEVICES]
