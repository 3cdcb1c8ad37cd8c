"""
==============================================================================
Pytest Configuration and Fixtures
==============================================================================

Provides test client, authentication and pipeline fixtures.

==============================================================================
"""

import pytest
from typing import Dict, Generator, List
from fastapi.testclient import TestClient

from labelscan.main import app
from labelscan.config import get_settings
from labelscan.core.security import get_security_manager
from labelscan.pipeline import (
    DeviceDescriptor,
    QueuedCaptureLayer,
    ScanController,
)


VALID_CODE = "J5-STR-264019-00016-41131-336923"


# ============================================================================
# CLIENT FIXTURES
# ============================================================================

@pytest.fixture(scope="function")
def client() -> Generator[TestClient, None, None]:
    """Create test client; shutdown closes every scan session."""
    with TestClient(app) as test_client:
        yield test_client


# ============================================================================
# TOKEN FIXTURES
# ============================================================================

@pytest.fixture
def operator_email() -> str:
    return get_settings().demo_user_email


@pytest.fixture
def operator_token(operator_email: str) -> str:
    """Create access token for the demo operator."""
    security = get_security_manager()
    return security.create_access_token(operator_email, operator_email.split("@")[0])


@pytest.fixture
def operator_headers(operator_token: str) -> Dict[str, str]:
    """Authorization headers for the demo operator."""
    return {"Authorization": f"Bearer {operator_token}"}


@pytest.fixture
def stranger_headers() -> Dict[str, str]:
    """Authorization headers for a token naming an unknown operator."""
    security = get_security_manager()
    token = security.create_access_token("someone@else.example")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def scan_session(client: TestClient, operator_headers: Dict[str, str]) -> dict:
    """Start a scan session for the demo operator."""
    response = client.post("/api/v1/scanner/session", headers=operator_headers)
    assert response.status_code == 200
    return response.json()


# ============================================================================
# PIPELINE FIXTURES
# ============================================================================

class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class RecordingCapture(QueuedCaptureLayer):
    """Capture layer answering probes synchronously and recording calls."""

    def __init__(self, devices=None, probe_result=None):
        super().__init__()
        self.devices = list(devices or [])
        self.probe_result = probe_result
        self.torch_calls: List[bool] = []
        self.zoom_calls: List[float] = []
        self.activated: List[str] = []
        self.stop_calls = 0
        self.fail_torch = False
        self.fail_zoom = False
        self.fail_probe = False
        self.fail_stop = False

    def enumerate_devices(self):
        return list(self.devices)

    def activate_device(self, device):
        self.activated.append(device.id)

    def probe_capabilities(self):
        if self.fail_probe:
            raise RuntimeError("probe failed")
        return self.probe_result

    def apply_torch(self, on):
        if self.fail_torch:
            raise RuntimeError("torch failed")
        self.torch_calls.append(on)

    def apply_zoom(self, value):
        if self.fail_zoom:
            raise RuntimeError("zoom failed")
        self.zoom_calls.append(value)

    def stop(self):
        self.stop_calls += 1
        if self.fail_stop:
            raise RuntimeError("stop failed")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(start=10_000.0)


@pytest.fixture
def devices() -> List[DeviceDescriptor]:
    return [
        DeviceDescriptor(id="front", label="Front Camera"),
        DeviceDescriptor(id="rear", label="Back Camera"),
    ]


@pytest.fixture
def capture(devices: List[DeviceDescriptor]) -> RecordingCapture:
    return RecordingCapture(devices, probe_result={"torch": True, "zoom_range": [1.0, 4.0]})


@pytest.fixture
def controller(capture: RecordingCapture, clock: FakeClock) -> ScanController:
    return ScanController(capture, clock=clock)
