"""
==============================================================================
Configuration and Session Service Tests
==============================================================================
"""

import pytest
from pydantic import ValidationError

from labelscan.config import Settings
from labelscan.pipeline import QueuedCaptureLayer
from labelscan.services.session_service import ScanSessionManager
from labelscan.utils import EmailValidator, PasswordValidator

from conftest import VALID_CODE


class TestSettings:
    """Tests for settings parsing."""

    def test_pipeline_defaults(self):
        settings = Settings()
        assert settings.required_stable_reads == 2
        assert settings.cooldown_ms == 900
        assert settings.history_capacity == 20

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("REQUIRED_STABLE_READS", "3")
        monkeypatch.setenv("COOLDOWN_MS", "1500")
        monkeypatch.setenv("REAR_CAMERA_TOKENS", "dock, , Rear ")

        settings = Settings()
        assert settings.required_stable_reads == 3
        assert settings.cooldown_ms == 1500
        assert settings.rear_camera_token_list == ["dock", "Rear"]

    def test_barcode_formats_uppercased(self):
        settings = Settings(barcode_formats="code_39, itf")
        assert settings.barcode_format_list == ["CODE_39", "ITF"]

    def test_unknown_environment_falls_back(self):
        assert Settings(app_env="Moon").app_env == "development"

    def test_unsupported_jwt_algorithm(self):
        with pytest.raises(ValidationError):
            Settings(jwt_algorithm="RS256")

    def test_invalid_stable_reads(self):
        with pytest.raises(ValidationError):
            Settings(required_stable_reads=0)

    def test_cors_origins(self):
        assert Settings(cors_origins='["http://localhost:4200"]').cors_origins_list == ["http://localhost:4200"]
        assert Settings(cors_origins="not json").cors_origins_list == ["*"]


class TestValidators:
    """Tests for login input validators."""

    @pytest.mark.parametrize("email", ["Operator@Example.com", "a.b@c.io"])
    def test_valid_email(self, email: str):
        is_valid, normalized, error = EmailValidator().validate(f"  {email} ")
        assert is_valid
        assert normalized == email.lower()
        assert error is None

    @pytest.mark.parametrize("email", ["", "no-at-sign", "a@b", "a b@c.io", "a@@c.io"])
    def test_invalid_email(self, email: str):
        is_valid, _, error = EmailValidator().validate(email)
        assert not is_valid
        assert error

    def test_password_length(self):
        assert PasswordValidator().validate("scanner123") == (True, None)
        assert PasswordValidator().validate("12345")[0] is False
        assert PasswordValidator().validate("x" * 129)[0] is False


class TestScanSessionManager:
    """Tests for the per-operator session registry."""

    def test_controller_built_from_settings(self):
        manager = ScanSessionManager(Settings(required_stable_reads=1, history_capacity=5))
        capture = QueuedCaptureLayer()
        controller = manager.create_controller(capture)

        assert controller.on_decode_success(VALID_CODE).accepted
        assert controller.history_capacity == 5
        assert capture.drain() == [{"command": "feedback", "code": VALID_CODE}]

    def test_feedback_disabled(self):
        manager = ScanSessionManager(Settings(required_stable_reads=1, feedback_enabled=False))
        capture = QueuedCaptureLayer()
        manager.create_controller(capture).on_decode_success(VALID_CODE)

        assert capture.drain() == []

    def test_start_replaces_and_closes_previous(self):
        manager = ScanSessionManager(Settings())
        first = manager.start("op@example.com")
        second = manager.start("op@example.com")

        assert first.controller.closed
        assert manager.get("op@example.com") is second
        assert len(manager) == 1

    def test_end_and_close_all(self):
        manager = ScanSessionManager(Settings())
        manager.start("a@example.com")
        manager.start("b@example.com")

        assert manager.end("a@example.com") is True
        assert manager.end("a@example.com") is False
        assert manager.close_all() == 1
        assert len(manager) == 0

    def test_capture_config(self):
        config = ScanSessionManager(Settings(camera_width=1280)).capture_config()
        assert config.width == 1280
        assert config.facing_mode == "environment"
