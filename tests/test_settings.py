"""Tests for environment-driven Settings."""

import pytest
from pydantic import ValidationError

from vm_power.settings import Settings, get_settings


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("VM_POWER_GUARD_OUTSTANDING_TASK", raising=False)
        monkeypatch.delenv("VM_POWER_NETWORK_DEVICE", raising=False)
        settings = Settings()
        assert settings.guard_outstanding_task is True
        assert settings.network_device == "net0"

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VM_POWER_GUARD_OUTSTANDING_TASK", "false")
        monkeypatch.setenv("VM_POWER_NETWORK_DEVICE", "net1")
        settings = Settings()
        assert settings.guard_outstanding_task is False
        assert settings.network_device == "net1"

    def test_empty_network_device_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(network_device="")

    def test_frozen(self) -> None:
        settings = Settings()
        with pytest.raises(ValidationError):
            settings.guard_outstanding_task = False  # type: ignore[misc]

    def test_get_settings_cached(self) -> None:
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
