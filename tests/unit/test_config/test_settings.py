"""Tests for configuration loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from sshmenu.config.settings import (
    DEFAULT_INFO,
    LoggingConfig,
    MenuConfig,
    ServerConfig,
    Settings,
    load_settings,
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep real SSHMENU_* variables and .env files out of these tests."""
    monkeypatch.chdir(tmp_path)
    for name in ("SSHMENU_SERVER__PORT", "SSHMENU_SERVER__HOST", "SSHMENU_MENU__TITLE"):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    def test_default_settings(self) -> None:
        """Default Settings should be valid."""
        settings = Settings()
        assert settings.server.port == 23234
        assert settings.server.host == "0.0.0.0"
        assert settings.server.shutdown_timeout == 30.0
        assert settings.menu.title == "czpl.dev WIP"
        assert [o.label for o in settings.menu.options] == ["info", "contact"]
        assert settings.logging.level == "INFO"

    def test_server_config_defaults(self) -> None:
        config = ServerConfig()
        assert config.require_pty is True
        assert config.host_key_path == Path("data/host_key")

    def test_menu_config_defaults(self) -> None:
        config = MenuConfig()
        assert config.tick_interval == 0.1
        assert config.wrap_padding == 10

    def test_invalid_port(self) -> None:
        with pytest.raises(ValidationError):
            ServerConfig(port=70000)

    def test_empty_menu_rejected(self) -> None:
        with pytest.raises(ValidationError):
            MenuConfig(options=[])

    def test_non_positive_tick_interval_rejected(self) -> None:
        with pytest.raises(ValidationError):
            MenuConfig(tick_interval=0)

    def test_logging_defaults(self) -> None:
        assert LoggingConfig().file is None


class TestLoadSettings:
    def test_sample_config_matches_default_bio(self) -> None:
        sample = Path(__file__).resolve().parents[3] / "config" / "sshmenu.yaml"
        settings = load_settings(sample)
        assert settings.menu.options[0].detail == DEFAULT_INFO
        assert "just for fun; keeps things interesting and keeps me learning." in DEFAULT_INFO

    def test_load_settings_missing_file(self, tmp_path: Path) -> None:
        """load_settings with missing file should return defaults."""
        settings = load_settings(tmp_path / "nonexistent.yaml")
        assert settings.server.port == 23234

    def test_load_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "sshmenu.yaml"
        path.write_text(
            "server:\n"
            "  port: 2222\n"
            "menu:\n"
            "  title: my menu\n"
            "  options:\n"
            "    - label: about\n"
            "      detail: hello there\n"
        )
        settings = load_settings(path)
        assert settings.server.port == 2222
        assert settings.menu.title == "my menu"
        assert settings.menu.options[0].label == "about"
        assert settings.menu.options[0].detail == "hello there"

    def test_empty_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_settings(path).server.port == 23234

    def test_env_overrides_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "sshmenu.yaml"
        path.write_text("server:\n  host: 127.0.0.1\n  port: 2222\n")
        monkeypatch.setenv("SSHMENU_SERVER__PORT", "3333")

        settings = load_settings(path)
        assert settings.server.port == 3333
        assert settings.server.host == "127.0.0.1"

    def test_invalid_yaml_value(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("server:\n  port: 0\n")
        with pytest.raises(ValidationError):
            load_settings(path)
