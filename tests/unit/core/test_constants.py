"""Tests for settings loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from pydantic import ValidationError

from irclogs.core.constants import (
    DEFAULT_CONFIG,
    AiSettings,
    Settings,
    get_settings,
    reload_settings,
    write_default_config,
)


class TestSettingsDefaults:
    """Tests for Settings defaults and field normalization."""

    def test_defaults(self) -> None:
        settings = Settings()
        assert settings.api_host == "0.0.0.0"
        assert settings.api_port == 8080
        assert settings.site_title == "IRC Logs"
        assert settings.base_path == ""
        assert settings.logs_dirs == [Path("./logs")]
        assert settings.ai is None
        assert settings.ai_enabled is False
        assert settings.is_test is True

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("", ""), ("/", ""), ("irc", "/irc"), ("/irc/", "/irc"), ("//a/b//", "/a/b")],
    )
    def test_base_path_normalization(self, raw: str, expected: str) -> None:
        assert Settings(base_path=raw).base_path == expected

    def test_single_logs_dir(self) -> None:
        assert Settings(logs_dirs="/srv/logs").logs_dirs == [Path("/srv/logs")]

    def test_bind_split(self) -> None:
        settings = Settings(bind="127.0.0.1:9001")
        assert settings.api_host == "127.0.0.1"
        assert settings.api_port == 9001

    def test_bind_without_host(self) -> None:
        settings = Settings(bind=":9001")
        assert settings.api_host == "0.0.0.0"
        assert settings.api_port == 9001

    def test_invalid_bind(self) -> None:
        with pytest.raises(ValidationError, match="bind must look like host:port"):
            Settings(bind="localhost")

    def test_invalid_app_env(self) -> None:
        with pytest.raises(ValidationError):
            Settings(app_env="staging")


class TestAiSettings:
    """Tests for the ai block."""

    def test_short_api_key_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Invalid API key format"):
            AiSettings(api_key="short", output_dir=Path("/tmp"))

    def test_base_url_trailing_slash(self) -> None:
        ai = AiSettings(api_key="sk-test-0123456789", output_dir=Path("/tmp"), base_url="https://x.test/ask/")
        assert ai.base_url == "https://x.test/ask"

    def test_defaults(self) -> None:
        ai = AiSettings(api_key="sk-test-0123456789", output_dir=Path("/tmp"))
        assert ai.max_concurrent == 1
        assert ai.max_tool_calls == 30
        assert ai.budget_exhausted_error is False

    def test_max_concurrent_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            AiSettings(api_key="sk-test-0123456789", output_dir=Path("/tmp"), max_concurrent=0)


class TestYamlConfig:
    """Tests for loading the YAML config file."""

    def test_loads_config_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config = tmp_path / "config.yaml"
        config.write_text(
            yaml.safe_dump(
                {
                    "bind": "127.0.0.1:8181",
                    "title": "My Logs",
                    "base_path": "/irc/",
                    "logs_dirs": [str(tmp_path / "logs")],
                    "ai": {"api_key": "sk-test-0123456789", "output_dir": str(tmp_path / "out")},
                }
            )
        )
        monkeypatch.setenv("IRCLOGS_CONFIG", str(config))

        settings = get_settings()

        assert settings.site_title == "My Logs"
        assert settings.api_port == 8181
        assert settings.base_path == "/irc"
        assert settings.logs_dirs == [tmp_path / "logs"]
        assert settings.ai is not None
        assert settings.ai.output_dir == tmp_path / "out"

    def test_environment_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config = tmp_path / "config.yaml"
        config.write_text("bind: 127.0.0.1:8181\n")
        monkeypatch.setenv("IRCLOGS_CONFIG", str(config))
        monkeypatch.setenv("API_PORT", "9000")

        assert reload_settings().api_port == 9000

    def test_settings_cached(self) -> None:
        assert get_settings() is get_settings()

    def test_write_default_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config = tmp_path / "config.yaml"
        write_default_config(config)

        text = config.read_text()
        assert yaml.safe_load(text) == DEFAULT_CONFIG
        assert "#ai:" in text

        monkeypatch.setenv("IRCLOGS_CONFIG", str(config))
        settings = reload_settings()
        assert settings.api_port == 8080
        assert settings.ai is None
