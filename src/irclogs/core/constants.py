"""
Constants and configuration for the IRC log service.
Centralizes all magic numbers and configuration values.
Includes Pydantic validation for the YAML config file and environment variables.
"""

from __future__ import annotations

import os
import threading

from pathlib import Path
from typing import Any, Literal

import yaml

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import (
    DotEnvSettingsSource,
    PydanticBaseSettingsSource,
    YamlConfigSettingsSource,
)

# ============================================================================
# Project Paths
# ============================================================================

#: Project root directory (parent of src/)
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent

#: Environment variable naming the YAML config file
CONFIG_PATH_ENV = "IRCLOGS_CONFIG"

#: Config file used when IRCLOGS_CONFIG is not set
DEFAULT_CONFIG_PATH = Path("config.yaml")

# ============================================================================
# Log Corpus Layout
# ============================================================================

#: Log file suffixes, in lookup preference order.
#: A plain log shadows a compressed one for the same date.
LOG_SUFFIXES: tuple[str, ...] = (".log", ".log.zst")

#: Length of the YYYY-MM-DD stem every log file name must have
DATE_LENGTH = 10

#: Prefix marking a directory as a public channel
CHANNEL_PREFIX = "#"

# ============================================================================
# Ask Session Limits
# ============================================================================

#: Hard cap for the per-session output buffer, in bytes.
#: Applied after every append; the buffer is cut at exactly this byte length.
OUTPUT_BUFFER_MAX_BYTES = 100_000

#: Maximum compact-JSON size of the transcript before the loop refuses another turn
MAX_TRANSCRIPT_CHARS = 150_000

#: Search stops emitting once its text grows past this many bytes
SEARCH_OUTPUT_MAX_BYTES = 8000

#: Maximum number of dates one search call scans, matching or not
SEARCH_MAX_DATES = 365

#: Default max matching lines per search call
DEFAULT_SEARCH_MAX_RESULTS = 50

#: Maximum line numbers a single copy call (or line spec) may name
MAX_COPY_LINES = 500

#: Maximum slug length for saved artifacts
SLUG_MAX_LENGTH = 120

#: Slug used when a title has no usable characters
DEFAULT_SLUG = "output"

#: Preview lengths used in tool-call summaries
OUTPUT_SUMMARY_PREVIEW = 60
DISPLAY_SUMMARY_PREVIEW = 80

# ============================================================================
# Model API Configuration
# ============================================================================

DEFAULT_AI_MODEL = "claude-haiku-4-5-20251001"
DEFAULT_API_URL = "https://api.anthropic.com/v1/messages"
DEFAULT_ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_MAX_TOKENS = 4096
DEFAULT_MAX_TOOL_CALLS = 30

#: Prompt-cache marker attached to the last tool and the last transcript block
CACHE_CONTROL_EPHEMERAL: dict[str, str] = {"type": "ephemeral"}

# ============================================================================
# Stream Event Types
# ============================================================================

EVENT_TOOL_CALL = "tool_call"
EVENT_TOOL_RESULT = "tool_result"
EVENT_DISPLAY = "display"
EVENT_DONE = "done"
EVENT_ERROR = "error"

# ============================================================================
# Logging Configuration
# ============================================================================

#: Maximum size in bytes for log files before rotation (10MB).
LOG_MAX_SIZE = 10 * 1024 * 1024

#: Number of event log backups to retain during rotation.
LOG_BACKUP_COUNT_EVENTS = 5

#: Number of error log backups to retain during rotation.
LOG_BACKUP_COUNT_ERRORS = 3

#: Maximum characters to show in log previews for queries and tool results.
LOG_PREVIEW_LENGTH = 50

# ============================================================================
# Default Config File
# ============================================================================

#: Values written to a freshly created config file
DEFAULT_CONFIG: dict[str, Any] = {
    "bind": "0.0.0.0:8080",
    "title": "IRC Logs",
    "logs_dirs": ["./logs"],
}

#: Commented-out optional settings appended to a fresh config file
DEFAULT_CONFIG_COMMENTS = """\
#base_path: /irc
#ai:
#  api_key: sk-ant-api03-...
#  model: claude-haiku-4-5-20251001
#  output_dir: /var/lib/irc-logs/ask
#  base_url: https://example.com/ask
#  max_concurrent: 1
#  max_tool_calls: 30
"""

# ============================================================================
# Environment Configuration with Pydantic Validation
# ============================================================================

#: Valid environment names for configuration loading
Environment = Literal["development", "production", "test"]


def get_config_path() -> Path:
    """Path of the YAML config file (IRCLOGS_CONFIG or ./config.yaml)."""
    return Path(os.getenv(CONFIG_PATH_ENV, str(DEFAULT_CONFIG_PATH)))


def write_default_config(path: Path) -> None:
    """Write a starter config file the operator is expected to edit."""
    body = yaml.safe_dump(DEFAULT_CONFIG, sort_keys=False, default_flow_style=False)
    path.write_text(body + DEFAULT_CONFIG_COMMENTS, encoding="utf-8")


def _get_env_files() -> list[Path]:
    """Determine which .env files to load based on APP_ENV.

    Load order (later files override earlier - pydantic-settings last-wins):
    1. .env (base defaults) - lowest priority
    2. .env.{environment} (environment-specific overrides)
    3. .env.local (local developer overrides, gitignored) - highest priority

    Returns:
        List of Path objects for env files that exist.
    """
    env_name = os.getenv("APP_ENV", "development").lower()
    if env_name not in ("development", "production", "test"):
        env_name = "development"

    candidates = [
        PROJECT_ROOT / ".env",
        PROJECT_ROOT / f".env.{env_name}",
        PROJECT_ROOT / ".env.local",
    ]
    return [p for p in candidates if p.exists()]


class AiSettings(BaseModel):
    """The ``ai:`` block. Its absence disables the ask feature."""

    api_key: str = Field(..., description="Model API key")
    model: str = Field(default=DEFAULT_AI_MODEL, description="Model name sent with every request")
    output_dir: Path = Field(..., description="Directory receiving saved <slug>.md artifacts")
    base_url: str | None = Field(default=None, description="Public URL prefix for artifacts (optional)")
    max_concurrent: int = Field(default=1, ge=1, description="Concurrent ask sessions allowed")
    max_tool_calls: int = Field(default=DEFAULT_MAX_TOOL_CALLS, ge=1, description="Model turns per session")
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, ge=1, description="max_tokens sent to the model")
    api_url: str = Field(default=DEFAULT_API_URL, description="Messages endpoint")
    anthropic_version: str = Field(default=DEFAULT_ANTHROPIC_VERSION, description="anthropic-version header")
    system_prompt: str | None = Field(default=None, description="Override for the built-in instructions")
    http_read_timeout: float = Field(default=600.0, gt=0, description="Read timeout for model calls (seconds)")
    budget_exhausted_error: bool = Field(
        default=False,
        description="Emit an error event when the turn budget runs out instead of ending silently",
    )

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Basic validation of API key format."""
        if not v or len(v) < 10:
            raise ValueError("Invalid API key format")
        return v

    @field_validator("base_url")
    @classmethod
    def strip_base_url(cls, v: str | None) -> str | None:
        """Drop trailing slashes so URLs join cleanly."""
        if v is None:
            return None
        return v.rstrip("/") or None


class Settings(BaseSettings):
    """Service settings with YAML config file and environment override support.

    Configuration priority (highest to lowest):
    1. Values passed to Settings() constructor
    2. Environment variables (nested with ``__``, e.g. ``AI__MODEL``)
    3. .env.local > .env.{APP_ENV} > .env (dotenv files, last wins)
    4. YAML config file (IRCLOGS_CONFIG, default ./config.yaml)

    Validates at startup to fail fast on configuration errors.
    """

    # Environment identification
    app_env: Environment = Field(default="development", description="Application environment")

    # Debug and logging
    debug: bool = Field(default=False, description="Enable debug logging")
    http_request_logging: bool = Field(default=False, description="Enable HTTP request/response logging")

    # Site
    site_title: str = Field(default="IRC Logs", alias="title", description="Site title")
    api_host: str = Field(default="0.0.0.0", description="Bind host")
    api_port: int = Field(default=8080, ge=1, le=65535, description="Bind port")
    app_version: str = Field(default="1.0.0", description="Application version")
    base_path: str = Field(default="", description="URL prefix the app is mounted under")

    # Log corpus
    logs_dirs: list[Path] = Field(default_factory=lambda: [Path("./logs")], description="Log roots")

    # Ask feature
    ai: AiSettings | None = Field(default=None, description="Ask assistant settings")

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings source priority.

        The YAML file is the operator's primary config; environment variables
        and dotenv files override it for container deployments.
        """
        dotenv_source = DotEnvSettingsSource(
            settings_cls,
            env_file=_get_env_files(),
            env_file_encoding="utf-8",
        )
        yaml_source = YamlConfigSettingsSource(settings_cls, yaml_file=get_config_path())
        return (init_settings, env_settings, dotenv_source, yaml_source)

    @model_validator(mode="before")
    @classmethod
    def split_bind(cls, data: Any) -> Any:
        """Expand the config file's ``bind: host:port`` into api_host/api_port."""
        if not isinstance(data, dict) or not data.get("bind"):
            return data
        data = dict(data)
        bind = str(data.pop("bind"))
        host, sep, port = bind.rpartition(":")
        if not sep or not port.isdigit():
            raise ValueError(f"bind must look like host:port, got '{bind}'")
        data.setdefault("api_host", host or "0.0.0.0")
        data.setdefault("api_port", int(port))
        return data

    @field_validator("app_env", mode="before")
    @classmethod
    def validate_app_env(cls, v: str | None) -> str:
        """Validate and normalize APP_ENV value."""
        if v is None:
            return "development"
        normalized = str(v).lower()
        if normalized not in ("development", "production", "test"):
            raise ValueError(f"app_env must be 'development', 'production', or 'test', got '{v}'")
        return normalized

    @field_validator("base_path", mode="before")
    @classmethod
    def normalize_base_path(cls, v: Any) -> str:
        """Strip surrounding slashes; a non-empty prefix gets exactly one leading slash."""
        stripped = str(v or "").strip("/")
        return f"/{stripped}" if stripped else ""

    @field_validator("logs_dirs", mode="before")
    @classmethod
    def coerce_logs_dirs(cls, v: Any) -> Any:
        """Accept a single directory as well as a list."""
        if isinstance(v, str | Path):
            return [v]
        return v

    @property
    def ai_enabled(self) -> bool:
        """Whether the ask assistant is configured."""
        return self.ai is not None

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test mode."""
        return self.app_env == "test"


# ============================================================================
# Settings Management (Thread-safe)
# ============================================================================


class _SettingsManager:
    """Thread-safe settings manager.

    Uses a class to avoid global statement warnings from linters.
    """

    __slots__ = ("_instance", "_lock")

    def __init__(self) -> None:
        self._instance: Settings | None = None
        self._lock = threading.Lock()

    def get(self) -> Settings:
        """Get the cached settings instance, loading it on first use.

        Raises:
            ValueError: If required configuration is missing or invalid.
        """
        if self._instance is not None:
            return self._instance

        with self._lock:
            # Double-check after acquiring lock
            if self._instance is None:
                self._instance = Settings()
            return self._instance

    def reload(self) -> Settings:
        """Force reload settings from the config file and environment."""
        with self._lock:
            self._instance = Settings()
            return self._instance

    def clear(self) -> None:
        """Clear cached settings instance.

        Primarily useful for testing to ensure fresh settings on each test.
        """
        with self._lock:
            self._instance = None


# Module-level singleton manager
_settings_manager = _SettingsManager()


def get_settings() -> Settings:
    """Get settings instance.

    This is the primary entry point for accessing application settings.
    Settings are validated at first use and cached for performance.

    Raises:
        ValueError: If required configuration is missing or invalid.
    """
    return _settings_manager.get()


def reload_settings() -> Settings:
    """Force reload settings from the config file and environment."""
    return _settings_manager.reload()


def clear_settings_cache() -> None:
    """Clear cached settings instance."""
    _settings_manager.clear()
