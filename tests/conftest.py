"""Shared test fixtures for the IRC log service test suite.

Provides a small on-disk log corpus, settings isolated from the developer's
config file and environment, and a scripted stand-in for the Messages API.
"""

from __future__ import annotations

import os
import tempfile

from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
import zstandard

# ============================================================================
# EARLY INITIALIZATION: Runs before test collection
# ============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Point JSON log files and the config path at a scratch directory.

    The application logger is created at import time, so this must happen
    before test modules import anything from ``irclogs``.
    """
    scratch = Path(tempfile.mkdtemp(prefix="irclogs-tests-"))
    os.environ["IRCLOGS_LOG_DIR"] = str(scratch / "logs")
    os.environ["IRCLOGS_CONFIG"] = str(scratch / "missing-config.yaml")
    os.environ["APP_ENV"] = "test"


# ============================================================================
# Test Isolation: Settings Management
# ============================================================================


@pytest.fixture(autouse=True)
def reset_settings_singleton() -> Generator[None, None, None]:
    """Reset the settings singleton so each test starts from a clean state."""
    from irclogs.core.constants import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


# ============================================================================
# Log corpus
# ============================================================================

EXAMPLE_DAY_1 = """\
[00:00:01] <alice> hello world
[00:01:00] <bob> the build is broken
[00:02:00] <alice> which build?
[00:03:00] <bob> the nightly build
[00:04:00] <carol> fixed it
"""

EXAMPLE_DAY_2 = """\
[10:00:00] <bob> Build passed
[10:05:00] <alice> great
"""

EXAMPLE_DAY_3 = """\
[09:00:00] <carol> build again
[09:01:00] <dave> latency is high
"""

OTHER_DAY = """\
[12:00:00] <erin> latency spikes on the mirror
"""


def write_zst(path: Path, text: str) -> None:
    path.write_bytes(zstandard.ZstdCompressor().compress(text.encode("utf-8")))


@pytest.fixture
def log_root(tmp_path: Path) -> Path:
    """Log tree with two public OFTC channels and one private query log.

    Layout::

        OFTC/#example/2024-01-01.log
        OFTC/#example/2024-01-02.log
        OFTC/#example/2024-01-03.log.zst
        OFTC/#other/2024-01-02.log
        OFTC/notes/2024-01-01.log     (skipped: OFTC has # siblings)
        Libera/alice/2024-01-05.log   (private channel)
    """
    root = tmp_path / "irc"
    example = root / "OFTC" / "#example"
    example.mkdir(parents=True)
    (example / "2024-01-01.log").write_text(EXAMPLE_DAY_1, encoding="utf-8")
    (example / "2024-01-02.log").write_text(EXAMPLE_DAY_2, encoding="utf-8")
    write_zst(example / "2024-01-03.log.zst", EXAMPLE_DAY_3)
    (example / "README").write_text("not a log", encoding="utf-8")

    other = root / "OFTC" / "#other"
    other.mkdir()
    (other / "2024-01-02.log").write_text(OTHER_DAY, encoding="utf-8")

    notes = root / "OFTC" / "notes"
    notes.mkdir()
    (notes / "2024-01-01.log").write_text("hidden\n", encoding="utf-8")

    private = root / "Libera" / "alice"
    private.mkdir(parents=True)
    (private / "2024-01-05.log").write_text("[01:00:00] <alice> secret latency\n", encoding="utf-8")
    return root


@pytest.fixture
def channel_tree(log_root: Path) -> Any:
    from irclogs.core.channels import ChannelTree

    return ChannelTree.discover([log_root])


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    out = tmp_path / "answers"
    out.mkdir()
    return out


@pytest.fixture
def ai_settings(output_dir: Path) -> Any:
    from irclogs.core.constants import AiSettings

    return AiSettings(
        api_key="sk-test-0123456789",
        model="test-model",
        output_dir=output_dir,
        max_concurrent=2,
        max_tool_calls=5,
    )


@pytest.fixture
def settings(log_root: Path, ai_settings: Any) -> Any:
    from irclogs.core.constants import Settings

    return Settings(logs_dirs=[log_root], ai=ai_settings, app_env="test")


# ============================================================================
# Messages API stand-in
# ============================================================================


class ScriptedMessagesClient:
    """Replays canned Messages API responses and records every request."""

    def __init__(self, responses: list[dict[str, Any] | Exception]):
        self._responses = list(responses)
        self.requests: list[dict[str, Any]] = []
        self.closed = False

    async def create_message(
        self,
        system_prompt: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
    ) -> Any:
        from irclogs.models.api_models import MessagesResponse

        self.requests.append({"system": system_prompt, "messages": messages, "tools": tools})
        if not self._responses:
            raise AssertionError("model called more times than scripted")
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return MessagesResponse.model_validate(item)

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def scripted_client() -> type[ScriptedMessagesClient]:
    """The scripted client class; build one per test with its responses."""
    return ScriptedMessagesClient
