"""Tests for the HTTP routes."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

from fastapi.testclient import TestClient

from irclogs.api.main import create_app
from irclogs.core.constants import Settings


def parse_sse(body: str) -> list[tuple[str, str]]:
    messages = []
    for chunk in body.strip().split("\n\n"):
        event_line, data_line = chunk.split("\n")
        messages.append((event_line.removeprefix("event: "), data_line.removeprefix("data: ")))
    return messages


@pytest.fixture
def client(settings: Settings) -> Generator[TestClient, None, None]:
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def no_ai_client(log_root: Path) -> Generator[TestClient, None, None]:
    app = create_app(Settings(logs_dirs=[log_root], ai=None, app_env="test"))
    with TestClient(app) as test_client:
        yield test_client


def use_scripted_model(client: TestClient, scripted: Any) -> None:
    client.app.state.ask_manager.service.client = scripted  # type: ignore[attr-defined]


class TestHealth:
    """Tests for GET /health."""

    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["channels"] == 3
        assert body["ask"] == {"enabled": True, "capacity": 2, "active_sessions": 0}

    def test_health_without_ai(self, no_ai_client: TestClient) -> None:
        assert no_ai_client.get("/health").json()["ask"]["enabled"] is False


class TestLogs:
    """Tests for channel listing and raw logs."""

    def test_list_channels(self, client: TestClient) -> None:
        channels = client.get("/api/channels").json()["channels"]
        assert channels[1] == {
            "path": "OFTC/#example",
            "public": True,
            "first_date": "2024-01-01",
            "last_date": "2024-01-03",
            "files": 3,
        }
        assert channels[0]["path"] == "Libera/alice"
        assert channels[0]["public"] is False

    def test_raw_log(self, client: TestClient) -> None:
        response = client.get("/raw/OFTC/%23example/2024-01-02")
        assert response.status_code == 200
        assert response.text.startswith("[10:00:00] <bob> Build passed\n")
        assert response.headers["content-type"].startswith("text/plain")

    def test_raw_compressed_log(self, client: TestClient) -> None:
        response = client.get("/raw/OFTC/%23example/2024-01-03")
        assert "latency is high" in response.text

    def test_raw_missing_date(self, client: TestClient) -> None:
        response = client.get("/raw/OFTC/%23example/2020-01-01")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "RES_3003"

    def test_raw_corrupt_compressed_log(self, client: TestClient, log_root: Path) -> None:
        (log_root / "OFTC" / "#example" / "2024-01-04.log.zst").write_bytes(b"not zstd data")
        response = client.get("/raw/OFTC/%23example/2024-01-04")
        assert response.status_code == 500
        assert response.json()["error"]["code"] == "INT_9003"

    def test_raw_unknown_channel(self, client: TestClient) -> None:
        response = client.get("/raw/OFTC/%23nope/2024-01-01")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "RES_3002"


class TestAsk:
    """Tests for GET /ask and saved answers."""

    def test_streams_session_events(self, client: TestClient, scripted_client: Any) -> None:
        use_scripted_model(
            client,
            scripted_client(
                [
                    {
                        "stop_reason": "tool_use",
                        "content": [
                            {"type": "tool_use", "id": "a", "name": "output", "input": {"text": "# <Answer>"}},
                            {"type": "tool_use", "id": "b", "name": "done", "input": {"title": "Answer"}},
                        ],
                    }
                ]
            ),
        )

        response = client.get("/ask", params={"q": "anything?", "channel": "OFTC/#example"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"
        messages = parse_sse(response.text)
        assert [name for name, _ in messages] == ["tool_call", "tool_result", "tool_call", "tool_result", "done"]
        assert messages[-1][1] == '{"url":"/ask/output/answer.html","output":"# <Answer>\\n"}'

        page = client.get("/ask/output/answer.html")
        assert page.status_code == 200
        assert "<pre># &lt;Answer&gt;\n</pre>" in page.text

    def test_empty_query(self, client: TestClient) -> None:
        response = client.get("/ask", params={"q": "  ", "channel": "OFTC/#example"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VAL_2002"

    def test_unknown_channel(self, client: TestClient) -> None:
        response = client.get("/ask", params={"q": "x", "channel": "OFTC/#nope"})
        assert response.status_code == 404

    def test_not_configured(self, no_ai_client: TestClient) -> None:
        response = no_ai_client.get("/ask", params={"q": "x", "channel": "OFTC/#example"})
        assert response.status_code == 503
        assert response.json()["error"]["code"] == "ASK_4002"

    def test_busy(self, client: TestClient) -> None:
        gate = client.app.state.ask_manager.gate  # type: ignore[attr-defined]
        assert client.portal is not None
        for _ in range(gate.capacity):
            assert client.portal.call(gate.try_acquire)

        response = client.get("/ask", params={"q": "x", "channel": "OFTC/#example"})
        assert response.status_code == 429
        assert response.json()["error"]["code"] == "ASK_4001"
        assert response.headers["retry-after"] == "5"

    def test_missing_artifact(self, client: TestClient) -> None:
        assert client.get("/ask/output/nothing-here.html").status_code == 404

    def test_artifact_slug_restricted(self, client: TestClient, output_dir: Path) -> None:
        (output_dir / "Upper.md").write_text("x", encoding="utf-8")
        assert client.get("/ask/output/Upper.html").status_code == 404


class TestBasePath:
    """Routes mount under base_path."""

    def test_prefixed_routes(self, log_root: Path) -> None:
        app = create_app(Settings(logs_dirs=[log_root], base_path="irc/", app_env="test"))
        with TestClient(app) as client:
            assert client.get("/irc/health").status_code == 200
            assert client.get("/health").status_code == 404
