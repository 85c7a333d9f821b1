"""
Messages API client.

One non-streaming POST per model turn. Failures are never retried: network
errors and non-success statuses raise TransportError, undecodable or
malformed bodies raise ProtocolError.
"""

from __future__ import annotations

import json
import time

from typing import Any

import httpx

from pydantic import ValidationError

from irclogs.core.constants import AiSettings
from irclogs.core.exceptions import ProtocolError, TransportError
from irclogs.models.api_models import MessagesResponse
from irclogs.utils.metrics import model_request_duration_seconds, model_requests_total


class MessagesClient:
    """Thin async client for the Messages endpoint."""

    def __init__(self, http_client: httpx.AsyncClient, ai: AiSettings):
        self._http = http_client
        self.api_url = ai.api_url
        self.model = ai.model
        self.max_tokens = ai.max_tokens
        self._headers = {
            "x-api-key": ai.api_key,
            "anthropic-version": ai.anthropic_version,
            "content-type": "application/json",
        }

    def build_body(
        self,
        system_prompt: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
    ) -> dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": [{"type": "text", "text": system_prompt}],
            "messages": messages,
            "tools": tools,
        }

    async def create_message(
        self,
        system_prompt: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
    ) -> MessagesResponse:
        """Send one request and parse the response.

        Raises:
            TransportError: Network failure or non-success status.
            ProtocolError: Body is not JSON or not a Messages response.
        """
        body = self.build_body(system_prompt, messages, tools)
        start = time.perf_counter()
        try:
            response = await self._http.post(self.api_url, headers=self._headers, json=body)
        except httpx.HTTPError as e:
            model_requests_total.labels(status="transport_error").inc()
            raise TransportError(f"API request failed: {e}") from e
        finally:
            model_request_duration_seconds.observe(time.perf_counter() - start)

        if not response.is_success:
            model_requests_total.labels(status="transport_error").inc()
            raise TransportError(f"API error {response.status_code}: {response.text}")

        try:
            parsed = MessagesResponse.model_validate(json.loads(response.text))
        except (json.JSONDecodeError, ValidationError) as e:
            model_requests_total.labels(status="protocol_error").inc()
            raise ProtocolError(f"invalid API response: {e}") from e

        model_requests_total.labels(status="success").inc()
        return parsed

    async def aclose(self) -> None:
        await self._http.aclose()
