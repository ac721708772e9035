"""LLM client — HTTP connection to the Gemini generateContent API.

The engine injects an LLM callable matching the protocol:

    async def __call__(self, stage: str, prompt: str, *,
                       system_instruction: str | None = None,
                       schema: dict | None = None) -> Generation: ...

`stage` identifies which part of the engine is calling (e.g. "game_turn",
"character_creation", "demystifier"). Implementations use it for logging.
When `schema` is given the call is asked for JSON matching it; the engine
re-validates the reply regardless.

Two implementations are provided:

    GeminiLLM    — real HTTP client for the Gemini REST API.
    ScriptedLLM  — replays canned replies in order. No network calls; used
                   for demo mode and offline runs.

The lower-level GeminiClient is shared with the image and speech clients in
rpg_adventure.media.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any, Protocol

import httpx

from rpg_adventure.models import ApiMetadata, Generation

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol: every LLM implementation must match this signature
# ---------------------------------------------------------------------------

class LLM(Protocol):
    async def __call__(
        self,
        stage: str,
        prompt: str,
        *,
        system_instruction: str | None = None,
        schema: dict[str, Any] | None = None,
    ) -> Generation: ...


# ---------------------------------------------------------------------------
# TransportError: raised for all connection and protocol failures
# ---------------------------------------------------------------------------

class TransportError(RuntimeError):
    """Raised when the generation backend cannot be reached or returns an error."""


# ---------------------------------------------------------------------------
# GeminiClient: raw generateContent calls
# ---------------------------------------------------------------------------

class GeminiClient:
    """Async HTTP client for `POST /v1beta/models/{model}:generateContent`.

    Args:
        api_key:  Gemini API key, sent as the x-goog-api-key header.
        base_url: API root. Defaults to the public endpoint.
        timeout:  HTTP timeout in seconds. Defaults to 120.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://generativelanguage.googleapis.com",
        timeout: float = 120.0,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["x-goog-api-key"] = self._api_key
        return headers

    def url(self, model: str) -> str:
        return f"{self._base_url}/v1beta/models/{model}:generateContent"

    async def generate_content(self, stage: str, model: str, body: dict[str, Any]) -> dict[str, Any]:
        """POST a generateContent request and return the decoded response body."""
        url = self.url(model)
        logger.debug("gemini call stage=%s url=%s", stage, url)

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise TransportError(f"Cannot connect to generation backend at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"Generation backend returned HTTP {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise TransportError(f"Generation backend timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Generation backend request failed: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise TransportError("Generation backend returned a non-JSON body") from e
        if not isinstance(data, dict):
            raise TransportError("Unexpected response format from generation backend")
        return data


def first_candidate(data: dict[str, Any]) -> dict[str, Any] | None:
    candidates = data.get("candidates")
    if not candidates or not isinstance(candidates[0], dict):
        return None
    return candidates[0]


def candidate_parts(candidate: dict[str, Any]) -> list[dict[str, Any]]:
    content = candidate.get("content") or {}
    return [p for p in content.get("parts", []) if isinstance(p, dict)]


# ---------------------------------------------------------------------------
# GeminiLLM: text generation
# ---------------------------------------------------------------------------

class GeminiLLM:
    """Text generation through the Gemini API.

    Args:
        client: Shared GeminiClient.
        model:  Text model name, e.g. "gemini-2.5-flash".
    """

    def __init__(self, client: GeminiClient, model: str = "gemini-2.5-flash") -> None:
        self._client = client
        self._model = model

    def _build_body(
        self,
        prompt: str,
        system_instruction: str | None,
        schema: dict[str, Any] | None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
        if system_instruction:
            body["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        if schema is not None:
            body["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": schema,
            }
        return body

    def _parse_response(self, data: dict[str, Any], prompt: str) -> Generation:
        """Extract the reply text and call metadata from the response body."""
        candidate = first_candidate(data)
        if candidate is None:
            raise TransportError("Unexpected response format from Gemini: no candidates")
        text = "".join(p["text"] for p in candidate_parts(candidate) if "text" in p)
        if not text:
            raise TransportError("Received no text response from Gemini")
        metadata = ApiMetadata(
            usage_metadata=data.get("usageMetadata") or {},
            finish_reason=candidate.get("finishReason"),
            safety_ratings=candidate.get("safetyRatings") or [],
            original_prompt=prompt,
        )
        return Generation(text=text, metadata=metadata)

    async def __call__(
        self,
        stage: str,
        prompt: str,
        *,
        system_instruction: str | None = None,
        schema: dict[str, Any] | None = None,
    ) -> Generation:
        logger.debug("llm call stage=%s model=%s prompt_len=%d", stage, self._model, len(prompt))
        data = await self._client.generate_content(
            stage, self._model, self._build_body(prompt, system_instruction, schema)
        )
        generation = self._parse_response(data, prompt)
        logger.debug("llm response stage=%s len=%d", stage, len(generation.text))
        return generation


# ---------------------------------------------------------------------------
# ScriptedLLM: replays canned replies; useful for demo runs
# ---------------------------------------------------------------------------

class ScriptedLLM:
    """Returns canned replies in order, per stage. No network calls.

    Replies may be strings or JSON-serialisable objects. When a stage's
    script runs out the last reply is repeated. Every prompt received is
    kept in `calls` as (stage, prompt) for inspection.
    """

    def __init__(self, scripts: dict[str, Iterable[Any]]) -> None:
        self._scripts = {stage: list(replies) for stage, replies in scripts.items()}
        self._positions: dict[str, int] = {}
        self.calls: list[tuple[str, str]] = []

    async def __call__(
        self,
        stage: str,
        prompt: str,
        *,
        system_instruction: str | None = None,
        schema: dict[str, Any] | None = None,
    ) -> Generation:
        self.calls.append((stage, prompt))
        replies = self._scripts.get(stage)
        if not replies:
            raise TransportError(f"No scripted reply for stage {stage!r}")
        index = self._positions.get(stage, 0)
        self._positions[stage] = index + 1
        reply = replies[min(index, len(replies) - 1)]
        text = reply if isinstance(reply, str) else json.dumps(reply)
        logger.debug("ScriptedLLM stage=%s reply=%d/%d", stage, index + 1, len(replies))
        return Generation(
            text=text,
            metadata=ApiMetadata(finish_reason="STOP", original_prompt=prompt),
        )
