"""Shared test fixtures for the benchscrape test suite."""

from __future__ import annotations

import copy
import json
from collections.abc import Callable
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

# A realistic reconciled report used by mocked Gemini responses.
SAMPLE_REPORT: dict[str, Any] = {
    "provider": "Example AI",
    "model": "Example Model 2",
    "date": "01-02-2024",
    "locators": ["https://example.com/blog/example-model-2"],
    "benchmarkResults": [
        {"name": "MMLU-Pro", "score": "84.1%"},
        {"name": "GPQA Diamond (thinking)", "score": "79.3%"},
        {"name": "GPQA Diamond (no thinking)", "score": "68.0%"},
        {"name": "SWE-bench Verified", "score": "71.2%"},
    ],
    "notes": "GPQA scores are pass@1 averaged over 8 samples.",
}


def make_response(body: str | dict | None, **usage: int) -> SimpleNamespace:
    """Build an object shaped like a google-genai GenerateContentResponse."""
    text = json.dumps(body) if isinstance(body, dict) else body
    usage_metadata = SimpleNamespace(
        prompt_token_count=usage.get("input_tokens", 1200),
        candidates_token_count=usage.get("output_tokens", 300),
        thoughts_token_count=usage.get("thinking_tokens", 0),
        tool_use_prompt_token_count=usage.get("tool_prompt_tokens", 0),
        cached_content_token_count=0,
    )
    return SimpleNamespace(text=text, usage_metadata=usage_metadata)


def make_gemini_client(
    respond: Callable[[str, list[Any]], str | dict | None],
) -> MagicMock:
    """Fake genai.Client whose aio.models.generate_content answers via ``respond(model, contents)``."""

    async def _generate(*, model: str, contents: list[Any], config: Any) -> SimpleNamespace:
        return make_response(respond(model, contents))

    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(side_effect=_generate)
    return client


@pytest.fixture
def gemini_client() -> MagicMock:
    """Gemini client that returns SAMPLE_REPORT for every call."""
    return make_gemini_client(lambda model, contents: SAMPLE_REPORT)


@pytest.fixture
def html_transport() -> httpx.MockTransport:
    """Every locator is an HTML page."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"content-type": "text/html; charset=utf-8"})

    return httpx.MockTransport(handler)


@pytest.fixture
async def html_client(html_transport: httpx.MockTransport) -> httpx.AsyncClient:
    async with httpx.AsyncClient(transport=html_transport) as client:
        yield client  # type: ignore[misc]


@pytest.fixture
def sample_report() -> dict[str, Any]:
    return copy.deepcopy(SAMPLE_REPORT)


@pytest.fixture
def gemini_factory() -> Callable[..., MagicMock]:
    """Factory fixture: build a fake Gemini client from a ``respond(model, contents)`` callable."""
    return make_gemini_client
