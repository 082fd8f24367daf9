"""BaseAgent - Shared Gemini call logic, JSON parsing, cost tracking.

Every agent issues the same kind of request: a system instruction, a user
message with optional inline PDF parts, the url_context and google_search
tools enabled, and JSON output constrained to the BenchmarkReport schema.
"""

from __future__ import annotations

import base64
import json
import time
from datetime import date
from pathlib import Path
from typing import Any

import structlog
from google import genai
from google.genai import types

from benchscrape.core.config import settings
from benchscrape.modules.extraction.agents.sanitizer import strip_code_fences
from benchscrape.modules.extraction.cost_tracker import CostTracker
from benchscrape.modules.extraction.schemas import Attachment, report_json_schema

logger = structlog.get_logger()

# Directory where prompt templates live
_PROMPTS_DIR = Path(__file__).parent / "prompts"


def build_gemini_client() -> genai.Client:
    """Create the Gemini client from settings (or the SDK's env-var defaults)."""
    http_options = None
    if settings.llm_timeout_ms:
        http_options = types.HttpOptions(timeout=settings.llm_timeout_ms)
    return genai.Client(
        api_key=settings.google_ai_api_key or None,
        http_options=http_options,
    )


class BaseAgent:
    """Base class for the extraction and reconciliation agents.

    Provides:
      - Gemini client (shared or lazily created)
      - Prompt loading from prompts/ directory
      - Unified async call_llm() with token tracking
      - JSON parsing with code-fence stripping
    """

    agent_name: str = "base"
    stage: str = ""
    prompt_file: str = ""  # Override in subclasses

    def __init__(
        self,
        model: str,
        client: genai.Client | None = None,
        cost_tracker: CostTracker | None = None,
    ) -> None:
        self.model = model
        self.cost_tracker = cost_tracker
        self._client = client
        self._system_prompt = self.render_prompt(self.prompt_file) if self.prompt_file else ""

        logger.debug(f"{self.agent_name} initialized", model=self.model)

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = build_gemini_client()
        return self._client

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    # ------------------------------------------------------------------
    # Prompt loading
    # ------------------------------------------------------------------

    @staticmethod
    def load_prompt(filename: str) -> str:
        """Load a prompt template from the prompts/ directory."""
        path = _PROMPTS_DIR / filename
        if not path.exists():
            raise FileNotFoundError(f"Prompt file not found: {path}")
        return path.read_text(encoding="utf-8").strip()

    @classmethod
    def render_prompt(cls, filename: str, today: date | None = None) -> str:
        """Load a prompt template and fill in the current date."""
        today = today or date.today()
        return cls.load_prompt(filename).replace("{current_date}", today.isoformat())

    # ------------------------------------------------------------------
    # Request building
    # ------------------------------------------------------------------

    @staticmethod
    def build_contents(
        user_text: str,
        attachments: list[Attachment] | None = None,
    ) -> list[types.Part]:
        """User text followed by one inline part per attached PDF."""
        parts = [types.Part.from_text(text=user_text)]
        for attachment in attachments or []:
            parts.append(
                types.Part.from_bytes(
                    data=base64.b64decode(attachment.payload),
                    mime_type=attachment.mime_type,
                )
            )
        return parts

    def build_config(self, temperature: float | None = None) -> types.GenerateContentConfig:
        """Structured-output config with URL context and search tools enabled."""
        config_kwargs: dict[str, Any] = {
            "system_instruction": self.system_prompt,
            "tools": [
                types.Tool(google_search=types.GoogleSearch()),
                types.Tool(url_context=types.UrlContext()),
            ],
            "response_mime_type": "application/json",
            "response_json_schema": report_json_schema(),
        }
        if temperature is not None:
            config_kwargs["temperature"] = temperature
        return types.GenerateContentConfig(**config_kwargs)

    # ------------------------------------------------------------------
    # Unified LLM call
    # ------------------------------------------------------------------

    async def call_llm(
        self,
        user_text: str,
        attachments: list[Attachment] | None = None,
        *,
        temperature: float | None = None,
        label: str = "",
    ) -> dict[str, Any]:
        """Call Gemini and return parsed JSON + metadata.

        Returns:
            {
                "content": dict,  # Parsed report ({} if the body was not JSON)
                "input_tokens": int,
                "output_tokens": int,
                "duration_ms": int,
                "model": str,
            }

        Service errors propagate to the caller.
        """
        start = time.time()

        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=self.build_contents(user_text, attachments),
            config=self.build_config(temperature),
        )

        duration_ms = int((time.time() - start) * 1000)
        usage = response.usage_metadata
        input_tokens = getattr(usage, "prompt_token_count", 0) or 0
        output_tokens = getattr(usage, "candidates_token_count", 0) or 0
        thinking_tokens = getattr(usage, "thoughts_token_count", 0) or 0
        tool_prompt_tokens = getattr(usage, "tool_use_prompt_token_count", 0) or 0
        cached_tokens = getattr(usage, "cached_content_token_count", 0) or 0

        logger.info(
            f"{self.agent_name} Gemini call",
            call=label,
            model=self.model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            thinking_tokens=thinking_tokens,
            duration_ms=duration_ms,
        )

        if self.cost_tracker:
            self.cost_tracker.record(
                self.model,
                stage=self.stage,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                thinking_tokens=thinking_tokens,
                tool_prompt_tokens=tool_prompt_tokens,
                cache_read_tokens=cached_tokens,
                duration_ms=duration_ms,
            )

        return {
            "content": self.parse_json(response.text, label=label or self.agent_name),
            "input_tokens": input_tokens,
            "output_tokens": output_tokens + thinking_tokens,
            "duration_ms": duration_ms,
            "model": self.model,
        }

    # ------------------------------------------------------------------
    # JSON parsing
    # ------------------------------------------------------------------

    @staticmethod
    def parse_json(raw_text: str | None, label: str = "") -> dict[str, Any]:
        """Parse LLM output as a JSON object, stripping code fences if present.

        A missing, unparseable or non-object body yields {} so the run
        continues with an empty report. This can silently write an incomplete
        report; run with strict validation to make it fatal instead.
        """
        text = strip_code_fences(raw_text or "{}")
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning(
                "Response is not valid JSON, treating as empty report",
                call=label,
                error=str(e),
                preview=text[:200],
            )
            return {}
        if not isinstance(data, dict):
            logger.warning(
                "Response is not a JSON object, treating as empty report",
                call=label,
                type=type(data).__name__,
            )
            return {}
        return data
