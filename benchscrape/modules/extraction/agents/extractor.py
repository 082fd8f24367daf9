"""Extraction agent: one independent Gemini call producing a candidate report.

The orchestrator runs several of these concurrently with identical inputs;
the spread between candidates is what the reconciler later merges away.
"""

from __future__ import annotations

import structlog
from google import genai

from benchscrape.core.config import settings
from benchscrape.modules.extraction.agents.base import BaseAgent
from benchscrape.modules.extraction.cost_tracker import CostTracker
from benchscrape.modules.extraction.progress import ProgressCounter
from benchscrape.modules.extraction.schemas import (
    Attachment,
    ExtractionCandidate,
    result_count,
)

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# User-message building blocks (shared with the reconciler)
# ---------------------------------------------------------------------------


def locator_block(locators: list[str]) -> str:
    """Numbered locator list."""
    return "\n".join(f"{i}. {locator}" for i, locator in enumerate(locators, start=1))


def attachment_block(attachments: list[Attachment]) -> str:
    if not attachments:
        return ""
    names = "\n".join(f"- {a.locator}" for a in attachments)
    return (
        "The following documents are attached to this request as PDFs. "
        "Read them in full; they are sources just like the fetched pages:\n"
        f"{names}"
    )


def variant_block(variant: str | None) -> str:
    """Instructions restricting results to one model variant."""
    if not variant:
        return ""
    return (
        f'Variant filter: "{variant}".\n'
        f'Only include benchmark results for the "{variant}" variant of the model. '
        "Leave out results for every other variant or configuration.\n"
        f'If the sources report several sub-configurations of "{variant}" '
        "(for example different reasoning-effort or thinking-budget tiers) and it is "
        "genuinely ambiguous which one the filter refers to, include each of them "
        "as its own entry and name the sub-configuration in the entry name."
    )


def build_extraction_message(
    locators: list[str],
    attachments: list[Attachment] | None = None,
    variant: str | None = None,
) -> str:
    sections = [
        "URLs (fetch each of these with the URL context tool):\n" + locator_block(locators),
        attachment_block(attachments or []),
        variant_block(variant),
        (
            "Return every benchmark result reported in these sources, "
            "one entry per distinct benchmark and variant combination."
        ),
    ]
    return "\n\n".join(s for s in sections if s)


# ---------------------------------------------------------------------------
# Agent
# ---------------------------------------------------------------------------


class ExtractorAgent(BaseAgent):
    """Reads the sources and emits one candidate BenchmarkReport."""

    agent_name = "Extractor"
    stage = "extraction"
    prompt_file = "extractor.txt"

    def __init__(
        self,
        model: str | None = None,
        client: genai.Client | None = None,
        cost_tracker: CostTracker | None = None,
    ) -> None:
        super().__init__(
            model=model or settings.extraction_model,
            client=client,
            cost_tracker=cost_tracker,
        )

    async def extract(
        self,
        locators: list[str],
        attachments: list[Attachment] | None = None,
        variant: str | None = None,
        *,
        index: int = 1,
        progress: ProgressCounter | None = None,
    ) -> ExtractionCandidate:
        """Run one extraction call.

        Args:
            locators: URLs of the pages/documents reporting the results.
            attachments: Downloaded PDFs sent inline with the request.
            variant: Optional model-variant filter.
            index: 1-based number of this extraction within the run.
            progress: Shared counter advanced when the call completes.

        Returns:
            ExtractionCandidate with the parsed report and usage metadata.
        """
        result = await self.call_llm(
            build_extraction_message(locators, attachments, variant),
            attachments,
            temperature=settings.extraction_temperature,
            label=f"extraction-{index}",
        )

        candidate = ExtractionCandidate(
            index=index,
            model=result["model"],
            report=result["content"],
            input_tokens=result["input_tokens"],
            output_tokens=result["output_tokens"],
            duration_ms=result["duration_ms"],
        )

        if progress is not None:
            progress.advance(
                results=result_count(candidate.report),
            )
        return candidate
