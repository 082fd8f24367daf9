"""Reconciler agent: merges all candidate reports into the final report.

Replaces a programmatic merge with a single Gemini pass: the candidates are
serialized into the prompt and the model deduplicates them and re-verifies
every value against the original sources. One pass, trusted as final.
"""

from __future__ import annotations

import json
from typing import Any

import structlog
from google import genai

from benchscrape.core.config import settings
from benchscrape.modules.extraction.agents.base import BaseAgent
from benchscrape.modules.extraction.agents.extractor import (
    attachment_block,
    locator_block,
    variant_block,
)
from benchscrape.modules.extraction.cost_tracker import CostTracker
from benchscrape.modules.extraction.schemas import (
    Attachment,
    ExtractionCandidate,
    result_count,
)

logger = structlog.get_logger()


def build_reconcile_message(
    locators: list[str],
    candidates: list[ExtractionCandidate],
    attachments: list[Attachment] | None = None,
    variant: str | None = None,
) -> str:
    extractions = "\n\n".join(
        f"Extraction {i}:\n{json.dumps(c.report, indent=2, ensure_ascii=False)}"
        for i, c in enumerate(candidates, start=1)
    )
    sections = [
        "URLs (fetch these first with the URL context tool):\n" + locator_block(locators),
        attachment_block(attachments or []),
        variant_block(variant),
        (
            f"Here are {len(candidates)} separate extractions of benchmark results "
            "from the same sources. Please combine them into one comprehensive result:"
        ),
        extractions,
    ]
    return "\n\n".join(s for s in sections if s)


class ReconcilerAgent(BaseAgent):
    """Single merge/verify pass over all extraction candidates."""

    agent_name = "Reconciler"
    stage = "reconciliation"
    prompt_file = "reconciler.txt"

    def __init__(
        self,
        model: str | None = None,
        client: genai.Client | None = None,
        cost_tracker: CostTracker | None = None,
    ) -> None:
        super().__init__(
            model=model or settings.reconcile_model,
            client=client,
            cost_tracker=cost_tracker,
        )

    async def reconcile(
        self,
        locators: list[str],
        candidates: list[ExtractionCandidate],
        attachments: list[Attachment] | None = None,
        variant: str | None = None,
    ) -> dict[str, Any]:
        """Merge the candidates into one report dict."""
        logger.info(
            "Combining extractions...",
            candidates=len(candidates),
            model=self.model,
        )

        result = await self.call_llm(
            build_reconcile_message(locators, candidates, attachments, variant),
            attachments,
            label="reconciliation",
        )

        report = result["content"]
        logger.info(
            "Combination complete",
            results=result_count(report),
            model_name=report.get("model"),
        )
        return report
