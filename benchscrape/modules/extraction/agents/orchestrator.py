"""Pipeline Orchestrator.

Pure Python controller, no LLM calls of its own. One linear path per run:

    Locators -> Resolve attachments (concurrent)
             -> Extract x N (concurrent, all must succeed)
             -> Reconcile (single call)
             -> Write results/<model>-<date>.json

There is no retry and no partial-result fallback: any failure aborts the run
before anything is written.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any

import httpx
import structlog
from google import genai

from benchscrape.core.config import settings
from benchscrape.modules.extraction.agents.extractor import ExtractorAgent
from benchscrape.modules.extraction.agents.reconciler import ReconcilerAgent
from benchscrape.modules.extraction.agents.sanitizer import sanitize_report
from benchscrape.modules.extraction.attachments import resolve_attachments
from benchscrape.modules.extraction.concurrency import gather_all
from benchscrape.modules.extraction.cost_tracker import CostTracker
from benchscrape.modules.extraction.progress import ProgressCounter
from benchscrape.modules.extraction.schemas import (
    Attachment,
    BenchmarkReport,
    ExtractionCandidate,
    RunResult,
    result_count,
)
from benchscrape.modules.extraction.writer import write_candidates, write_report

logger = structlog.get_logger()


class OrchestratorAgent:
    """Coordinates attachment resolution, extraction fan-out and reconciliation."""

    agent_name = "Orchestrator"

    def __init__(
        self,
        *,
        num_extractions: int | None = None,
        extraction_model: str | None = None,
        reconcile_model: str | None = None,
        results_dir: str | Path | None = None,
        strict_validation: bool | None = None,
        save_candidates: bool = False,
        client: genai.Client | None = None,
        http_client: httpx.AsyncClient | None = None,
        cost_tracker: CostTracker | None = None,
    ) -> None:
        self.num_extractions = (
            settings.num_extractions if num_extractions is None else num_extractions
        )
        if self.num_extractions < 1:
            raise ValueError("num_extractions must be at least 1")
        self.results_dir = Path(results_dir or settings.results_dir)
        self.strict_validation = (
            settings.strict_validation if strict_validation is None else strict_validation
        )
        self.save_candidates = save_candidates
        self.http_client = http_client
        self.cost_tracker = cost_tracker or CostTracker()

        self.extractor = ExtractorAgent(
            model=extraction_model, client=client, cost_tracker=self.cost_tracker,
        )
        self.reconciler = ReconcilerAgent(
            model=reconcile_model, client=client, cost_tracker=self.cost_tracker,
        )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def resolve(self, locators: list[str]) -> list[Attachment]:
        return await resolve_attachments(locators, client=self.http_client)

    async def extract_all(
        self,
        locators: list[str],
        attachments: list[Attachment],
        variant: str | None = None,
    ) -> list[ExtractionCandidate]:
        """Fan out N identical extraction calls and wait for all of them."""
        logger.info(f"Running {self.num_extractions} extractions in parallel...")
        progress = ProgressCounter(stage="extraction", total=self.num_extractions)

        candidates = await gather_all(
            *(
                self.extractor.extract(
                    locators,
                    attachments,
                    variant,
                    index=i,
                    progress=progress,
                )
                for i in range(1, self.num_extractions + 1)
            )
        )
        return list(candidates)

    def validate(self, report: dict[str, Any]) -> dict[str, Any]:
        """Strict mode: coerce and validate against BenchmarkReport (raises on failure)."""
        validated = BenchmarkReport.model_validate(sanitize_report(report))
        return validated.model_dump(by_alias=True, exclude_none=True)

    # ------------------------------------------------------------------
    # Full pipeline
    # ------------------------------------------------------------------

    async def run(self, locators: list[str], variant: str | None = None) -> RunResult:
        """Run the whole pipeline for one set of locators.

        Args:
            locators: One or more URLs (web pages and/or PDFs).
            variant: Optional model-variant filter applied by every call.

        Returns:
            RunResult with the written report, the candidates and output paths.
        """
        if not locators:
            raise ValueError("At least one locator is required")

        start = time.time()
        logger.info(
            "Orchestrator: run started",
            locators=len(locators),
            variant=variant,
            extractions=self.num_extractions,
        )

        attachments = await self.resolve(locators)
        candidates = await self.extract_all(locators, attachments, variant)
        report = await self.reconciler.reconcile(locators, candidates, attachments, variant)

        if self.strict_validation:
            report = self.validate(report)

        output_path = write_report(report, self.results_dir)
        candidates_path = None
        if self.save_candidates:
            candidates_path = write_candidates(report, candidates, self.results_dir)

        logger.info(
            "Orchestrator: run complete",
            output=str(output_path),
            candidates=len(candidates),
            results=result_count(report),
            cost_usd=f"${self.cost_tracker.total_cost_usd:.4f}",
            duration_ms=int((time.time() - start) * 1000),
        )

        return RunResult(
            report=report,
            candidates=candidates,
            attachment_count=len(attachments),
            output_path=str(output_path),
            candidates_path=str(candidates_path) if candidates_path else None,
        )
