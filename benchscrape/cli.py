"""Benchmark report extraction CLI.

Runs several redundant Gemini extractions over the given pages/PDFs,
reconciles them into one report and saves it as results/<model>-<date>.json.

Usage:
    # One announcement page
    benchscrape https://blog.example.com/model-launch

    # Page + technical report PDF, only the "thinking" variant
    benchscrape https://blog.example.com/launch https://example.com/report.pdf -v thinking

    # More extractions, keep the raw candidates
    benchscrape https://blog.example.com/launch -n 8 --save-candidates
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Load .env before importing settings so the Gemini SDK sees GEMINI_API_KEY too
from dotenv import load_dotenv

load_dotenv()

import structlog

from benchscrape.core.config import settings
from benchscrape.modules.extraction.agents.orchestrator import OrchestratorAgent
from benchscrape.modules.extraction.cost_tracker import CostTracker

logger = structlog.get_logger()


def configure_logging(level: str = "INFO") -> None:
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="benchscrape",
        description="Extract an AI model's benchmark results from web pages and PDFs",
    )
    parser.add_argument("locators", nargs="+", metavar="URL",
                        help="Page or PDF URLs reporting the benchmark results")
    parser.add_argument("-v", "--variant", type=str, default=None,
                        help="Only report results for this model variant (e.g. thinking)")
    parser.add_argument("-n", "--extractions", type=int, default=None,
                        help=f"Number of parallel extractions (default: {settings.num_extractions})")
    parser.add_argument("--extraction-model", type=str, default=None,
                        help=f"Gemini model for extractions (default: {settings.extraction_model})")
    parser.add_argument("--reconcile-model", type=str, default=None,
                        help=f"Gemini model for reconciliation (default: {settings.reconcile_model})")
    parser.add_argument("--output-dir", type=Path, default=None,
                        help=f"Results directory (default: {settings.results_dir})")
    parser.add_argument("--save-candidates", action="store_true",
                        help="Also write the raw extraction candidates")
    parser.add_argument("--strict", action="store_true", default=None,
                        help="Fail instead of writing a report that does not match the schema")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(settings.log_level)

    if args.extractions is not None and args.extractions < 1:
        print("--extractions must be at least 1", file=sys.stderr)
        return 2

    cost_tracker = CostTracker()
    orchestrator = OrchestratorAgent(
        num_extractions=args.extractions,
        extraction_model=args.extraction_model,
        reconcile_model=args.reconcile_model,
        results_dir=args.output_dir,
        strict_validation=args.strict,
        save_candidates=args.save_candidates,
        cost_tracker=cost_tracker,
    )

    try:
        result = asyncio.run(orchestrator.run(args.locators, variant=args.variant))
    except Exception as e:
        logger.error("Benchmark extraction failed", error=str(e), exc_info=True)
        return 1

    print(cost_tracker.summary_text())
    print(f"Saved results to {result.output_path}")
    return 0


def run() -> None:
    sys.exit(main())
