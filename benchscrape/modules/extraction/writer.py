"""Report Writer - serializes the reconciled report to results/<model>-<date>.json."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

import structlog

from benchscrape.modules.extraction.schemas import ExtractionCandidate

logger = structlog.get_logger()

_WHITESPACE_RUN = re.compile(r"\s+")


def _filename_segment(value: Any) -> str:
    if value is None:
        return "unknown"
    return _WHITESPACE_RUN.sub("-", str(value))


def report_stem(report: dict[str, Any]) -> str:
    """``<model>-<date>`` with whitespace runs hyphenated; missing fields become "unknown"."""
    return f"{_filename_segment(report.get('model'))}-{_filename_segment(report.get('date'))}"


def report_filename(report: dict[str, Any]) -> str:
    return f"{report_stem(report)}.json"


def _output_path(results_dir: str | Path, filename: str) -> Path:
    """Path for ``filename`` inside ``results_dir``, creating any parent directories.

    A "/" in the model name or date nests the file in a subdirectory; a path that
    would land outside ``results_dir`` is refused.
    """
    results_dir = Path(results_dir)
    path = results_dir / filename
    if not path.resolve().is_relative_to(results_dir.resolve()):
        raise ValueError(f"Report path {path} escapes results directory {results_dir}")
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def write_report(report: dict[str, Any], results_dir: str | Path) -> Path:
    """Write the report as pretty-printed UTF-8 JSON. Overwrites an existing file."""
    path = _output_path(results_dir, report_filename(report))
    if path.exists():
        logger.info("Overwriting existing report", path=str(path))
    path.write_text(json.dumps(report, indent=2, ensure_ascii=False), encoding="utf-8")

    logger.info(f"Saved results to {path}")
    return path


def write_candidates(
    report: dict[str, Any],
    candidates: list[ExtractionCandidate],
    results_dir: str | Path,
) -> Path:
    """Write the raw extraction candidates next to the report they were merged into."""
    path = _output_path(results_dir, f"{report_stem(report)}.candidates.json")
    data = [c.model_dump() for c in candidates]
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")

    logger.info("Candidates exported", path=str(path), count=len(candidates))
    return path
