"""Benchmark report schemas.

``BenchmarkReport`` is the contract handed to Gemini's structured-output mode
(via its JSON schema) and the shape of the file written to ``results/``.
Candidate and reconciled payloads travel through the pipeline as plain dicts
so that an unparseable response degrades to an empty report instead of
aborting the run.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

PDF_MIME_TYPE = "application/pdf"


# ---------------------------------------------------------------------------
# Report contract (sent to the model as a JSON schema)
# ---------------------------------------------------------------------------


class BenchmarkResult(BaseModel):
    """A single benchmark score for one benchmark x variant combination."""

    name: str = Field(..., description="The name of the benchmark")
    score: str = Field(..., description="The score of the benchmark")


class BenchmarkReport(BaseModel):
    """All benchmark results reported for one model."""

    model_config = ConfigDict(populate_by_name=True)

    provider: str = Field(
        ..., description="The name of the provider that reported the benchmark results"
    )
    model: str = Field(..., description="The name of the model that was benchmarked")
    date: str = Field(
        ..., description="The date of release of the model in MM-DD-YYYY format"
    )
    locators: list[str] = Field(
        ..., description="The URLs of the pages and documents that contain the benchmark results"
    )
    benchmark_results: list[BenchmarkResult] = Field(
        ...,
        alias="benchmarkResults",
        description="An array of benchmark results",
    )
    notes: str | None = Field(
        None,
        description=(
            "Any clarifications regarding any of the benchmark results "
            "or your report that are non-obvious"
        ),
    )


def report_json_schema() -> dict[str, Any]:
    """JSON schema for ``BenchmarkReport`` using the camelCase wire names."""
    return BenchmarkReport.model_json_schema(by_alias=True)


# ---------------------------------------------------------------------------
# Pipeline data
# ---------------------------------------------------------------------------


class Attachment(BaseModel):
    """A downloaded PDF, base64-encoded for inline inclusion in requests."""

    locator: str
    mime_type: Literal["application/pdf"] = PDF_MIME_TYPE
    payload: str = Field(..., description="Base64-encoded document bytes")
    size_bytes: int = 0


class ExtractionCandidate(BaseModel):
    """Output of one extraction call: the parsed report plus call metadata."""

    index: int = Field(..., description="1-based extraction number")
    model: str
    report: dict[str, Any] = Field(
        default_factory=dict,
        description="Parsed response body ({} when the body was not valid JSON)",
    )
    input_tokens: int = 0
    output_tokens: int = 0
    duration_ms: int = 0


class RunResult(BaseModel):
    """Everything a single pipeline run produced."""

    report: dict[str, Any]
    candidates: list[ExtractionCandidate] = Field(default_factory=list)
    attachment_count: int = 0
    output_path: str | None = None
    candidates_path: str | None = None


def result_count(report: dict[str, Any]) -> int:
    """Number of benchmark entries in a report dict, 0 when the field is missing or not a list."""
    results = report.get("benchmarkResults")
    return len(results) if isinstance(results, list) else 0
