"""Cost Tracker - Token counting & cost estimation per Gemini call.

Tracks prompt/output/thinking/cached tokens for every extraction and the
reconciliation call, and computes costs in USD.

Usage:
    tracker = CostTracker()
    tracker.record("gemini-3-flash-preview", stage="extraction", input_tokens=5000, output_tokens=800)
    print(tracker.summary_text())
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

import structlog

logger = structlog.get_logger()

# ---------------------------------------------------------------------------
# Pricing per 1M tokens (USD), prompts <= 200k tokens
# ---------------------------------------------------------------------------

# Format: (input_per_1M, output_per_1M, cache_read_per_1M)
# Thinking tokens are billed as output.

_PRICING: dict[str, tuple[float, float, float]] = {
    "gemini-3-pro-preview": (2.00, 12.00, 0.20),
    "gemini-3-flash-preview": (0.50, 3.00, 0.05),
    "gemini-2.5-pro": (1.25, 10.00, 0.125),
    "gemini-2.5-flash": (0.30, 2.50, 0.03),
    "gemini-2.5-flash-lite": (0.10, 0.40, 0.01),
    "gemini-2.0-flash": (0.10, 0.40, 0.025),
}

# Fallback pricing for unknown models (conservative estimate)
_FALLBACK_PRICING = (2.00, 12.00, 0.20)


def _get_pricing(model: str) -> tuple[float, float, float]:
    """Look up pricing for a model, with fuzzy matching."""
    model = model.removeprefix("models/")
    if model in _PRICING:
        return _PRICING[model]
    # Longest key first so "gemini-2.5-flash-lite" wins over "gemini-2.5-flash"
    for key in sorted(_PRICING, key=len, reverse=True):
        if model.startswith(key):
            return _PRICING[key]
    logger.warning("Unknown model pricing, using fallback", model=model)
    return _FALLBACK_PRICING


# ---------------------------------------------------------------------------
# Token record per call
# ---------------------------------------------------------------------------


@dataclass
class TokenRecord:
    """Token usage for a single Gemini call."""

    model: str
    stage: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    thinking_tokens: int = 0
    tool_prompt_tokens: int = 0  # url_context / google_search content fed back to the model
    cache_read_tokens: int = 0
    total_tokens: int = 0
    cost_usd: float = 0.0
    duration_ms: int = 0
    timestamp: float = field(default_factory=time.time)

    def compute_cost(self) -> None:
        """Compute USD cost from token counts."""
        input_price, output_price, cache_read_price = _get_pricing(self.model)

        uncached_input = max(self.input_tokens + self.tool_prompt_tokens - self.cache_read_tokens, 0)
        billed_output = self.output_tokens + self.thinking_tokens

        self.total_tokens = self.input_tokens + self.tool_prompt_tokens + billed_output

        self.cost_usd = (
            (uncached_input / 1_000_000) * input_price
            + (billed_output / 1_000_000) * output_price
            + (self.cache_read_tokens / 1_000_000) * cache_read_price
        )


# ---------------------------------------------------------------------------
# Cost Tracker - aggregates across a run
# ---------------------------------------------------------------------------


@dataclass
class StageStats:
    """Aggregated stats for one stage/model pair."""

    stage: str
    model: str
    call_count: int = 0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    total_thinking_tokens: int = 0
    total_tokens: int = 0
    total_cost_usd: float = 0.0
    total_duration_ms: int = 0


class CostTracker:
    """Tracks token usage and costs across all calls of a run."""

    def __init__(self) -> None:
        self.records: list[TokenRecord] = []
        self._start_time = time.time()

    def record(
        self,
        model: str,
        *,
        stage: str = "",
        input_tokens: int = 0,
        output_tokens: int = 0,
        thinking_tokens: int = 0,
        tool_prompt_tokens: int = 0,
        cache_read_tokens: int = 0,
        duration_ms: int = 0,
    ) -> TokenRecord:
        """Record a single call's token usage."""
        rec = TokenRecord(
            model=model,
            stage=stage,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            thinking_tokens=thinking_tokens,
            tool_prompt_tokens=tool_prompt_tokens,
            cache_read_tokens=cache_read_tokens,
            duration_ms=duration_ms,
        )
        rec.compute_cost()
        self.records.append(rec)

        logger.debug(
            "Cost tracked",
            model=model,
            stage=stage,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            thinking_tokens=thinking_tokens,
            cost_usd=f"${rec.cost_usd:.4f}",
        )

        return rec

    def _stats_by_stage(self) -> dict[str, StageStats]:
        """Aggregate stats grouped by stage+model."""
        stats: dict[str, StageStats] = {}

        for rec in self.records:
            key = f"{rec.stage}/{rec.model}"
            if key not in stats:
                stats[key] = StageStats(stage=rec.stage, model=rec.model)

            s = stats[key]
            s.call_count += 1
            s.total_input_tokens += rec.input_tokens + rec.tool_prompt_tokens
            s.total_output_tokens += rec.output_tokens
            s.total_thinking_tokens += rec.thinking_tokens
            s.total_tokens += rec.total_tokens
            s.total_cost_usd += rec.cost_usd
            s.total_duration_ms += rec.duration_ms

        return stats

    @property
    def total_cost_usd(self) -> float:
        return sum(r.cost_usd for r in self.records)

    def summary(self) -> dict[str, Any]:
        """Return a summary dict of all costs."""
        elapsed = time.time() - self._start_time

        stage_summaries = {}
        for key, s in self._stats_by_stage().items():
            stage_summaries[key] = {
                "calls": s.call_count,
                "input_tokens": s.total_input_tokens,
                "output_tokens": s.total_output_tokens,
                "thinking_tokens": s.total_thinking_tokens,
                "total_tokens": s.total_tokens,
                "cost_usd": round(s.total_cost_usd, 4),
                "avg_duration_ms": round(s.total_duration_ms / max(s.call_count, 1)),
            }

        return {
            "total_calls": len(self.records),
            "total_tokens": sum(r.total_tokens for r in self.records),
            "total_cost_usd": round(self.total_cost_usd, 4),
            "elapsed_seconds": round(elapsed, 1),
            "stages": stage_summaries,
        }

    def summary_text(self) -> str:
        """Return a human-readable summary string."""
        s = self.summary()
        lines = [
            "=" * 60,
            "  BENCHMARK EXTRACTION - COST REPORT",
            "=" * 60,
            f"  Total Calls:      {s['total_calls']}",
            f"  Total Tokens:     {s['total_tokens']:,}",
            f"  Total Cost:       ${s['total_cost_usd']:.4f}",
            f"  Elapsed:          {s['elapsed_seconds']}s",
            "-" * 60,
        ]

        for key, st in s["stages"].items():
            lines.extend([
                f"  Stage: {key}",
                f"    Calls:          {st['calls']}",
                f"    Input Tokens:   {st['input_tokens']:,}",
                f"    Output Tokens:  {st['output_tokens']:,}",
                f"    Thinking:       {st['thinking_tokens']:,}",
                f"    Cost:           ${st['cost_usd']:.4f}",
                f"    Avg Duration:   {st['avg_duration_ms']}ms",
                "-" * 60,
            ])

        lines.append("=" * 60)
        return "\n".join(lines)
