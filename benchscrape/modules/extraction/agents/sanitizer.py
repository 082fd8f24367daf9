"""Sanitizer - post-processing of Gemini benchmark-report output.

Fixes common LLM output errors before strict Pydantic validation:
  1. Numeric scores returned as numbers instead of strings
  2. List fields returned as null instead of []
  3. A single locator returned as a string instead of a list
  4. Result entries missing ``name`` or ``score`` (dropped)
  5. snake_case ``benchmark_results`` instead of ``benchmarkResults``
"""

from __future__ import annotations

from typing import Any


# ---------------------------------------------------------------------------
# Helper: strip markdown code fences from LLM output
# ---------------------------------------------------------------------------

def strip_code_fences(raw_text: str) -> str:
    """Strip markdown code fences (```json ... ```) from LLM response."""
    text = raw_text.strip()
    if text.startswith("```"):
        first_newline = text.find("\n")
        text = text[first_newline + 1:] if first_newline != -1 else text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


# ---------------------------------------------------------------------------
# Core sanitizer
# ---------------------------------------------------------------------------

def _score_to_str(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def sanitize_report(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of a report dict coerced towards the BenchmarkReport shape."""
    out = dict(data)

    if "benchmarkResults" not in out and "benchmark_results" in out:
        out["benchmarkResults"] = out.pop("benchmark_results")

    locators = out.get("locators")
    if locators is None:
        out["locators"] = []
    elif isinstance(locators, str):
        out["locators"] = [locators]

    results: list[dict[str, Any]] = []
    entries = out.get("benchmarkResults")
    for entry in entries if isinstance(entries, list) else []:
        if not isinstance(entry, dict):
            continue
        name, score = entry.get("name"), entry.get("score")
        if name is None or score is None:
            continue
        results.append({"name": str(name), "score": _score_to_str(score)})
    out["benchmarkResults"] = results

    return out
