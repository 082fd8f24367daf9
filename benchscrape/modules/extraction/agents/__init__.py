"""Benchmark extraction agents.

  Extractor:    one Gemini call that reads the sources and returns a candidate report
  Reconciler:   one Gemini call that merges and re-verifies all candidates
  Orchestrator: pipeline controller (no LLM)
"""
