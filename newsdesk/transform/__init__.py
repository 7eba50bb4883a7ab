"""Generative transform stages and their Gemini implementation."""

from newsdesk.transform.stages import (
    GeminiTransformService,
    GenerativeService,
    StageOutput,
    extract_json_from_response,
    parse_stage_output,
)

__all__ = [
    "GeminiTransformService",
    "GenerativeService",
    "StageOutput",
    "extract_json_from_response",
    "parse_stage_output",
]
