"""Prompt templates for the generative transform stages.

Modules:
    transform_prompts: fact extraction, rewrite and soft verification prompts
"""

from newsdesk.config.prompts.transform_prompts import (
    FACT_EXTRACTION_PROMPT,
    REWRITE_FEEDBACK_SECTION,
    REWRITE_PROMPT,
    SOFT_VERIFICATION_PROMPT,
)

__all__ = [
    "FACT_EXTRACTION_PROMPT",
    "REWRITE_FEEDBACK_SECTION",
    "REWRITE_PROMPT",
    "SOFT_VERIFICATION_PROMPT",
]
