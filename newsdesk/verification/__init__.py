"""Deterministic hard check of dates and figures.

Compares an original article against its rewrite without any model call:
- extraction: date and number tokens from plain text or HTML
- hard_check: pairing, grading through a SeverityPolicy, scoring
"""

from newsdesk.verification.extraction import clean_text, extract_dates, extract_numbers
from newsdesk.verification.hard_check import compare_dates, compare_numbers, perform_hard_check
from newsdesk.verification.schemas import (
    DateCheck,
    DateToken,
    HardCheckResult,
    Mismatch,
    MismatchKind,
    NumberCheck,
    NumberToken,
    Severity,
    SeverityPolicy,
)

__all__ = [
    "clean_text",
    "extract_dates",
    "extract_numbers",
    "compare_dates",
    "compare_numbers",
    "perform_hard_check",
    "DateCheck",
    "DateToken",
    "HardCheckResult",
    "Mismatch",
    "MismatchKind",
    "NumberCheck",
    "NumberToken",
    "Severity",
    "SeverityPolicy",
]
