"""Deterministic date and number extraction for the hard check.

Both texts are reduced to plain text (tags stripped, whitespace collapsed)
and scanned with an ordered list of patterns. A span claimed by an earlier
pattern is never matched again, so "March 3, 2024" yields one date rather
than a date plus "March 2024", and the digits inside a date are never
reported as numbers.
"""

import html
import re
from typing import Callable, Iterable, Optional

from newsdesk.verification.schemas import DateToken, NumberToken

Span = tuple[int, int]

DATE_CONTEXT_CHARS = 50
NUMBER_CONTEXT_CHARS = 30

MONTH_MAP = {
    "january": 1, "jan": 1,
    "february": 2, "feb": 2,
    "march": 3, "mar": 3,
    "april": 4, "apr": 4,
    "may": 5,
    "june": 6, "jun": 6,
    "july": 7, "jul": 7,
    "august": 8, "aug": 8,
    "september": 9, "sept": 9, "sep": 9,
    "october": 10, "oct": 10,
    "november": 11, "nov": 11,
    "december": 12, "dec": 12,
}

_MONTH = (
    r"(January|February|March|April|May|June|July|August|September|October|"
    r"November|December|Jan|Feb|Mar|Apr|Jun|Jul|Aug|Sept|Sep|Oct|Nov|Dec)"
)

_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")

# Plain number: 1,234,567 or 1234 with optional decimals
_NUM = r"(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?"

SCALE_WORDS = {
    "thousand": 1e3,
    "k": 1e3,
    "million": 1e6,
    "m": 1e6,
    "billion": 1e9,
    "bn": 1e9,
    "b": 1e9,
    "trillion": 1e12,
}


def clean_text(text: str) -> str:
    """Strip HTML tags and entities and collapse whitespace."""
    stripped = _TAG_RE.sub(" ", text or "")
    return _WS_RE.sub(" ", html.unescape(stripped)).strip()


def _context(text: str, start: int, end: int, width: int) -> str:
    return text[max(0, start - width):min(len(text), end + width)].strip()


def _overlaps(start: int, end: int, spans: Iterable[Span]) -> bool:
    return any(start < s_end and s_start < end for s_start, s_end in spans)


def _valid_year(year: int) -> bool:
    return 1900 < year < 2100


def _month(name: str) -> Optional[int]:
    return MONTH_MAP.get(name.lower().rstrip("."))


def _full_date(year: int, month: Optional[int], day: int) -> Optional[dict]:
    if not _valid_year(year) or not month or not 1 <= month <= 12 or not 1 <= day <= 31:
        return None
    return {
        "normalized_value": f"{year}-{month:02d}-{day:02d}",
        "year": year,
        "month": month,
        "day": day,
    }


def _parse_iso(match: re.Match) -> Optional[dict]:
    return _full_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))


def _parse_us(match: re.Match) -> Optional[dict]:
    return _full_date(int(match.group(3)), _month(match.group(1)), int(match.group(2)))


def _parse_european(match: re.Match) -> Optional[dict]:
    return _full_date(int(match.group(3)), _month(match.group(2)), int(match.group(1)))


def _parse_year_boundary(match: re.Match) -> Optional[dict]:
    year = int(match.group(2))
    if match.group(1).lower().startswith("end"):
        return _full_date(year, 12, 31)
    return _full_date(year, 1, 1)


def _parse_quarter(match: re.Match) -> Optional[dict]:
    quarter = int(match.group(1))
    year = int(match.group(2))
    if not _valid_year(year):
        return None
    return {"normalized_value": f"{year}-Q{quarter}", "year": year, "quarter": quarter}


def _parse_month_year(match: re.Match) -> Optional[dict]:
    month = _month(match.group(1))
    year = int(match.group(2))
    if not month or not _valid_year(year):
        return None
    return {"normalized_value": f"{year}-{month:02d}", "year": year, "month": month}


def _parse_year(match: re.Match) -> Optional[dict]:
    year = int(match.group(1))
    if not _valid_year(year):
        return None
    return {"normalized_value": f"{year}", "year": year}


# Order matters: the most specific formats claim their spans first.
DATE_PATTERNS: list[tuple[re.Pattern, Callable[[re.Match], Optional[dict]]]] = [
    # ISO: 2026-01-01, 2026/01/01
    (re.compile(r"\b(\d{4})[-/](\d{1,2})[-/](\d{1,2})\b"), _parse_iso),
    # US: January 1, 2026 / Jan. 1st 2026
    (
        re.compile(rf"\b{_MONTH}\.?\s+(\d{{1,2}})(?:st|nd|rd|th)?,?\s+(\d{{4}})\b", re.IGNORECASE),
        _parse_us,
    ),
    # European: 1 January 2026 / 1st Jan 2026
    (
        re.compile(rf"\b(\d{{1,2}})(?:st|nd|rd|th)?\s+{_MONTH}\.?,?\s+(\d{{4}})\b", re.IGNORECASE),
        _parse_european,
    ),
    # first day of 2025, start of 2026, end of 2025
    (
        re.compile(
            r"\b(first\s+day\s+of|beginning\s+of|start\s+of|end\s+of)\s+(\d{4})\b",
            re.IGNORECASE,
        ),
        _parse_year_boundary,
    ),
    # Q1 2026
    (re.compile(r"\bQ([1-4])\s+(\d{4})\b", re.IGNORECASE), _parse_quarter),
    # January 2026
    (re.compile(rf"\b{_MONTH}\.?,?\s+(\d{{4}})\b", re.IGNORECASE), _parse_month_year),
    # in 2026, by 2025, starting 2026
    (
        re.compile(
            r"\b(?:in|by|since|starting|beginning|from|until|through|during|before|after)\s+(\d{4})\b",
            re.IGNORECASE,
        ),
        _parse_year,
    ),
]


def _scan_dates(text: str) -> tuple[list[DateToken], list[Span]]:
    tokens: list[DateToken] = []
    spans: list[Span] = []
    seen: set[str] = set()

    for pattern, parser in DATE_PATTERNS:
        for match in pattern.finditer(text):
            start, end = match.span()
            if _overlaps(start, end, spans):
                continue
            parsed = parser(match)
            if parsed is None:
                continue
            spans.append((start, end))

            original = match.group(0)
            if original.lower() in seen:
                continue
            seen.add(original.lower())

            tokens.append(
                DateToken(
                    original_text=original,
                    context=_context(text, start, end, DATE_CONTEXT_CHARS),
                    position=start,
                    **parsed,
                )
            )

    tokens.sort(key=lambda token: token.position)
    return tokens, spans


def extract_dates(text: str) -> list[DateToken]:
    """
    Extract all date-shaped substrings from text.

    Args:
        text: Plain text or HTML

    Returns:
        DateTokens in order of appearance, one per distinct surface form
    """
    tokens, _ = _scan_dates(clean_text(text))
    return tokens


def _to_float(raw: str) -> float:
    return float(raw.replace(",", ""))


def _scaled(value: float, scale: Optional[str]) -> float:
    if not scale:
        return value
    return value * SCALE_WORDS.get(scale.lower(), 1.0)


def _parse_currency(match: re.Match) -> Optional[dict]:
    return {
        "normalized_value": _scaled(_to_float(match.group(1)), match.group(2)),
        "unit": "usd",
    }


def _parse_percent(match: re.Match) -> Optional[dict]:
    return {"normalized_value": _to_float(match.group(1)), "unit": "percent"}


def _parse_power(match: re.Match) -> Optional[dict]:
    label = match.group(2).lower() if match.group(2) else None
    return {"normalized_value": float(match.group(1)), "unit": "power_of_ten", "label": label}


def _parse_duration(match: re.Match) -> Optional[dict]:
    return {"normalized_value": _to_float(match.group(1)), "unit": f"{match.group(2).lower()}s"}


def _parse_scaled_count(match: re.Match) -> Optional[dict]:
    return {
        "normalized_value": _scaled(_to_float(match.group(1)), match.group(2)),
        "unit": "count",
        "label": match.group(3).lower() if match.group(3) else None,
    }


# Words that follow a standalone year ("2024 was", "2025 and beyond")
_YEAR_FOLLOWERS = frozenset(MONTH_MAP) | {
    "was", "were", "will", "would", "could", "should", "has", "had", "have",
    "saw", "and", "but", "the", "for", "with", "when", "while", "also", "alone",
    "marked", "brought", "onward", "onwards", "through", "edition", "season",
}


def _parse_count(match: re.Match) -> Optional[dict]:
    raw = match.group(1)
    value = _to_float(raw)
    label = match.group(2).lower() if match.group(2) else None
    # A bare 4-digit year is a date unless a noun follows it ("2048 tokens")
    if "," not in raw and "." not in raw and _valid_year(int(value)):
        if label is None or label in _YEAR_FOLLOWERS:
            return None
    return {
        "normalized_value": value,
        "unit": "count",
        "label": label,
    }


_LABEL = r"(?:\s+([A-Za-z][A-Za-z\-]{2,}))?"

NUMBER_PATTERNS: list[tuple[re.Pattern, Callable[[re.Match], Optional[dict]]]] = [
    # $5, $100 million, $1.5B
    (
        re.compile(
            rf"\$\s*({_NUM})(?:\s*(thousand|million|billion|trillion|bn|[kmb])\b)?",
            re.IGNORECASE,
        ),
        _parse_currency,
    ),
    # 50%, 99.9 percent
    (
        re.compile(rf"(?<![\w.,])({_NUM})\s*(?:%|percent\b|per\s+cent\b)", re.IGNORECASE),
        _parse_percent,
    ),
    # 10^26 FLOPS
    (re.compile(r"\b10\^(\d+)(?:\s*(FLOPS))?", re.IGNORECASE), _parse_power),
    # 15-day, 30 days, 6 months
    (
        re.compile(
            rf"(?<![\w.])({_NUM})\s*-?\s*(minute|hour|day|week|month|year)s?\b",
            re.IGNORECASE,
        ),
        _parse_duration,
    ),
    # 1.5 million users
    (
        re.compile(
            rf"(?<![\w.,$])({_NUM})\s+(thousand|million|billion|trillion){_LABEL}",
            re.IGNORECASE,
        ),
        _parse_scaled_count,
    ),
    # 500 users, 12,000 downloads. Digits glued to letters, dots or dashes
    # (GPT-4o, v3.5.1, 10x) are identifiers, not figures.
    (
        re.compile(rf"(?<![\w.,$^/\-])({_NUM})(?![\w%]|[.,/\-]\d){_LABEL}"),
        _parse_count,
    ),
]


def extract_numbers(text: str, min_count_value: float = 10) -> list[NumberToken]:
    """
    Extract significant figures from text.

    Dates are located first and their spans excluded, so years and day
    numbers never show up as figures.

    Args:
        text: Plain text or HTML
        min_count_value: Plain counts below this value are ignored

    Returns:
        NumberTokens in order of appearance, one per distinct surface form
    """
    cleaned = clean_text(text)
    _, date_spans = _scan_dates(cleaned)

    tokens: list[NumberToken] = []
    spans: list[Span] = list(date_spans)
    seen: set[str] = set()

    for pattern, parser in NUMBER_PATTERNS:
        for match in pattern.finditer(cleaned):
            start, end = match.span(1)
            if _overlaps(start, end, spans):
                continue
            parsed = parser(match)
            if parsed is None:
                continue
            if parsed["unit"] == "count" and parsed["normalized_value"] < min_count_value:
                continue

            full_start, full_end = match.span()
            spans.append((full_start, full_end))

            original = match.group(0).strip()
            if original.lower() in seen:
                continue
            seen.add(original.lower())

            tokens.append(
                NumberToken(
                    original_text=original,
                    context=_context(cleaned, full_start, full_end, NUMBER_CONTEXT_CHARS),
                    position=full_start,
                    **parsed,
                )
            )

    tokens.sort(key=lambda token: token.position)
    return tokens
