"""Deterministic fact check comparing dates and figures of two texts.

The hard check never calls a model. It extracts date and number tokens from
the original article and from the rewrite, pairs them up, and grades every
discrepancy through a SeverityPolicy. The same inputs always produce the
same result.
"""

import re
from typing import Optional

from newsdesk.utils.logging import get_structured_logger
from newsdesk.verification.extraction import extract_dates, extract_numbers
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

logger = get_structured_logger("HardCheck")

DEFAULT_POLICY = SeverityPolicy()

_WORD_RE = re.compile(r"[a-z]{3,}")
_STOPWORDS = frozenset(
    {
        "the", "and", "for", "with", "that", "this", "from", "was", "were", "are",
        "has", "have", "had", "will", "its", "their", "they", "than", "then",
        "into", "over", "about", "after", "before", "been", "also", "but", "not",
        "more", "less", "which", "when", "where", "while", "said", "says",
    }
)

_PUBLICATION_HINT_RE = re.compile(
    r"published|posted|date|article|news|announcement|"
    r"dec|nov|oct|sep|aug|jul|jun|may|apr|mar|feb|jan",
    re.IGNORECASE,
)
_FUTURE_TENSE_RE = re.compile(
    r"\b(will|going to|upcoming|takes effect|effective|beginning)\b", re.IGNORECASE
)


def _context_words(context: str) -> set[str]:
    return {word for word in _WORD_RE.findall(context.lower()) if word not in _STOPWORDS}


def _contexts_overlap(a: str, b: str) -> bool:
    return bool(_context_words(a) & _context_words(b))


# =============================================================================
# Dates
# =============================================================================


def _date_contains(coarse: DateToken, fine: DateToken) -> bool:
    """True when the coarser date is a range that includes the finer one."""
    if coarse.precision >= fine.precision or coarse.year != fine.year:
        return False
    if coarse.precision == 0:
        return True
    if coarse.precision == 1:
        return fine.month is not None and (fine.month - 1) // 3 + 1 == coarse.quarter
    return fine.month == coarse.month


def _dates_consistent(a: DateToken, b: DateToken) -> bool:
    return (
        a.normalized_value == b.normalized_value
        or _date_contains(a, b)
        or _date_contains(b, a)
    )


def find_article_date(dates: list[DateToken]) -> Optional[DateToken]:
    """Best guess at the publication date mentioned in the original text."""
    candidates = [
        d
        for d in dates
        if d.month is not None and d.year >= 2023 and _PUBLICATION_HINT_RE.search(d.context)
    ]
    if candidates:
        return max(candidates, key=lambda d: (d.year, d.month or 0))

    for d in dates:
        if d.year >= 2024:
            return d
    return None


def _is_suspicious_year(
    rewritten: DateToken,
    article_date: Optional[DateToken],
    original_dates: list[DateToken],
) -> bool:
    """
    Detect a year-boundary slip.

    A late-year article announcing something for "January 1" (next year)
    is often rewritten with the article's own year. Flag early-year dates in
    the article's year when the source never states that year and month and
    the rewrite speaks about the future.
    """
    if article_date is None or not article_date.month or article_date.month < 10:
        return False
    if not rewritten.month or rewritten.month > 3 or rewritten.year != article_date.year:
        return False
    if any(d.year == rewritten.year and d.month == rewritten.month for d in original_dates):
        return False
    return bool(_FUTURE_TENSE_RE.search(rewritten.context))


def _related_date(rewritten: DateToken, original_dates: list[DateToken]) -> Optional[DateToken]:
    for d in original_dates:
        if d.year == rewritten.year:
            return d
    if rewritten.month and rewritten.day:
        for d in original_dates:
            if d.month == rewritten.month and d.day == rewritten.day:
                return d
    for d in original_dates:
        if _contexts_overlap(d.context, rewritten.context):
            return d
    return None


def compare_dates(
    original_dates: list[DateToken],
    rewritten_dates: list[DateToken],
    policy: SeverityPolicy = DEFAULT_POLICY,
) -> DateCheck:
    """
    Pair rewritten dates with original dates and classify every difference.

    Args:
        original_dates: Dates extracted from the source article
        rewritten_dates: Dates extracted from the rewrite
        policy: Severity policy

    Returns:
        DateCheck with mismatches; passed is False on any critical mismatch
    """
    mismatches: list[Mismatch] = []
    paired: set[str] = set()
    article_date = find_article_date(original_dates)

    def add(kind: MismatchKind, issue: str, original=None, rewritten=None) -> None:
        mismatches.append(
            Mismatch(
                original=original,
                rewritten=rewritten,
                kind=kind,
                issue=issue,
                severity=policy.severity_for(kind),
            )
        )

    for r in rewritten_dates:
        exact = [d for d in original_dates if d.normalized_value == r.normalized_value]
        if exact:
            if not any(d.original_text.lower() == r.original_text.lower() for d in exact):
                add(
                    MismatchKind.FORMATTING,
                    f'Date reformatted: "{exact[0].original_text}" -> "{r.original_text}"',
                    exact[0],
                    r,
                )
            continue

        if _is_suspicious_year(r, article_date, original_dates):
            add(
                MismatchKind.SUSPICIOUS_YEAR,
                f'Suspicious year: article from {article_date.month}/{article_date.year} '
                f'mentions "{r.original_text}" in future tense, '
                f"likely meant {article_date.year + 1}",
                article_date,
                r,
            )
            continue

        wider = next((d for d in original_dates if _date_contains(r, d)), None)
        if wider is not None:
            add(
                MismatchKind.PRECISION_REDUCED,
                f'Date made less precise: "{wider.original_text}" -> "{r.original_text}"',
                wider,
                r,
            )
            continue

        narrower = next((d for d in original_dates if _date_contains(d, r)), None)
        if narrower is not None:
            add(
                MismatchKind.PRECISION_ADDED,
                f'Date made more precise than source: "{narrower.original_text}" -> "{r.original_text}"',
                narrower,
                r,
            )
            continue

        related = _related_date(r, original_dates)
        if related is not None:
            paired.add(related.normalized_value)
            add(
                MismatchKind.ALTERED,
                f'Date changed: "{related.original_text}" -> "{r.original_text}"',
                related,
                r,
            )
            continue

        add(
            MismatchKind.FABRICATED,
            f'Date not in source: "{r.original_text}"',
            None,
            r,
        )

    full_dates = [d for d in original_dates if d.precision == 3]
    for d in original_dates:
        if d.normalized_value in paired:
            continue
        if any(_dates_consistent(d, r) for r in rewritten_dates):
            continue
        if len(full_dates) == 1 and full_dates[0] is d:
            add(
                MismatchKind.OMITTED_SOLE_DATE,
                f'Only specific date in source omitted: "{d.original_text}"',
                d,
                None,
            )
        else:
            add(MismatchKind.OMITTED, f'Date omitted: "{d.original_text}"', d, None)

    return DateCheck(
        passed=not any(m.severity == Severity.CRITICAL for m in mismatches),
        original_dates=original_dates,
        rewritten_dates=rewritten_dates,
        mismatches=mismatches,
    )


# =============================================================================
# Numbers
# =============================================================================


def _within_tolerance(a: float, b: float, tolerance: float) -> bool:
    scale = max(abs(a), abs(b))
    if scale == 0:
        return True
    return abs(a - b) <= tolerance * scale


def _related_number(
    rewritten: NumberToken, candidates: list[NumberToken]
) -> Optional[NumberToken]:
    if rewritten.label:
        for n in candidates:
            if n.label == rewritten.label:
                return n
    for n in candidates:
        if _contexts_overlap(n.context, rewritten.context):
            return n
    return None


def compare_numbers(
    original_numbers: list[NumberToken],
    rewritten_numbers: list[NumberToken],
    policy: SeverityPolicy = DEFAULT_POLICY,
) -> NumberCheck:
    """
    Pair rewritten figures with original figures of the same unit.

    Args:
        original_numbers: Figures extracted from the source article
        rewritten_numbers: Figures extracted from the rewrite
        policy: Severity policy (also supplies the rounding tolerance)

    Returns:
        NumberCheck with mismatches; passed is False on any critical mismatch
    """
    mismatches: list[Mismatch] = []
    paired: set[int] = set()
    tolerance = policy.number_tolerance

    def add(kind: MismatchKind, issue: str, original=None, rewritten=None) -> None:
        mismatches.append(
            Mismatch(
                original=original,
                rewritten=rewritten,
                kind=kind,
                issue=issue,
                severity=policy.severity_for(kind),
            )
        )

    for r in rewritten_numbers:
        same_unit = [n for n in original_numbers if n.unit == r.unit]

        exact = [n for n in same_unit if n.normalized_value == r.normalized_value]
        if exact:
            if not any(n.original_text.lower() == r.original_text.lower() for n in exact):
                add(
                    MismatchKind.FORMATTING,
                    f'Number reformatted: "{exact[0].original_text}" -> "{r.original_text}"',
                    exact[0],
                    r,
                )
            continue

        close = next(
            (n for n in same_unit if _within_tolerance(n.normalized_value, r.normalized_value, tolerance)),
            None,
        )
        if close is not None:
            add(
                MismatchKind.ROUNDED,
                f'Number rounded: "{close.original_text}" -> "{r.original_text}"',
                close,
                r,
            )
            continue

        related = _related_number(r, same_unit)
        if related is not None:
            paired.add(id(related))
            add(
                MismatchKind.ALTERED,
                f'Number changed: "{related.original_text}" -> "{r.original_text}"',
                related,
                r,
            )
            continue

        add(
            MismatchKind.FABRICATED,
            f'Number not in source: "{r.original_text}"',
            None,
            r,
        )

    for n in original_numbers:
        if id(n) in paired:
            continue
        if any(
            r.unit == n.unit and _within_tolerance(n.normalized_value, r.normalized_value, tolerance)
            for r in rewritten_numbers
        ):
            continue
        add(MismatchKind.OMITTED, f'Number omitted: "{n.original_text}"', n, None)

    return NumberCheck(
        passed=not any(m.severity == Severity.CRITICAL for m in mismatches),
        original_numbers=original_numbers,
        rewritten_numbers=rewritten_numbers,
        mismatches=mismatches,
    )


# =============================================================================
# Entry point
# =============================================================================


def perform_hard_check(
    original_text: str,
    rewritten_text: str,
    policy: Optional[SeverityPolicy] = None,
) -> HardCheckResult:
    """
    Compare the dates and figures of an original article and its rewrite.

    Score starts at 100 and loses policy.critical_penalty per critical issue
    and policy.warning_penalty per warning, floored at 0. The check passes
    when the score reaches policy.pass_threshold and no critical issue was
    found.

    Args:
        original_text: Source article text (HTML is stripped)
        rewritten_text: Rewritten article text (HTML is stripped)
        policy: Severity policy, defaults to SeverityPolicy()

    Returns:
        HardCheckResult
    """
    policy = policy or DEFAULT_POLICY

    date_check = compare_dates(
        extract_dates(original_text), extract_dates(rewritten_text), policy
    )
    number_check = compare_numbers(
        extract_numbers(original_text, policy.min_count_value),
        extract_numbers(rewritten_text, policy.min_count_value),
        policy,
    )

    all_mismatches = [*date_check.mismatches, *number_check.mismatches]
    critical = [m.issue for m in all_mismatches if m.severity == Severity.CRITICAL]
    warnings = [m.issue for m in all_mismatches if m.severity == Severity.WARNING]
    infos = [m.issue for m in all_mismatches if m.severity == Severity.INFO]

    score = max(
        0,
        100 - policy.critical_penalty * len(critical) - policy.warning_penalty * len(warnings),
    )
    passed = score >= policy.pass_threshold and not critical

    logger.debug(
        "hard_check_complete",
        score=score,
        critical=len(critical),
        warnings=len(warnings),
        infos=len(infos),
    )

    return HardCheckResult(
        passed=passed,
        score=score,
        date_check=date_check,
        number_check=number_check,
        critical_issues=critical,
        warnings=warnings,
        infos=infos,
    )
