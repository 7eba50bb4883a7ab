"""Hard check schemas: extracted tokens, mismatches, results and severity policy.

Tokens are produced independently from the original and the rewritten text
and only live for the duration of one perform_hard_check() call. The
SeverityPolicy decides how each kind of discrepancy is graded, so the
grading can be tuned without touching the matching code.
"""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field


class Severity(str, Enum):
    """Mismatch severity.

    CRITICAL: blocks passing regardless of score.
    WARNING: lowers the score.
    INFO: recorded for reviewers, no effect on score.
    """

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class MismatchKind(str, Enum):
    """What kind of discrepancy was found between the two texts."""

    FABRICATED = "fabricated"
    ALTERED = "altered"
    SUSPICIOUS_YEAR = "suspicious_year"
    PRECISION_ADDED = "precision_added"
    PRECISION_REDUCED = "precision_reduced"
    OMITTED_SOLE_DATE = "omitted_sole_date"
    OMITTED = "omitted"
    FORMATTING = "formatting"
    ROUNDED = "rounded"


class DateToken(BaseModel):
    """A date-shaped substring and its canonical form.

    normalized_value is one of YYYY-MM-DD, YYYY-MM, YYYY-Qn or YYYY.
    """

    original_text: str
    normalized_value: str
    year: int
    month: Optional[int] = None
    day: Optional[int] = None
    quarter: Optional[int] = None
    context: str = ""
    position: int = 0

    model_config = {"frozen": True}

    @property
    def precision(self) -> int:
        """0 = year, 1 = quarter, 2 = month, 3 = day."""
        if self.day is not None:
            return 3
        if self.month is not None and self.quarter is None:
            return 2
        if self.quarter is not None:
            return 1
        return 0


class NumberToken(BaseModel):
    """A figure found in text.

    unit groups values that are comparable with each other: "usd",
    "percent", "power_of_ten", "count" or a duration unit such as "days".
    label is the word following a plain count ("500 users" -> "users").
    """

    original_text: str
    normalized_value: float
    unit: str
    label: Optional[str] = None
    context: str = ""
    position: int = 0

    model_config = {"frozen": True}


Token = Union[DateToken, NumberToken]


class Mismatch(BaseModel):
    """A discrepancy between the original and rewritten token sets."""

    original: Optional[Token] = None
    rewritten: Optional[Token] = None
    kind: MismatchKind
    issue: str
    severity: Severity


class DateCheck(BaseModel):
    passed: bool = True
    original_dates: list[DateToken] = Field(default_factory=list)
    rewritten_dates: list[DateToken] = Field(default_factory=list)
    mismatches: list[Mismatch] = Field(default_factory=list)


class NumberCheck(BaseModel):
    passed: bool = True
    original_numbers: list[NumberToken] = Field(default_factory=list)
    rewritten_numbers: list[NumberToken] = Field(default_factory=list)
    mismatches: list[Mismatch] = Field(default_factory=list)


class HardCheckResult(BaseModel):
    """Outcome of a deterministic hard check.

    passed is False whenever critical_issues is non-empty, regardless of score.
    """

    passed: bool
    score: int = Field(..., ge=0, le=100)
    date_check: DateCheck
    number_check: NumberCheck
    critical_issues: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    infos: list[str] = Field(default_factory=list)

    @property
    def mismatches(self) -> list[Mismatch]:
        return [*self.date_check.mismatches, *self.number_check.mismatches]


class SeverityPolicy(BaseModel):
    """Grading and scoring policy for the hard check.

    Defaults: fabrication, alteration and year-boundary slips are critical;
    adding precision the source never gave (a day where the original only
    had a month) and dropping the only full date are warnings; everything
    else, including omitted figures, is informational.
    """

    fabricated: Severity = Severity.CRITICAL
    altered: Severity = Severity.CRITICAL
    suspicious_year: Severity = Severity.CRITICAL
    precision_added: Severity = Severity.WARNING
    omitted_sole_date: Severity = Severity.WARNING
    omitted: Severity = Severity.INFO
    precision_reduced: Severity = Severity.INFO
    formatting: Severity = Severity.INFO
    rounded: Severity = Severity.INFO

    critical_penalty: int = Field(default=30, ge=0)
    warning_penalty: int = Field(default=10, ge=0)
    pass_threshold: int = Field(default=70, ge=0, le=100)

    number_tolerance: float = Field(
        default=0.01,
        ge=0.0,
        description="Relative difference treated as rounding (0.01 = 1%)",
    )
    min_count_value: float = Field(
        default=10,
        ge=0,
        description="Plain counts below this are ignored (list sizes, versions)",
    )

    model_config = {"frozen": True}

    def severity_for(self, kind: MismatchKind) -> Severity:
        return getattr(self, kind.value)
