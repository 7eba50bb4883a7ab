"""Pipeline configuration and result models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from newsdesk.data_management.schemas import (
    ExtractedFacts,
    RawArticle,
    RewrittenArticle,
    SoftVerification,
)
from newsdesk.llm.usage import AIUsage
from newsdesk.verification.schemas import HardCheckResult


class PipelineConfig(BaseModel):
    """Quality gate for one pipeline run.

    Attributes:
        min_fact_check_score: Effective score an attempt must reach
        max_retries: Extra rewrite attempts after the first one
        skip_fact_check: Skip the deterministic hard check (soft check still runs)
    """

    min_fact_check_score: int = Field(default=80, ge=0, le=100)
    max_retries: int = Field(default=1, ge=0)
    skip_fact_check: bool = False

    @classmethod
    def from_settings(cls) -> "PipelineConfig":
        from newsdesk.config.settings import settings

        return cls(
            min_fact_check_score=settings.min_fact_check_score,
            max_retries=settings.max_retries,
        )


class AttemptRecord(BaseModel):
    """Scores of one rewrite attempt."""

    attempt: int
    soft_score: int
    hard_score: Optional[int] = None
    hard_passed: Optional[bool] = None
    effective_score: int
    passed: bool
    issues: list[str] = Field(default_factory=list)


class PipelineResult(BaseModel):
    """Outcome of processing one URL.

    needs_review is True when no attempt reached the quality gate.
    retry_count equals len(attempts) - 1.
    """

    article: RawArticle
    facts: ExtractedFacts
    rewritten: RewrittenArticle
    soft_verification: SoftVerification
    hard_check: Optional[HardCheckResult] = None
    effective_score: int = Field(..., ge=0, le=100)
    needs_review: bool
    retry_count: int = Field(..., ge=0)
    attempts: list[AttemptRecord]
    ai_usage: AIUsage
    news_tags: list[str] = Field(default_factory=list)
    published_at: datetime
    category: Optional[str] = None

    @property
    def issues(self) -> list[str]:
        """Issues of the final attempt."""
        return self.attempts[-1].issues if self.attempts else []
