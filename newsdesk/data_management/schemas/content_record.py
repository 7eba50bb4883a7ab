"""Persisted content record schema.

One ContentRecord per ingested article. A source_url may have at most one
live record; rejected records do not count and are replaced on
re-ingestion.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContentStatus(str, Enum):
    """Lifecycle of a content record."""

    PENDING = "pending"
    NEEDS_REVIEW = "needs_review"
    PUBLISHED = "published"
    REJECTED = "rejected"
    DRAFT = "draft"


# Human-readable labels used in skip messages
STATUS_LABELS = {
    ContentStatus.PENDING: "pending approval",
    ContentStatus.NEEDS_REVIEW: "needs review",
    ContentStatus.PUBLISHED: "published",
    ContentStatus.REJECTED: "rejected",
    ContentStatus.DRAFT: "draft",
}


class ContentCategory(str, Enum):
    """Requested category of an ingestion item."""

    OFFICIAL = "official"
    PRESS = "press"
    COMMUNITY = "community"
    YOUTUBE = "youtube"
    VERSION_UPDATE = "version_update"
    CLAUDE_CODE = "claude_code"


# Requested category -> stored content_type
CONTENT_TYPE_MAP = {
    ContentCategory.OFFICIAL: "official",
    ContentCategory.PRESS: "press",
    ContentCategory.COMMUNITY: "community",
    ContentCategory.YOUTUBE: "youtube",
    ContentCategory.VERSION_UPDATE: "version_update",
    ContentCategory.CLAUDE_CODE: "community",
}


class ContentRecord(BaseModel):
    """A stored article.

    Attributes:
        id: Record identifier.
        source_url: Original article URL (unique among live records).
        status: Lifecycle status.
        fact_check_score: Effective quality score scaled to 0.0-1.0.
        hard_check_score: Deterministic hard check score (0-100), if run.
        rich_content: Display structure (title, summary, key points, source,
            meta, style) built from the rewrite.
        original_content: Fetched body text, kept for re-verification.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    source_url: str
    status: ContentStatus = ContentStatus.PENDING
    title: str
    source_name: str
    category: ContentCategory = ContentCategory.PRESS
    content_type: str = "press"

    summary_plain: Optional[str] = None
    body_html: Optional[str] = None
    one_liner: Optional[str] = None
    insight_html: Optional[str] = None
    key_takeaways: list[dict[str, str]] = Field(default_factory=list)
    difficulty: Optional[str] = None
    rich_content: dict[str, Any] = Field(default_factory=dict)
    original_content: Optional[str] = None

    thumbnail_url: Optional[str] = None
    favicon_url: Optional[str] = None
    published_at: Optional[datetime] = None
    news_tags: list[str] = Field(default_factory=list)

    fact_check_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    fact_check_reason: Optional[str] = None
    hard_check_score: Optional[int] = Field(default=None, ge=0, le=100)

    ai_model_used: Optional[str] = None
    ai_tokens_used: int = 0
    ai_cost_usd: float = 0.0
    ai_processed_at: Optional[datetime] = None
    ai_article_type: Optional[str] = None
    ai_article_type_secondary: Optional[str] = None
    ai_classification_confidence: Optional[float] = None
    ai_classification_signals: list[str] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    model_config = {"use_enum_values": False}

    @property
    def is_live(self) -> bool:
        return self.status != ContentStatus.REJECTED
