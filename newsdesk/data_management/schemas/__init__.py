"""Pydantic models for fetched articles, stage outputs and stored content.

Primary exports:
- RawArticle: fetcher output (immutable)
- ExtractedFacts, RewrittenArticle, SoftVerification: generative stage outputs
- ContentRecord: persisted article with status lifecycle
"""

from newsdesk.data_management.schemas.article_schema import RawArticle
from newsdesk.data_management.schemas.content_record import (
    CONTENT_TYPE_MAP,
    STATUS_LABELS,
    ContentCategory,
    ContentRecord,
    ContentStatus,
)
from newsdesk.data_management.schemas.transform_schema import (
    ArticleType,
    Classification,
    ExtractedFacts,
    KeyTakeaway,
    RewrittenArticle,
    SoftVerification,
)

__all__ = [
    "RawArticle",
    "CONTENT_TYPE_MAP",
    "STATUS_LABELS",
    "ContentCategory",
    "ContentRecord",
    "ContentStatus",
    "ArticleType",
    "Classification",
    "ExtractedFacts",
    "KeyTakeaway",
    "RewrittenArticle",
    "SoftVerification",
]
