"""Schemas for the three generative stages.

These models are the validation boundary for model output: a reply that
does not fit them is rejected as malformed rather than passed on.

- ExtractedFacts: stage 1, facts and article classification
- RewrittenArticle: stage 2, the rewritten article
- SoftVerification: stage 3, advisory model self-check
"""

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


class ArticleType(str, Enum):
    """Article classification used for theming and tagging."""

    PRODUCT_LAUNCH = "product_launch"
    VERSION_UPDATE = "version_update"
    TUTORIAL = "tutorial"
    INTERVIEW = "interview"
    ANALYSIS = "analysis"
    SECURITY = "security"
    EVENT = "event"
    RESEARCH = "research"
    INTEGRATION = "integration"
    PRICING = "pricing"
    SHOWCASE = "showcase"
    OPINION = "opinion"
    GENERAL = "general"


def _coerce_article_type(value):
    if isinstance(value, str):
        normalized = value.strip().lower().replace("-", "_").replace(" ", "_")
        if normalized in ArticleType._value2member_map_:
            return normalized
        return ArticleType.GENERAL.value
    return value


class Classification(BaseModel):
    """Article classification from stage 1.

    Unknown type labels fall back to "general" instead of failing the stage.
    """

    primary: ArticleType
    secondary: Optional[ArticleType] = None
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    signals: list[str] = Field(default_factory=list)

    @field_validator("primary", "secondary", mode="before")
    @classmethod
    def _known_type(cls, value):
        return _coerce_article_type(value)


class ExtractedFacts(BaseModel):
    """Structured facts extracted from the original article.

    Hard requirement: classification.
    """

    published_at: Optional[str] = Field(
        default=None, description="Publication date stated in the text (ISO 8601)"
    )
    classification: Classification
    version: Optional[str] = None
    release_date: Optional[str] = None
    metrics: list[str] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    changes: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "published_at": "2025-05-22",
                    "classification": {
                        "primary": "product_launch",
                        "secondary": "version_update",
                        "confidence": 0.9,
                        "signals": ["announces", "available today"],
                    },
                    "version": "4.0",
                    "release_date": "2025-05-22",
                    "metrics": ["72.5% on SWE-bench"],
                    "features": ["extended thinking with tool use"],
                    "changes": [],
                    "keywords": ["Claude", "Anthropic"],
                }
            ]
        }
    }


class KeyTakeaway(BaseModel):
    icon: str = ""
    text: str = Field(..., min_length=1)


class RewrittenArticle(BaseModel):
    """Rewritten article from stage 2.

    Hard requirements: title_text, summary_plain, body_html.
    """

    title_text: str = Field(..., min_length=1)
    title_emoji: Optional[str] = None
    summary_plain: str = Field(..., min_length=1)
    body_html: str = Field(..., min_length=1)
    one_liner: Optional[str] = None
    insight_html: Optional[str] = None
    key_takeaways: list[KeyTakeaway] = Field(default_factory=list)
    difficulty: Literal["easy", "medium", "hard"] = "medium"
    read_time: Optional[str] = None
    category: Optional[str] = None

    @field_validator("difficulty", mode="before")
    @classmethod
    def _normalize_difficulty(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class SoftVerification(BaseModel):
    """Model self-assessment of the rewrite. Advisory only."""

    score: int = Field(..., ge=0, le=100)
    issues: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
