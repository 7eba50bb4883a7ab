"""Map a PipelineResult onto ContentRecord fields."""

from datetime import datetime, timezone
from typing import Any, Optional

from newsdesk.data_management.schemas import (
    CONTENT_TYPE_MAP,
    ContentCategory,
    ContentStatus,
)
from newsdesk.pipeline.schemas import PipelineResult

# Requested category -> display theme
THEME_MAP = {
    "official": "official",
    "version_update": "update",
    "press": "press",
    "community": "community",
    "youtube": "community",
}

ACCENT_COLORS = {
    "official": "#F97316",
    "update": "#22C55E",
    "press": "#3B82F6",
    "community": "#8B5CF6",
}


def _category(value: Optional[str]) -> ContentCategory:
    try:
        return ContentCategory(value)
    except ValueError:
        return ContentCategory.PRESS


def build_rich_content(result: PipelineResult) -> dict[str, Any]:
    """Display structure consumed by the article page."""
    rewritten = result.rewritten
    theme = THEME_MAP.get(result.category or "press", "press")

    return {
        "title": {"text": rewritten.title_text, "emoji": rewritten.title_emoji},
        "summary": {"text": rewritten.summary_plain},
        "key_points": [kt.model_dump() for kt in rewritten.key_takeaways],
        "source": {
            "name": result.article.source_name,
            "url": result.article.url,
            "favicon": result.article.favicon_url,
            "published_at": result.published_at.isoformat(),
        },
        "meta": {"difficulty": rewritten.difficulty, "category": rewritten.category},
        "style": {"accent_color": ACCENT_COLORS.get(theme, ACCENT_COLORS["press"]), "theme": theme},
    }


def fact_check_reason(result: PipelineResult) -> str:
    return "; ".join(result.issues) or "Passed"


def build_record_fields(result: PipelineResult, status: ContentStatus) -> dict[str, Any]:
    """
    ContentRecord fields for a processed article.

    Args:
        result: Pipeline result
        status: Status decided by the coordinator

    Returns:
        Field dict accepted by ContentRepository.upsert
    """
    category = _category(result.category)
    rewritten = result.rewritten
    classification = result.facts.classification

    return {
        "source_url": result.article.url,
        "status": status,
        "title": rewritten.title_text,
        "source_name": result.article.source_name,
        "category": category,
        "content_type": CONTENT_TYPE_MAP[category],
        "summary_plain": rewritten.summary_plain,
        "body_html": rewritten.body_html,
        "one_liner": rewritten.one_liner,
        "insight_html": rewritten.insight_html,
        "key_takeaways": [kt.model_dump() for kt in rewritten.key_takeaways],
        "difficulty": rewritten.difficulty,
        "rich_content": build_rich_content(result),
        "original_content": result.article.body_text,
        "thumbnail_url": result.article.thumbnail_url,
        "favicon_url": result.article.favicon_url,
        "published_at": result.published_at,
        "news_tags": result.news_tags,
        "fact_check_score": result.effective_score / 100,
        "fact_check_reason": fact_check_reason(result),
        "hard_check_score": result.hard_check.score if result.hard_check else None,
        "ai_model_used": result.ai_usage.model,
        "ai_tokens_used": result.ai_usage.total_tokens,
        "ai_cost_usd": result.ai_usage.cost_usd,
        "ai_processed_at": datetime.now(timezone.utc),
        "ai_article_type": classification.primary.value,
        "ai_article_type_secondary": (
            classification.secondary.value if classification.secondary else None
        ),
        "ai_classification_confidence": classification.confidence,
        "ai_classification_signals": list(classification.signals),
    }
