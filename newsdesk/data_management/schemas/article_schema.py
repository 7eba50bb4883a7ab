"""Fetched article schema.

RawArticle is the fetcher's only output. It is immutable: every later stage
reads it, none may change it.

Hard requirements: url, title, body_text, source_name, published_at.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RawArticle(BaseModel):
    """Article as fetched from its source page.

    Attributes:
        url: Final URL the article was fetched from.
        title: Article headline.
        body_text: Extracted main text, possibly truncated with an ellipsis.
        source_name: Publisher name (profile name, og:site_name or host).
        published_at: Publication time; fetch time when none was found.
        fetched_at: When the page was fetched.
        published_at_is_fallback: True when published_at is the fetch time.
        thumbnail_url: Lead image, if any.
        favicon_url: Publisher favicon.
        author: Byline, if any.
    """

    url: str = Field(..., description="Article URL")
    title: str = Field(..., min_length=1)
    body_text: str = Field(..., min_length=1)
    source_name: str = Field(..., min_length=1)
    published_at: datetime
    fetched_at: datetime = Field(default_factory=_utcnow)
    published_at_is_fallback: bool = False
    thumbnail_url: Optional[str] = None
    favicon_url: Optional[str] = None
    author: Optional[str] = None

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "url": "https://www.anthropic.com/news/claude-code",
                    "title": "Introducing Claude Code",
                    "body_text": "Today we are releasing ...",
                    "source_name": "Anthropic",
                    "published_at": "2025-02-24T00:00:00Z",
                    "published_at_is_fallback": False,
                    "favicon_url": "https://www.google.com/s2/favicons?domain=www.anthropic.com&sz=64",
                }
            ]
        },
    }
