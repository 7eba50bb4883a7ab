"""Per-publisher extraction profiles.

A profile names the publisher and gives CSS selectors for the parts of its
article pages. Hosts without a profile go through the generic extractor.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SourceProfile:
    """CSS selectors for one publisher's article pages."""

    name: str
    title: Optional[str] = None
    content: Optional[str] = None
    date: Optional[str] = None
    author: Optional[str] = None
    thumbnail: Optional[str] = None


SOURCE_PROFILES: dict[str, SourceProfile] = {
    "anthropic.com": SourceProfile(
        name="Anthropic",
        title="h1",
        content="article, .post-content, main",
        date='time, [datetime], meta[property="article:published_time"]',
        thumbnail='meta[property="og:image"]',
    ),
    "techcrunch.com": SourceProfile(
        name="TechCrunch",
        title="h1.article__title",
        content=".article-content",
        date="time",
        author=".article__byline",
        thumbnail='meta[property="og:image"]',
    ),
    "theverge.com": SourceProfile(
        name="The Verge",
        title="h1",
        content=".duet--article--article-body-component",
        date="time",
        thumbnail='meta[property="og:image"]',
    ),
}


def find_profile(hostname: str) -> Optional[SourceProfile]:
    """
    Look up the profile for a host.

    "www." is ignored and subdomains match their parent domain, so
    "www.anthropic.com" and "docs.anthropic.com" both use "anthropic.com".
    """
    host = hostname.lower()
    if host.startswith("www."):
        host = host[4:]

    for domain, profile in SOURCE_PROFILES.items():
        if host == domain or host.endswith("." + domain):
            return profile
    return None
