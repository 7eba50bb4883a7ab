"""Article fetching and extraction."""

from newsdesk.fetcher.content_fetcher import ContentFetcher, favicon_url, is_likely_fallback_date
from newsdesk.fetcher.source_profiles import SOURCE_PROFILES, SourceProfile, find_profile

__all__ = [
    "ContentFetcher",
    "favicon_url",
    "is_likely_fallback_date",
    "SOURCE_PROFILES",
    "SourceProfile",
    "find_profile",
]
