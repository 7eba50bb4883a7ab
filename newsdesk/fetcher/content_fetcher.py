"""Fetch an article URL and extract a RawArticle from its HTML.

Extraction uses a publisher profile when one matches the host and the
generic chain otherwise (content selectors, trafilatura in precision then
recall mode, stripped body text). Every failure raises FetchError; a
partial article is never returned.
"""

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from urllib.parse import urljoin, urlparse

import httpx
import trafilatura
from bs4 import BeautifulSoup
from dateutil import parser as date_parser
from loguru import logger
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from newsdesk.config.settings import settings
from newsdesk.data_management.schemas import RawArticle
from newsdesk.errors import FetchError
from newsdesk.fetcher.source_profiles import SourceProfile, find_profile

USER_AGENT = "Mozilla/5.0 (compatible; newsdesk/1.0; article ingestion)"

MIN_BODY_CHARS = 50
GENERIC_MIN_CHARS = 200

GENERIC_CONTENT_SELECTORS = [
    "article",
    '[role="main"]',
    ".post-content",
    ".article-content",
    ".entry-content",
    "main",
    ".content",
]

NOISE_TAGS = ["script", "style", "nav", "footer", "aside", "noscript", "form"]

DATE_MARKUP_SELECTORS = [
    ("time[datetime]", "datetime"),
    ('[itemprop="datePublished"]', "datetime"),
    ('[itemprop="datePublished"]', "content"),
    ('[class*="date"][datetime]', "datetime"),
]

DATE_META_SELECTORS = [
    'meta[property="article:published_time"]',
    'meta[property="og:article:published_time"]',
    'meta[name="date"]',
    'meta[name="publish_date"]',
    'meta[name="publishdate"]',
    'meta[name="DC.date.issued"]',
    'meta[itemprop="datePublished"]',
]

JSON_LD_DATE_FIELDS = ["datePublished", "dateCreated", "dateModified", "publishedAt", "published"]

FALLBACK_DATE_WINDOW = timedelta(hours=1)


def favicon_url(hostname: str) -> str:
    return f"https://www.google.com/s2/favicons?domain={hostname}&sz=32"


def is_likely_fallback_date(
    published_at: datetime,
    reference: Optional[datetime] = None,
    window: timedelta = FALLBACK_DATE_WINDOW,
) -> bool:
    """
    Whether a publication date is probably the fetch time rather than a real date.

    Args:
        published_at: Date to test
        reference: Fetch time (defaults to now)
        window: Distance under which the dates count as the same moment
    """
    reference = reference or datetime.now(timezone.utc)
    if published_at.tzinfo is None:
        published_at = published_at.replace(tzinfo=timezone.utc)
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=timezone.utc)
    return abs(reference - published_at) < window


def _clean(text: Optional[str]) -> str:
    return " ".join((text or "").split())


def _parse_date(value: Optional[str]) -> Optional[datetime]:
    if not value or not value.strip():
        return None
    try:
        dt = date_parser.parse(value.strip())
    except (ValueError, OverflowError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _element_text(soup: BeautifulSoup, selector: str) -> str:
    """Text of all matches of a selector with noise tags removed."""
    parts = []
    for element in soup.select(selector):
        for noise in element.find_all(NOISE_TAGS):
            noise.decompose()
        parts.append(element.get_text(separator=" "))
    return _clean(" ".join(parts))


def _json_ld_items(soup: BeautifulSoup) -> list[dict[str, Any]]:
    items: list[dict[str, Any]] = []
    for script in soup.find_all("script", type="application/ld+json"):
        try:
            data = json.loads(script.string or "")
        except json.JSONDecodeError:
            continue
        for item in data if isinstance(data, list) else [data]:
            if isinstance(item, dict):
                items.append(item)
    return items


class ContentFetcher:
    """
    Fetches article pages and extracts RawArticles.

    Transient transport errors are retried with exponential backoff; HTTP
    error statuses are not.

    Attributes:
        timeout: HTTP request timeout in seconds
        max_body_chars: Body truncation length
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        max_body_chars: Optional[int] = None,
        retry_attempts: int = 3,
        retry_backoff: float = 1.0,
    ):
        """
        Initialize content fetcher.

        Args:
            client: Shared httpx.AsyncClient (created lazily if omitted)
            timeout: HTTP timeout (defaults to settings.fetch_timeout)
            max_body_chars: Truncation length (defaults to settings.max_body_chars)
            retry_attempts: Attempts for transient transport errors
            retry_backoff: Exponential backoff multiplier in seconds
        """
        self._client = client
        self._owns_client = client is None
        self.timeout = timeout or settings.fetch_timeout
        self.max_body_chars = max_body_chars or settings.max_body_chars
        self.retry_attempts = retry_attempts
        self.retry_backoff = retry_backoff
        self.logger = logger.bind(component="ContentFetcher")

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                headers={
                    "User-Agent": USER_AGENT,
                    "Accept": "text/html,application/xhtml+xml",
                    "Accept-Language": "en-US,en;q=0.9",
                },
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ContentFetcher":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def _get_with_retry(self, url: str) -> httpx.Response:
        client = await self._get_client()
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=self.retry_backoff, max=10),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        ):
            with attempt:
                return await client.get(url)

    async def fetch(self, url: str) -> RawArticle:
        """
        Fetch and extract an article.

        Args:
            url: Absolute http(s) URL

        Returns:
            RawArticle

        Raises:
            FetchError: Invalid URL, network failure, non-2xx status, or a
                page without a usable title and body
        """
        parsed = urlparse(url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise FetchError(url, "Invalid URL")

        try:
            response = await self._get_with_retry(url)
        except httpx.TimeoutException as e:
            raise FetchError(url, f"Request timed out: {e}") from e
        except httpx.RequestError as e:
            raise FetchError(url, f"Request failed: {e}") from e

        if not response.is_success:
            raise FetchError(url, f"HTTP {response.status_code}: {response.reason_phrase}")

        html = response.text
        if not html.strip():
            raise FetchError(url, "Empty response body")

        final_url = str(response.url)
        article = self.extract(html, final_url)

        self.logger.info(
            f"Fetched '{article.title}' from {article.source_name} "
            f"({len(article.body_text)} chars, fallback_date={article.published_at_is_fallback})"
        )
        return article

    def extract(self, html: str, url: str, fetched_at: Optional[datetime] = None) -> RawArticle:
        """
        Extract a RawArticle from page HTML.

        Raises:
            FetchError: Missing title or body shorter than 50 characters
        """
        fetched_at = fetched_at or datetime.now(timezone.utc)
        hostname = urlparse(url).hostname or ""
        soup = BeautifulSoup(html, "html.parser")
        profile = find_profile(hostname)

        title = self._extract_title(soup, profile)
        if not title:
            raise FetchError(url, "Failed to extract article title")

        body = ""
        if profile and profile.content:
            body = _element_text(BeautifulSoup(html, "html.parser"), profile.content)
        if len(body) < MIN_BODY_CHARS:
            if profile:
                self.logger.debug(f"Profile '{profile.name}' found no body, using generic extraction")
            body = self._extract_generic_body(html)

        if len(body) < MIN_BODY_CHARS:
            raise FetchError(url, "Article content too short")

        if len(body) > self.max_body_chars:
            body = body[: self.max_body_chars] + "..."

        published_at = self._extract_date(soup, profile)
        is_fallback = published_at is None
        if is_fallback:
            published_at = fetched_at

        return RawArticle(
            url=url,
            title=title,
            body_text=body,
            source_name=self._source_name(soup, profile, hostname),
            published_at=published_at,
            fetched_at=fetched_at,
            published_at_is_fallback=is_fallback,
            thumbnail_url=self._extract_thumbnail(soup, profile, url),
            favicon_url=favicon_url(hostname) if hostname else None,
            author=self._extract_author(soup, profile),
        )

    def _extract_title(self, soup: BeautifulSoup, profile: Optional[SourceProfile]) -> str:
        if profile and profile.title:
            element = soup.select_one(profile.title)
            if element and _clean(element.get_text()):
                return _clean(element.get_text())

        h1 = soup.find("h1")
        if h1 and _clean(h1.get_text()):
            return _clean(h1.get_text())

        og_title = soup.select_one('meta[property="og:title"]')
        if og_title and _clean(og_title.get("content")):
            return _clean(og_title.get("content"))

        if soup.title and _clean(soup.title.get_text()):
            return _clean(soup.title.get_text())
        return ""

    def _extract_generic_body(self, html: str) -> str:
        """
        Generic content extraction chain.

        Content selectors first, then trafilatura (precision, then recall),
        then the stripped text of <body>.
        """
        soup = BeautifulSoup(html, "html.parser")
        best = ""
        for selector in GENERIC_CONTENT_SELECTORS:
            text = _element_text(soup, selector)
            if len(text) >= GENERIC_MIN_CHARS:
                return text
            if len(text) > len(best):
                best = text

        for mode in ({"favor_precision": True}, {"favor_recall": True}):
            content = trafilatura.extract(
                html,
                include_comments=False,
                include_tables=True,
                **mode,
            )
            if content and len(_clean(content)) >= GENERIC_MIN_CHARS:
                return _clean(content)

        if len(best) >= 100:
            return best

        body = BeautifulSoup(html, "html.parser").body
        if body is None:
            return best
        for noise in body.find_all(NOISE_TAGS + ["header"]):
            noise.decompose()
        return _clean(body.get_text(separator=" "))

    def _extract_date(
        self, soup: BeautifulSoup, profile: Optional[SourceProfile]
    ) -> Optional[datetime]:
        """Publication date from markup, then JSON-LD, then meta tags."""
        candidates: list[Optional[str]] = []

        if profile and profile.date:
            element = soup.select_one(profile.date)
            if element:
                candidates.append(
                    element.get("datetime") or element.get("content") or element.get_text()
                )

        for selector, attribute in DATE_MARKUP_SELECTORS:
            element = soup.select_one(selector)
            if element:
                candidates.append(element.get(attribute))

        for item in _json_ld_items(soup):
            candidates.extend(item.get(field) for field in JSON_LD_DATE_FIELDS)
            for node in item.get("@graph") or []:
                if isinstance(node, dict):
                    candidates.extend(node.get(field) for field in JSON_LD_DATE_FIELDS)

        for selector in DATE_META_SELECTORS:
            element = soup.select_one(selector)
            if element:
                candidates.append(element.get("content"))

        for candidate in candidates:
            if isinstance(candidate, str):
                parsed = _parse_date(candidate)
                if parsed:
                    return parsed
        return None

    def _extract_thumbnail(
        self, soup: BeautifulSoup, profile: Optional[SourceProfile], url: str
    ) -> Optional[str]:
        selectors = [profile.thumbnail] if profile and profile.thumbnail else []
        selectors += ['meta[property="og:image"]', 'meta[name="twitter:image"]']
        for selector in selectors:
            element = soup.select_one(selector)
            if element and element.get("content"):
                return urljoin(url, element["content"].strip())
        return None

    def _extract_author(
        self, soup: BeautifulSoup, profile: Optional[SourceProfile]
    ) -> Optional[str]:
        if profile and profile.author:
            element = soup.select_one(profile.author)
            if element and _clean(element.get_text()):
                return _clean(element.get_text())

        meta = soup.select_one('meta[name="author"]')
        if meta and _clean(meta.get("content")):
            return _clean(meta.get("content"))

        for selector in ('[rel="author"]', ".author"):
            element = soup.select_one(selector)
            if element and _clean(element.get_text()):
                return _clean(element.get_text())
        return None

    def _source_name(
        self, soup: BeautifulSoup, profile: Optional[SourceProfile], hostname: str
    ) -> str:
        if profile:
            return profile.name

        site_name = soup.select_one('meta[property="og:site_name"]')
        if site_name and _clean(site_name.get("content")):
            return _clean(site_name.get("content"))

        host = hostname[4:] if hostname.startswith("www.") else hostname
        label = host.split(".")[0] or host
        return label[:1].upper() + label[1:]
