"""Tests for ContentFetcher using httpx.MockTransport."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from newsdesk.errors import FetchError
from newsdesk.fetcher.content_fetcher import ContentFetcher, favicon_url, is_likely_fallback_date
from newsdesk.fetcher.source_profiles import find_profile

PARAGRAPH = (
    "Anthropic announced a new set of developer tools on Tuesday, including "
    "a command line agent and expanded API access for enterprise customers. "
)
LONG_BODY = PARAGRAPH * 4

FETCHED_AT = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def page(head="", body=""):
    return f"<html><head>{head}</head><body>{body}</body></html>"


def make_fetcher(handler, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    kwargs.setdefault("retry_backoff", 0)
    return ContentFetcher(client=client, **kwargs)


class TestSourceProfiles:
    @pytest.mark.parametrize(
        "host,name",
        [
            ("www.anthropic.com", "Anthropic"),
            ("anthropic.com", "Anthropic"),
            ("docs.anthropic.com", "Anthropic"),
            ("techcrunch.com", "TechCrunch"),
            ("www.theverge.com", "The Verge"),
        ],
    )
    def test_known_hosts(self, host, name):
        assert find_profile(host).name == name

    def test_unknown_host(self):
        assert find_profile("example.com") is None

    def test_suffix_is_not_a_subdomain(self):
        assert find_profile("notanthropic.com") is None


class TestExtract:
    """Tests for HTML extraction without network access."""

    @pytest.fixture
    def fetcher(self):
        return ContentFetcher(max_body_chars=10_000)

    def test_profile_extraction(self, fetcher):
        html = page(
            head='<meta property="og:image" content="/img/lead.png">',
            body=(
                '<h1 class="article__title">Claude gets tools</h1>'
                '<div class="article__byline">Jane Doe</div>'
                '<time datetime="2025-03-04T10:00:00Z">March 4</time>'
                f'<div class="article-content"><p>{LONG_BODY}</p><script>var x=1;</script></div>'
            ),
        )

        article = fetcher.extract(html, "https://techcrunch.com/2025/03/04/claude", FETCHED_AT)

        assert article.title == "Claude gets tools"
        assert article.source_name == "TechCrunch"
        assert article.author == "Jane Doe"
        assert article.published_at == datetime(2025, 3, 4, 10, 0, tzinfo=timezone.utc)
        assert not article.published_at_is_fallback
        assert article.thumbnail_url == "https://techcrunch.com/img/lead.png"
        assert article.favicon_url == favicon_url("techcrunch.com")
        assert "var x" not in article.body_text
        assert article.body_text.startswith("Anthropic announced")

    def test_generic_extraction(self, fetcher):
        """Unknown hosts use the generic selectors and og:site_name."""
        html = page(
            head='<meta property="og:site_name" content="AI Weekly">',
            body=f"<nav>Home | About</nav><h1>Weekly roundup</h1><article><p>{LONG_BODY}</p></article>",
        )

        article = fetcher.extract(html, "https://aiweekly.example.com/roundup", FETCHED_AT)

        assert article.title == "Weekly roundup"
        assert article.source_name == "AI Weekly"
        assert "Home | About" not in article.body_text

    def test_source_name_from_host(self, fetcher):
        html = page(body=f"<h1>Post</h1><article>{LONG_BODY}</article>")

        article = fetcher.extract(html, "https://www.simonwillison.net/2025/post", FETCHED_AT)

        assert article.source_name == "Simonwillison"

    def test_title_falls_back_to_og_title(self, fetcher):
        html = page(
            head='<meta property="og:title" content="From Open Graph"><title>Tab title</title>',
            body=f"<article>{LONG_BODY}</article>",
        )

        article = fetcher.extract(html, "https://example.com/a", FETCHED_AT)

        assert article.title == "From Open Graph"

    def test_missing_title_raises(self, fetcher):
        html = page(body=f"<article>{LONG_BODY}</article>")

        with pytest.raises(FetchError, match="title"):
            fetcher.extract(html, "https://example.com/a", FETCHED_AT)

    def test_short_body_raises(self, fetcher):
        html = page(body="<h1>Title</h1><article>Too short.</article>")

        with pytest.raises(FetchError, match="too short"):
            fetcher.extract(html, "https://example.com/a", FETCHED_AT)

    def test_body_truncated(self):
        fetcher = ContentFetcher(max_body_chars=100)
        html = page(body=f"<h1>Title</h1><article>{LONG_BODY}</article>")

        article = fetcher.extract(html, "https://example.com/a", FETCHED_AT)

        assert len(article.body_text) == 103
        assert article.body_text.endswith("...")

    def test_date_from_json_ld_graph(self, fetcher):
        html = page(
            head=(
                '<script type="application/ld+json">'
                '{"@graph": [{"@type": "NewsArticle", "datePublished": "2025-02-10"}]}'
                "</script>"
            ),
            body=f"<h1>Title</h1><article>{LONG_BODY}</article>",
        )

        article = fetcher.extract(html, "https://example.com/a", FETCHED_AT)

        assert article.published_at.date().isoformat() == "2025-02-10"

    def test_markup_date_wins_over_meta(self, fetcher):
        html = page(
            head='<meta property="article:published_time" content="2025-01-01T00:00:00Z">',
            body=(
                '<h1>Title</h1><time datetime="2025-02-02T00:00:00Z">Feb 2</time>'
                f"<article>{LONG_BODY}</article>"
            ),
        )

        article = fetcher.extract(html, "https://example.com/a", FETCHED_AT)

        assert article.published_at.month == 2

    def test_date_from_meta(self, fetcher):
        html = page(
            head='<meta property="article:published_time" content="2025-01-15T08:30:00+00:00">',
            body=f"<h1>Title</h1><article>{LONG_BODY}</article>",
        )

        article = fetcher.extract(html, "https://example.com/a", FETCHED_AT)

        assert article.published_at == datetime(2025, 1, 15, 8, 30, tzinfo=timezone.utc)

    def test_missing_date_falls_back_to_fetch_time(self, fetcher):
        html = page(body=f"<h1>Title</h1><article>{LONG_BODY}</article>")

        article = fetcher.extract(html, "https://example.com/a", FETCHED_AT)

        assert article.published_at == FETCHED_AT
        assert article.published_at_is_fallback

    def test_unparseable_date_is_skipped(self, fetcher):
        html = page(
            head='<meta name="date" content="2025-03-20">',
            body=f'<h1>Title</h1><time datetime="soon">Soon</time><article>{LONG_BODY}</article>',
        )

        article = fetcher.extract(html, "https://example.com/a", FETCHED_AT)

        assert article.published_at.date().isoformat() == "2025-03-20"


class TestFallbackDate:
    def test_within_window(self):
        assert is_likely_fallback_date(FETCHED_AT - timedelta(minutes=10), FETCHED_AT)

    def test_outside_window(self):
        assert not is_likely_fallback_date(FETCHED_AT - timedelta(days=2), FETCHED_AT)

    def test_naive_dates_treated_as_utc(self):
        naive = datetime(2025, 6, 1, 11, 50)
        assert is_likely_fallback_date(naive, FETCHED_AT)


class TestFetch:
    """Tests for fetch() over a mocked transport."""

    @pytest.mark.asyncio
    async def test_success(self):
        html = page(body=f"<h1>Launch</h1><article>{LONG_BODY}</article>")
        fetcher = make_fetcher(lambda request: httpx.Response(200, text=html))

        article = await fetcher.fetch("https://example.com/launch")

        assert article.title == "Launch"
        assert article.url == "https://example.com/launch"

    @pytest.mark.asyncio
    async def test_invalid_url(self):
        fetcher = make_fetcher(lambda request: httpx.Response(200))

        with pytest.raises(FetchError, match="Invalid URL"):
            await fetcher.fetch("ftp://example.com/file")

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        fetcher = make_fetcher(lambda request: httpx.Response(404))

        with pytest.raises(FetchError, match="HTTP 404"):
            await fetcher.fetch("https://example.com/missing")

    @pytest.mark.asyncio
    async def test_empty_body(self):
        fetcher = make_fetcher(lambda request: httpx.Response(200, text="   "))

        with pytest.raises(FetchError, match="Empty"):
            await fetcher.fetch("https://example.com/empty")

    @pytest.mark.asyncio
    async def test_transport_error_retried_then_raised(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        fetcher = make_fetcher(handler, retry_attempts=3)

        with pytest.raises(FetchError, match="Request failed"):
            await fetcher.fetch("https://example.com/down")
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_transient_error_recovers(self):
        html = page(body=f"<h1>Back</h1><article>{LONG_BODY}</article>")
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ReadError("reset", request=request)
            return httpx.Response(200, text=html)

        fetcher = make_fetcher(handler)

        article = await fetcher.fetch("https://example.com/flaky")

        assert article.title == "Back"
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        fetcher = make_fetcher(handler, retry_attempts=1)

        with pytest.raises(FetchError, match="timed out"):
            await fetcher.fetch("https://example.com/slow")
