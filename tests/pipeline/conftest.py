"""Fakes shared by the pipeline tests: a fetcher and a generative service."""

from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Optional

import pytest

from newsdesk.data_management.schemas import (
    Classification,
    ExtractedFacts,
    RawArticle,
    RewrittenArticle,
    SoftVerification,
)
from newsdesk.errors import ConfigurationError, FetchError, StageError
from newsdesk.llm.usage import AIUsage
from newsdesk.transform.stages import StageOutput

ORIGINAL_BODY = "Released on March 3, 2024 with 500 users."
FABRICATED_BODY = "<p>Released on March 5, 2024 with 5000 users.</p>"

CALL_USAGE = AIUsage.from_tokens("gemini-2.5-flash", 1000, 200)


def make_article(url: str, body: str = ORIGINAL_BODY) -> RawArticle:
    return RawArticle(
        url=url,
        title="Claude update ships",
        body_text=body,
        source_name="Anthropic",
        published_at=datetime(2024, 3, 3, tzinfo=timezone.utc),
        fetched_at=datetime(2024, 3, 10, tzinfo=timezone.utc),
    )


class FakeFetcher:
    """Returns a canned article; URLs in fail_urls raise FetchError."""

    def __init__(self, fail_urls=()):
        self.fail_urls = set(fail_urls)
        self.fetched: list[str] = []

    async def fetch(self, url: str) -> RawArticle:
        self.fetched.append(url)
        if url in self.fail_urls:
            raise FetchError(url, "HTTP 500: Internal Server Error")
        return make_article(url)


class FakeService:
    """
    GenerativeService with scripted scores.

    soft_scores is consumed one per soft_verify call; the last value repeats.
    rewrite_bodies likewise scripts the rewritten body_html.
    """

    model_name = "gemini-2.5-flash"

    def __init__(
        self,
        soft_scores=(90,),
        rewrite_bodies=(f"<p>{ORIGINAL_BODY}</p>",),
        fail_stage: Optional[str] = None,
        ready: bool = True,
    ):
        self.soft_scores = list(soft_scores)
        self.rewrite_bodies = list(rewrite_bodies)
        self.fail_stage = fail_stage
        self.ready = ready
        self.rewrite_calls = 0
        self.soft_calls = 0
        self.feedback: list[Optional[list[str]]] = []

    def ensure_ready(self) -> None:
        if not self.ready:
            raise ConfigurationError("GEMINI_API_KEY not configured in environment")

    def _check(self, stage: str) -> None:
        if self.fail_stage == stage:
            raise StageError(stage, "service unavailable", kind=StageError.OUTAGE)

    async def extract_facts(self, article):
        self._check("extract_facts")
        facts = ExtractedFacts(
            classification=Classification(primary="version_update", confidence=0.8),
            features=["faster tools"],
        )
        return StageOutput(value=facts, usage=CALL_USAGE)

    async def rewrite(self, article, facts, feedback=None):
        self._check("rewrite")
        body = self.rewrite_bodies[min(self.rewrite_calls, len(self.rewrite_bodies) - 1)]
        self.rewrite_calls += 1
        self.feedback.append(feedback)
        rewritten = RewrittenArticle(
            title_text=f"Rewritten: {article.title}",
            summary_plain="A short summary.",
            body_html=body,
            key_takeaways=[{"icon": "✅", "text": "Faster tools"}],
        )
        return StageOutput(value=rewritten, usage=CALL_USAGE)

    async def soft_verify(self, article, facts, rewritten):
        self._check("soft_verify")
        score = self.soft_scores[min(self.soft_calls, len(self.soft_scores) - 1)]
        self.soft_calls += 1
        issues = [] if score >= 80 else ["Summary omits the release date"]
        return StageOutput(value=SoftVerification(score=score, issues=issues), usage=CALL_USAGE)


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def service():
    return FakeService()


@pytest.fixture
def make_service():
    return FakeService


@pytest.fixture
def make_fetcher():
    return FakeFetcher


@pytest.fixture
def article_factory():
    return make_article


@pytest.fixture
def bodies():
    """Original body and rewrites that keep or corrupt its date and figure."""
    return SimpleNamespace(
        original=ORIGINAL_BODY,
        faithful=f"<p>{ORIGINAL_BODY}</p>",
        fabricated=FABRICATED_BODY,
    )


@pytest.fixture
def call_usage():
    return CALL_USAGE
