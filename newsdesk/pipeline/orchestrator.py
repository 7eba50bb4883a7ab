"""Single-URL pipeline: fetch, extract facts, rewrite and verify.

Flow for one URL:
1. Fetch the article (ContentFetcher)
2. Extract facts (generative stage 1)
3. Up to 1 + max_retries attempts of rewrite -> soft verify -> hard check,
   each retry carrying the previous attempt's issues as feedback
4. Resolve publication date and news tags

An attempt passes when its effective score (the lower of the soft and
hard scores) reaches the threshold and the hard check found no critical
issue. When every attempt fails, the last one is kept and the result is
flagged needs_review.
"""

from datetime import datetime
from typing import Awaitable, Optional, TypeVar

from dateutil import parser as date_parser
from loguru import logger

from newsdesk.data_management.schemas import ExtractedFacts, RawArticle
from newsdesk.errors import FetchError, PipelineError, StageError
from newsdesk.fetcher.content_fetcher import ContentFetcher, is_likely_fallback_date
from newsdesk.llm.usage import UsageAccumulator
from newsdesk.pipeline.schemas import AttemptRecord, PipelineConfig, PipelineResult
from newsdesk.pipeline.tagging import derive_news_tags
from newsdesk.transform.stages import GeminiTransformService, GenerativeService, StageOutput
from newsdesk.verification.hard_check import perform_hard_check
from newsdesk.verification.schemas import SeverityPolicy

T = TypeVar("T")


def resolve_published_at(article: RawArticle, facts: ExtractedFacts) -> datetime:
    """
    Pick the publication date to store.

    The fetched date wins unless it looks like the fetch time, in which case
    a date stated in the article text (from fact extraction) replaces it.
    """
    fetched_is_fallback = article.published_at_is_fallback or is_likely_fallback_date(
        article.published_at, article.fetched_at
    )
    if not fetched_is_fallback or not facts.published_at:
        return article.published_at

    try:
        stated = date_parser.parse(facts.published_at)
    except (ValueError, OverflowError):
        return article.published_at

    if stated.tzinfo is None:
        stated = stated.replace(tzinfo=article.published_at.tzinfo)
    return stated


class PipelineOrchestrator:
    """
    Runs one URL through the full transform and verification pipeline.

    Usage:
        orchestrator = PipelineOrchestrator()
        orchestrator.ensure_ready()
        result = await orchestrator.process(url, "press", PipelineConfig())

    Attributes:
        severity_policy: Grading policy for the hard check
    """

    def __init__(
        self,
        fetcher: Optional[ContentFetcher] = None,
        service: Optional[GenerativeService] = None,
        severity_policy: Optional[SeverityPolicy] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            fetcher: ContentFetcher. Auto-creates if None.
            service: GenerativeService. Auto-creates a GeminiTransformService if None.
            severity_policy: Hard check policy (defaults built from settings)
        """
        self._fetcher = fetcher
        self._owns_fetcher = fetcher is None
        self._service = service
        self.severity_policy = severity_policy or self._default_policy()
        self.logger = logger.bind(component="PipelineOrchestrator")

    @staticmethod
    def _default_policy() -> SeverityPolicy:
        from newsdesk.config.settings import settings

        return SeverityPolicy(pass_threshold=settings.hard_check_pass_threshold)

    @property
    def fetcher(self):
        """Lazy-load ContentFetcher on first access."""
        if self._fetcher is None:
            self._fetcher = ContentFetcher()
        return self._fetcher

    @property
    def service(self):
        """Lazy-load GeminiTransformService on first access."""
        if self._service is None:
            self._service = GeminiTransformService()
        return self._service

    def ensure_ready(self) -> None:
        """
        Verify the generative service can be used.

        Raises:
            ConfigurationError: If credentials are missing
        """
        ensure = getattr(self.service, "ensure_ready", None)
        if ensure is not None:
            ensure()

    async def close(self) -> None:
        """Close the fetcher if this orchestrator created it."""
        if self._owns_fetcher and self._fetcher is not None:
            await self._fetcher.close()
            self._fetcher = None

    async def _stage(
        self,
        url: str,
        call: Awaitable[StageOutput[T]],
        usage: UsageAccumulator,
    ) -> T:
        try:
            output = await call
        except StageError as e:
            raise PipelineError(url, e.stage, str(e), cause=e) from e
        usage.add(output.usage)
        return output.value

    async def process(
        self,
        url: str,
        category: Optional[str] = None,
        config: Optional[PipelineConfig] = None,
    ) -> PipelineResult:
        """
        Process one URL.

        Args:
            url: Article URL
            category: Requested category (drives tags and theme)
            config: Quality gate (defaults from settings)

        Returns:
            PipelineResult

        Raises:
            PipelineError: Fetch failed or a generative stage failed
        """
        config = config or PipelineConfig.from_settings()
        usage = UsageAccumulator(self.service.model_name)
        threshold = config.min_fact_check_score

        try:
            article = await self.fetcher.fetch(url)
        except FetchError as e:
            raise PipelineError(url, "fetch", str(e), cause=e) from e

        facts = await self._stage(url, self.service.extract_facts(article), usage)
        self.logger.info(
            f"Facts extracted: type={facts.classification.primary.value} "
            f"({facts.classification.confidence:.2f}), {len(facts.features)} features"
        )

        attempts: list[AttemptRecord] = []
        feedback: Optional[list[str]] = None
        max_attempts = config.max_retries + 1

        for attempt in range(max_attempts):
            rewritten = await self._stage(
                url, self.service.rewrite(article, facts, feedback), usage
            )
            soft = await self._stage(
                url, self.service.soft_verify(article, facts, rewritten), usage
            )

            hard = None
            if not config.skip_fact_check:
                hard = perform_hard_check(
                    article.body_text, rewritten.body_html, self.severity_policy
                )

            effective = soft.score if hard is None else min(soft.score, hard.score)
            passed = effective >= threshold and (hard is None or hard.passed)
            issues = [*(hard.critical_issues + hard.warnings if hard else []), *soft.issues]

            attempts.append(
                AttemptRecord(
                    attempt=attempt,
                    soft_score=soft.score,
                    hard_score=hard.score if hard else None,
                    hard_passed=hard.passed if hard else None,
                    effective_score=effective,
                    passed=passed,
                    issues=issues,
                )
            )

            if passed:
                self.logger.info(f"Attempt {attempt + 1} passed with score {effective}")
                break

            if attempt + 1 < max_attempts:
                self.logger.info(
                    f"Score {effective} < {threshold} or hard check failed; "
                    f"retrying rewrite ({attempt + 1}/{config.max_retries})"
                )
                feedback = issues or [f"Quality score {effective} is below {threshold}."]
            else:
                self.logger.warning(
                    f"Score {effective} still below {threshold} after "
                    f"{attempt} retries, marking needs_review"
                )

        final = attempts[-1]
        return PipelineResult(
            article=article,
            facts=facts,
            rewritten=rewritten,
            soft_verification=soft,
            hard_check=hard,
            effective_score=final.effective_score,
            needs_review=not final.passed,
            retry_count=len(attempts) - 1,
            attempts=attempts,
            ai_usage=usage.snapshot(),
            news_tags=derive_news_tags(
                article.title, article.source_name, article.url, category
            ),
            published_at=resolve_published_at(article, facts),
            category=category,
        )
