"""Batch ingestion: dedup, process, persist and report progress per item.

Items are processed strictly one after another. Each item moves through
checking -> (skip | processing) -> (saved | errored), and a failure in one
item is reported as an ``error`` event without stopping the batch.

Usage:
    coordinator = IngestionCoordinator(PipelineOrchestrator(), ContentStore())
    async for event in coordinator.run(items, RunConfig(auto_publish=False)):
        print(event.to_json())
"""

import asyncio
import json
import random
from typing import Any, AsyncIterator, Awaitable, Callable, Literal, Optional

from pydantic import BaseModel, Field

from newsdesk.data_management.repository import ContentRepository
from newsdesk.data_management.schemas import ContentRecord, ContentStatus, STATUS_LABELS
from newsdesk.errors import DuplicateSourceUrlError
from newsdesk.pipeline.orchestrator import PipelineOrchestrator
from newsdesk.pipeline.records import build_record_fields
from newsdesk.pipeline.schemas import PipelineConfig
from newsdesk.utils.logging import get_structured_logger, new_run_id

EventType = Literal["progress", "success", "skip", "error", "complete"]

ThumbnailGenerator = Callable[[ContentRecord], Awaitable[Any]]


class IngestionItem(BaseModel):
    """One URL to ingest."""

    url: str
    category: Optional[str] = None


class RunStats(BaseModel):
    """Cumulative outcome counts of a run."""

    success: int = 0
    failed: int = 0
    skipped: int = 0


class ProgressEvent(BaseModel):
    """One event of the progress stream.

    The final event of every run has type ``complete`` and carries stats.
    """

    type: EventType
    index: int
    total: int
    url: Optional[str] = None
    title: Optional[str] = None
    message: str
    stats: Optional[RunStats] = None
    record_id: Optional[str] = None

    def to_json(self) -> str:
        return json.dumps(self.model_dump(mode="json", exclude_none=True), ensure_ascii=False)

    def to_sse(self) -> str:
        """Server-sent events frame."""
        return f"data: {self.to_json()}\n\n"


class RunConfig(BaseModel):
    """Options of one ingestion run.

    Attributes:
        delay_ms: Fixed pause between items
        delay_jitter_ms: Random extra pause in [0, delay_jitter_ms]
        auto_publish: Publish passing articles instead of queueing them as pending
        max_items_to_collect: Stop after this many saved articles
        force: Re-ingest URLs that already have a live record
        pipeline: Quality gate passed to the orchestrator
    """

    delay_ms: int = Field(default=0, ge=0)
    delay_jitter_ms: int = Field(default=0, ge=0)
    auto_publish: bool = False
    max_items_to_collect: Optional[int] = Field(default=None, ge=1)
    force: bool = False
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)


def decide_status(auto_publish: bool, needs_review: bool) -> ContentStatus:
    if not auto_publish:
        return ContentStatus.PENDING
    if needs_review:
        return ContentStatus.NEEDS_REVIEW
    return ContentStatus.PUBLISHED


class IngestionCoordinator:
    """
    Runs a batch of URLs through the pipeline and stores the results.

    Attributes:
        orchestrator: Single-URL pipeline
        store: Content repository used for dedup and persistence
    """

    def __init__(
        self,
        orchestrator: PipelineOrchestrator,
        store: ContentRepository,
        thumbnail_generator: Optional[ThumbnailGenerator] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """
        Initialize coordinator.

        Args:
            orchestrator: Pipeline used for each item
            store: Repository for ContentRecords
            thumbnail_generator: Optional hook called for saved records without a thumbnail
            sleep: Awaitable pause, replaceable in tests
        """
        self.orchestrator = orchestrator
        self.store = store
        self._thumbnail_generator = thumbnail_generator
        self._sleep = sleep

    async def close(self) -> None:
        """Release the orchestrator's network resources."""
        await self.orchestrator.close()

    def _delay_seconds(self, config: RunConfig) -> float:
        jitter = random.uniform(0, config.delay_jitter_ms) if config.delay_jitter_ms else 0
        return (config.delay_ms + jitter) / 1000

    async def run(
        self,
        items: list[IngestionItem],
        config: Optional[RunConfig] = None,
    ) -> AsyncIterator[ProgressEvent]:
        """
        Process items in order, yielding progress events.

        Args:
            items: URLs with their categories
            config: Run options

        Yields:
            ProgressEvent, ending with exactly one ``complete`` event

        Raises:
            ConfigurationError: Before the first event, if the generative
                service has no credentials
        """
        config = config or RunConfig()
        self.orchestrator.ensure_ready()

        log = get_structured_logger("IngestionCoordinator", run_id=new_run_id())
        total = len(items)
        stats = RunStats()
        log.info("run_started", total=total, auto_publish=config.auto_publish, force=config.force)

        for index, item in enumerate(items):
            yield ProgressEvent(
                type="progress",
                index=index,
                total=total,
                url=item.url,
                message=f"Processing {index + 1}/{total}",
            )

            event = await self._ingest_one(index, total, item, config, log)
            if event.type == "success":
                stats.success += 1
            elif event.type == "skip":
                stats.skipped += 1
            else:
                stats.failed += 1
            yield event

            if config.max_items_to_collect and stats.success >= config.max_items_to_collect:
                log.info("max_items_reached", collected=stats.success)
                break

            if index < total - 1 and (config.delay_ms or config.delay_jitter_ms):
                await self._sleep(self._delay_seconds(config))

        log.info("run_complete", **stats.model_dump())
        yield ProgressEvent(
            type="complete",
            index=total,
            total=total,
            message=(
                f"Batch complete: {stats.success} saved, "
                f"{stats.failed} failed, {stats.skipped} skipped"
            ),
            stats=stats,
        )

    async def collect(
        self,
        items: list[IngestionItem],
        config: Optional[RunConfig] = None,
    ) -> RunStats:
        """Run a batch and return only its final stats."""
        stats = RunStats()
        async for event in self.run(items, config):
            if event.type == "complete" and event.stats:
                stats = event.stats
        return stats

    async def _ingest_one(
        self,
        index: int,
        total: int,
        item: IngestionItem,
        config: RunConfig,
        log: Any,
    ) -> ProgressEvent:
        url = item.url
        try:
            existing = await self.store.find_by_source_url(url)
            if existing is not None:
                if existing.status == ContentStatus.REJECTED or config.force:
                    log.info("replacing_existing", url=url, status=existing.status.value)
                    await self.store.delete(existing.id)
                else:
                    log.info("duplicate_skipped", url=url, status=existing.status.value)
                    return ProgressEvent(
                        type="skip",
                        index=index,
                        total=total,
                        url=url,
                        title=existing.title,
                        message=f"Already exists ({STATUS_LABELS[existing.status]})",
                        record_id=existing.id,
                    )

            result = await self.orchestrator.process(url, item.category, config.pipeline)
            status = decide_status(config.auto_publish, result.needs_review)

            try:
                record = await self.store.upsert(build_record_fields(result, status))
            except DuplicateSourceUrlError as e:
                log.info("duplicate_on_save", url=url, existing_id=e.existing_id)
                return ProgressEvent(
                    type="skip",
                    index=index,
                    total=total,
                    url=url,
                    title=result.rewritten.title_text,
                    message=f"Already exists ({e.existing_status})",
                    record_id=e.existing_id,
                )
        except Exception as e:
            log.warning("item_failed", url=url, error=str(e), error_type=type(e).__name__)
            return ProgressEvent(type="error", index=index, total=total, url=url, message=str(e))

        log.info(
            "item_saved",
            url=url,
            record_id=record.id,
            status=status.value,
            score=result.effective_score,
            retries=result.retry_count,
            cost_usd=result.ai_usage.cost_usd,
        )

        if not record.thumbnail_url and self._thumbnail_generator is not None:
            await self._generate_thumbnail(record, log)

        return ProgressEvent(
            type="success",
            index=index,
            total=total,
            url=url,
            title=record.title,
            message=f"Saved as {STATUS_LABELS[status]} (score {result.effective_score})",
            record_id=record.id,
        )

    async def _generate_thumbnail(self, record: ContentRecord, log: Any) -> None:
        try:
            await self._thumbnail_generator(record)
        except Exception as e:
            log.warning("thumbnail_failed", record_id=record.id, error=str(e))
