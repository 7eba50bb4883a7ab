"""Single-URL pipeline, batch coordination and re-verification."""

from newsdesk.pipeline.coordinator import (
    IngestionCoordinator,
    IngestionItem,
    ProgressEvent,
    RunConfig,
    RunStats,
    decide_status,
)
from newsdesk.pipeline.orchestrator import PipelineOrchestrator, resolve_published_at
from newsdesk.pipeline.records import build_record_fields, build_rich_content, fact_check_reason
from newsdesk.pipeline.reverify import REVERIFY_REASON, RecordIssue, Reverifier, ReverifyReport
from newsdesk.pipeline.schemas import AttemptRecord, PipelineConfig, PipelineResult
from newsdesk.pipeline.tagging import derive_news_tags

__all__ = [
    "IngestionCoordinator",
    "IngestionItem",
    "ProgressEvent",
    "RunConfig",
    "RunStats",
    "decide_status",
    "PipelineOrchestrator",
    "resolve_published_at",
    "build_record_fields",
    "build_rich_content",
    "fact_check_reason",
    "REVERIFY_REASON",
    "RecordIssue",
    "Reverifier",
    "ReverifyReport",
    "AttemptRecord",
    "PipelineConfig",
    "PipelineResult",
    "derive_news_tags",
]
