"""Persistence interface consumed by the ingestion coordinator and re-verifier."""

from typing import Any, Optional, Protocol, runtime_checkable

from newsdesk.data_management.schemas.content_record import ContentRecord, ContentStatus


@runtime_checkable
class ContentRepository(Protocol):
    """Storage for content records.

    Implementations must keep at most one live (non-rejected) record per
    source_url and raise DuplicateSourceUrlError from upsert otherwise.
    """

    async def find_by_source_url(self, source_url: str) -> Optional[ContentRecord]:
        ...

    async def get(self, record_id: str) -> Optional[ContentRecord]:
        ...

    async def delete(self, record_id: str) -> bool:
        ...

    async def upsert(self, fields: dict[str, Any]) -> ContentRecord:
        ...

    async def list_by_status(
        self, status: ContentStatus, limit: int = 100
    ) -> list[ContentRecord]:
        ...

    async def update_status(
        self,
        record_ids: list[str],
        status: ContentStatus,
        reason: Optional[str] = None,
    ) -> int:
        ...
