"""Content record storage with a unique live source URL per record.

Features:
- In-memory storage with optional JSON persistence
- Fast source_url index of live (non-rejected) records for dedup checks
- Status listing and bulk status updates for review workflows
- Safe concurrent access with asyncio locks
"""

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import ValidationError

from newsdesk.data_management.schemas.content_record import ContentRecord, ContentStatus
from newsdesk.errors import DuplicateSourceUrlError, PersistenceError


class ContentStore:
    """
    Storage adapter for content records.

    Uses in-memory storage with optional JSON file persistence. Implements
    the ContentRepository protocol.

    Data structure (persisted):
    {
        "records": [
            {"id": "...", "source_url": "...", "status": "pending", ...},
            ...
        ]
    }
    """

    def __init__(self, persistence_path: Optional[str] = None):
        """
        Initialize content store.

        Args:
            persistence_path: Optional path to JSON file for persistence.
                            If None, storage is memory-only.

        Raises:
            PersistenceError: If an existing persistence file cannot be read
        """
        self._records: Dict[str, ContentRecord] = {}
        self._url_index: Dict[str, str] = {}  # source_url -> live record id
        self._lock = asyncio.Lock()
        self.persistence_path = Path(persistence_path) if persistence_path else None
        self.logger = logger.bind(component="ContentStore")

        if self.persistence_path and self.persistence_path.exists():
            self._load_from_file()

        self.logger.debug(
            f"ContentStore initialized (persistence={self.persistence_path is not None})"
        )

    async def find_by_source_url(self, source_url: str) -> Optional[ContentRecord]:
        """
        Find the record for a source URL.

        Returns the live record when one exists, otherwise the most recent
        rejected one, otherwise None.
        """
        async with self._lock:
            live_id = self._url_index.get(source_url)
            if live_id:
                return self._records[live_id].model_copy()

            rejected = [r for r in self._records.values() if r.source_url == source_url]
            if not rejected:
                return None
            return max(rejected, key=lambda r: r.updated_at).model_copy()

    async def get(self, record_id: str) -> Optional[ContentRecord]:
        async with self._lock:
            record = self._records.get(record_id)
            return record.model_copy() if record else None

    async def delete(self, record_id: str) -> bool:
        """
        Delete a record.

        Returns:
            True if deleted, False if not found
        """
        async with self._lock:
            if record_id not in self._records:
                return False

            snapshot = self._snapshot()
            record = self._records.pop(record_id)
            if self._url_index.get(record.source_url) == record_id:
                del self._url_index[record.source_url]

            self._persist(snapshot)
            self.logger.info(f"Deleted record {record_id} ({record.source_url})")
            return True

    async def upsert(self, fields: Dict[str, Any]) -> ContentRecord:
        """
        Insert a new record or update an existing one.

        A record is updated when fields carries the id of a stored record;
        otherwise a new record is created.

        Args:
            fields: ContentRecord fields

        Returns:
            The stored record

        Raises:
            DuplicateSourceUrlError: If another live record has this source_url
            PersistenceError: If fields are invalid or the file cannot be written
        """
        async with self._lock:
            existing = self._records.get(fields.get("id", ""))
            now = datetime.now(timezone.utc)

            try:
                if existing:
                    data = {**existing.model_dump(), **fields, "updated_at": now}
                    record = ContentRecord.model_validate(data)
                else:
                    record = ContentRecord.model_validate(
                        {**fields, "created_at": now, "updated_at": now}
                    )
            except ValidationError as e:
                raise PersistenceError(f"Invalid content record: {e}") from e

            if record.is_live:
                holder_id = self._url_index.get(record.source_url)
                if holder_id and holder_id != record.id:
                    holder = self._records[holder_id]
                    raise DuplicateSourceUrlError(
                        record.source_url, holder.id, holder.status.value
                    )

            snapshot = self._snapshot()
            if existing and existing.source_url != record.source_url:
                if self._url_index.get(existing.source_url) == existing.id:
                    del self._url_index[existing.source_url]

            self._records[record.id] = record
            if record.is_live:
                self._url_index[record.source_url] = record.id
            elif self._url_index.get(record.source_url) == record.id:
                del self._url_index[record.source_url]

            self._persist(snapshot)
            self.logger.debug(
                f"{'Updated' if existing else 'Saved'} record {record.id} "
                f"({record.status.value}): {record.source_url}"
            )
            return record.model_copy()

    async def list_by_status(
        self, status: ContentStatus, limit: int = 100
    ) -> List[ContentRecord]:
        """
        List records with a status, newest first.

        Args:
            status: Status to filter on
            limit: Maximum number of records to return
        """
        async with self._lock:
            matching = sorted(
                [r for r in reversed(self._records.values()) if r.status == status],
                key=lambda r: r.created_at,
                reverse=True,
            )
            return [r.model_copy() for r in matching[:limit]]

    async def update_status(
        self,
        record_ids: List[str],
        status: ContentStatus,
        reason: Optional[str] = None,
    ) -> int:
        """
        Move records to a new status.

        Args:
            record_ids: Records to update (unknown ids are ignored)
            status: New status
            reason: Optional reason stored in fact_check_reason

        Returns:
            Number of records updated

        Raises:
            DuplicateSourceUrlError: If a record would become live while
                another live record holds its source_url. Nothing is updated.
            PersistenceError: If the file cannot be written
        """
        async with self._lock:
            targets = [self._records[i] for i in dict.fromkeys(record_ids) if i in self._records]

            if status != ContentStatus.REJECTED:
                claimed: Dict[str, str] = {}
                for record in targets:
                    holder_id = self._url_index.get(record.source_url) or claimed.get(
                        record.source_url
                    )
                    if holder_id and holder_id != record.id:
                        holder = self._records[holder_id]
                        raise DuplicateSourceUrlError(
                            record.source_url, holder.id, holder.status.value
                        )
                    claimed[record.source_url] = record.id

            now = datetime.now(timezone.utc)
            snapshot = self._snapshot()
            updated = 0

            for record in targets:
                record_id = record.id
                changes: Dict[str, Any] = {"status": status, "updated_at": now}
                if reason is not None:
                    changes["fact_check_reason"] = reason
                new_record = record.model_copy(update=changes)
                self._records[record_id] = new_record

                if not new_record.is_live and self._url_index.get(record.source_url) == record_id:
                    del self._url_index[record.source_url]
                elif new_record.is_live:
                    self._url_index[record.source_url] = record_id
                updated += 1

            if updated:
                self._persist(snapshot)
                self.logger.info(f"Moved {updated} record(s) to {status.value}")
            return updated

    async def count_by_status(self) -> Dict[str, int]:
        """Record counts keyed by status value."""
        async with self._lock:
            counts = {status.value: 0 for status in ContentStatus}
            for record in self._records.values():
                counts[record.status.value] += 1
            return counts

    def _snapshot(self) -> tuple:
        return dict(self._records), dict(self._url_index)

    def _persist(self, snapshot: tuple) -> None:
        """Save to file, restoring the in-memory maps from snapshot on failure."""
        if not self.persistence_path:
            return
        try:
            self._save_to_file()
        except PersistenceError:
            self._records, self._url_index = snapshot
            raise

    def _save_to_file(self) -> None:
        """Save current storage to JSON file (synchronous)."""
        try:
            self.persistence_path.parent.mkdir(parents=True, exist_ok=True)
            payload = {
                "records": [r.model_dump(mode="json") for r in self._records.values()]
            }
            with open(self.persistence_path, "w") as f:
                json.dump(payload, f, indent=2)
        except OSError as e:
            raise PersistenceError(f"Failed to persist to {self.persistence_path}: {e}") from e

        self.logger.debug(f"Persisted to {self.persistence_path}")

    def _load_from_file(self) -> None:
        """Load storage from JSON file (synchronous)."""
        try:
            with open(self.persistence_path, "r") as f:
                payload = json.load(f)
            records = [ContentRecord.model_validate(r) for r in payload.get("records", [])]
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Failed to load {self.persistence_path}: {e}") from e

        self._records = {r.id: r for r in records}
        self._url_index = {r.source_url: r.id for r in records if r.is_live}

        self.logger.info(f"Loaded {len(self._records)} records from {self.persistence_path}")
