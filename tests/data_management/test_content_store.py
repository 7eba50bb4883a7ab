"""Tests for ContentStore.

Tests cover:
1. Insert, get and update
2. Unique live source_url
3. Rejected records do not block re-ingestion
4. Status listing and bulk updates
5. Persistence (save/load cycle)
6. Failed saves leave the store unchanged
"""

import json

import pytest

from newsdesk.data_management import ContentRepository, ContentStore
from newsdesk.data_management.schemas import ContentRecord, ContentStatus
from newsdesk.errors import DuplicateSourceUrlError, PersistenceError

URL = "https://www.anthropic.com/news/claude-4"


def fields(url=URL, status=ContentStatus.PENDING, title="Claude 4", **extra):
    return {"source_url": url, "status": status, "title": title, "source_name": "Anthropic", **extra}


class TestContentStoreBasics:
    """Tests for basic insert and lookup."""

    @pytest.fixture
    def store(self):
        return ContentStore()

    def test_implements_repository(self, store):
        assert isinstance(store, ContentRepository)

    @pytest.mark.asyncio
    async def test_upsert_and_find(self, store):
        record = await store.upsert(fields())

        found = await store.find_by_source_url(URL)

        assert found.id == record.id
        assert found.status == ContentStatus.PENDING
        assert (await store.get(record.id)).title == "Claude 4"

    @pytest.mark.asyncio
    async def test_find_unknown_url(self, store):
        assert await store.find_by_source_url("https://example.com/none") is None

    @pytest.mark.asyncio
    async def test_upsert_with_id_updates(self, store):
        record = await store.upsert(fields())

        updated = await store.upsert({"id": record.id, "title": "Claude 4 (updated)"})

        assert updated.id == record.id
        assert updated.title == "Claude 4 (updated)"
        assert updated.updated_at >= record.updated_at

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self, store):
        record = await store.upsert(fields())
        record.title = "mutated"

        assert (await store.get(record.id)).title == "Claude 4"

    @pytest.mark.asyncio
    async def test_invalid_fields_raise_persistence_error(self, store):
        with pytest.raises(PersistenceError):
            await store.upsert({"source_url": URL})

    @pytest.mark.asyncio
    async def test_delete(self, store):
        record = await store.upsert(fields())

        assert await store.delete(record.id)
        assert not await store.delete(record.id)
        assert await store.find_by_source_url(URL) is None


class TestUniqueSourceUrl:
    """Tests for the unique live source_url constraint."""

    @pytest.fixture
    def store(self):
        return ContentStore()

    @pytest.mark.asyncio
    async def test_second_live_record_rejected(self, store):
        first = await store.upsert(fields())

        with pytest.raises(DuplicateSourceUrlError) as exc_info:
            await store.upsert(fields(title="Duplicate"))

        assert exc_info.value.existing_id == first.id
        assert exc_info.value.existing_status == "pending"

    @pytest.mark.asyncio
    async def test_rejected_record_does_not_block(self, store):
        rejected = await store.upsert(fields(status=ContentStatus.REJECTED))

        fresh = await store.upsert(fields(title="Second try"))

        assert fresh.id != rejected.id
        assert (await store.find_by_source_url(URL)).id == fresh.id

    @pytest.mark.asyncio
    async def test_find_returns_rejected_when_no_live(self, store):
        rejected = await store.upsert(fields(status=ContentStatus.REJECTED))

        found = await store.find_by_source_url(URL)

        assert found.id == rejected.id
        assert found.status == ContentStatus.REJECTED

    @pytest.mark.asyncio
    async def test_rejecting_frees_the_url(self, store):
        first = await store.upsert(fields())
        await store.update_status([first.id], ContentStatus.REJECTED)

        second = await store.upsert(fields(title="Again"))

        assert second.id != first.id

    @pytest.mark.asyncio
    async def test_reviving_rejected_record_blocked_by_live_holder(self, store):
        rejected = await store.upsert(fields(status=ContentStatus.REJECTED))
        live = await store.upsert(fields(title="Second try", status=ContentStatus.PUBLISHED))

        with pytest.raises(DuplicateSourceUrlError) as exc_info:
            await store.update_status([rejected.id], ContentStatus.NEEDS_REVIEW)

        assert exc_info.value.existing_id == live.id
        assert (await store.get(rejected.id)).status == ContentStatus.REJECTED
        assert (await store.find_by_source_url(URL)).id == live.id

    @pytest.mark.asyncio
    async def test_reviving_two_rejected_records_for_one_url(self, store):
        first = await store.upsert(fields(status=ContentStatus.REJECTED))
        second = await store.upsert(fields(title="Again", status=ContentStatus.REJECTED))

        with pytest.raises(DuplicateSourceUrlError):
            await store.update_status([first.id, second.id], ContentStatus.PENDING)

        counts = await store.count_by_status()
        assert counts["rejected"] == 2
        assert counts["pending"] == 0

    @pytest.mark.asyncio
    async def test_reviving_rejected_record_with_free_url(self, store):
        rejected = await store.upsert(fields(status=ContentStatus.REJECTED))

        assert await store.update_status([rejected.id], ContentStatus.NEEDS_REVIEW) == 1
        assert (await store.find_by_source_url(URL)).status == ContentStatus.NEEDS_REVIEW

        with pytest.raises(DuplicateSourceUrlError):
            await store.upsert(fields(title="Duplicate"))


class TestStatusQueries:
    """Tests for list_by_status, update_status and count_by_status."""

    @pytest.fixture
    def store(self):
        return ContentStore()

    @pytest.mark.asyncio
    async def test_list_by_status_newest_first(self, store):
        older = await store.upsert(fields(url="https://a.example/1", status=ContentStatus.PUBLISHED))
        newer = await store.upsert(fields(url="https://a.example/2", status=ContentStatus.PUBLISHED))
        await store.upsert(fields(url="https://a.example/3"))

        published = await store.list_by_status(ContentStatus.PUBLISHED)

        assert [r.id for r in published] == [newer.id, older.id]

    @pytest.mark.asyncio
    async def test_list_limit(self, store):
        for i in range(5):
            await store.upsert(fields(url=f"https://a.example/{i}"))

        assert len(await store.list_by_status(ContentStatus.PENDING, limit=2)) == 2

    @pytest.mark.asyncio
    async def test_update_status_with_reason(self, store):
        a = await store.upsert(fields(url="https://a.example/1", status=ContentStatus.PUBLISHED))
        b = await store.upsert(fields(url="https://a.example/2", status=ContentStatus.PUBLISHED))

        count = await store.update_status(
            [a.id, b.id, "missing"], ContentStatus.NEEDS_REVIEW, "check dates"
        )

        assert count == 2
        updated = await store.get(a.id)
        assert updated.status == ContentStatus.NEEDS_REVIEW
        assert updated.fact_check_reason == "check dates"

    @pytest.mark.asyncio
    async def test_count_by_status(self, store):
        await store.upsert(fields(url="https://a.example/1"))
        await store.upsert(fields(url="https://a.example/2", status=ContentStatus.PUBLISHED))

        counts = await store.count_by_status()

        assert counts["pending"] == 1
        assert counts["published"] == 1
        assert counts["rejected"] == 0


class TestPersistence:
    """Tests for JSON file persistence."""

    @pytest.mark.asyncio
    async def test_save_and_reload(self, tmp_path):
        path = tmp_path / "content.json"
        store = ContentStore(str(path))
        record = await store.upsert(fields(news_tags=["claude", "anthropic"]))

        reloaded = ContentStore(str(path))
        found = await reloaded.find_by_source_url(URL)

        assert found.id == record.id
        assert found.news_tags == ["claude", "anthropic"]

    @pytest.mark.asyncio
    async def test_reload_keeps_unique_constraint(self, tmp_path):
        path = tmp_path / "content.json"
        await ContentStore(str(path)).upsert(fields())

        reloaded = ContentStore(str(path))

        with pytest.raises(DuplicateSourceUrlError):
            await reloaded.upsert(fields())

    @pytest.mark.asyncio
    async def test_file_layout(self, tmp_path):
        path = tmp_path / "content.json"
        await ContentStore(str(path)).upsert(fields())

        payload = json.loads(path.read_text())

        assert len(payload["records"]) == 1
        assert payload["records"][0]["status"] == "pending"

    def test_corrupt_file_raises(self, tmp_path):
        path = tmp_path / "content.json"
        path.write_text("{not json")

        with pytest.raises(PersistenceError):
            ContentStore(str(path))

    def test_memory_only_by_default(self):
        assert ContentStore().persistence_path is None


class TestFailedSave:
    """A save that fails to reach the file leaves the store unchanged."""

    @pytest.fixture
    def store(self, tmp_path):
        return ContentStore(str(tmp_path / "content.json"))

    @pytest.fixture
    def failing_save(self, store, monkeypatch):
        def _fail():
            raise PersistenceError("disk full")

        def _enable():
            monkeypatch.setattr(store, "_save_to_file", _fail)

        return _enable

    @pytest.mark.asyncio
    async def test_upsert_leaves_no_record(self, store, failing_save):
        failing_save()

        with pytest.raises(PersistenceError):
            await store.upsert(fields())

        assert await store.find_by_source_url(URL) is None
        assert sum((await store.count_by_status()).values()) == 0

    @pytest.mark.asyncio
    async def test_url_is_free_after_failed_upsert(self, store, monkeypatch, failing_save):
        failing_save()
        with pytest.raises(PersistenceError):
            await store.upsert(fields())
        monkeypatch.undo()

        record = await store.upsert(fields())

        assert (await store.find_by_source_url(URL)).id == record.id

    @pytest.mark.asyncio
    async def test_update_keeps_previous_version(self, store, failing_save):
        record = await store.upsert(fields())
        failing_save()

        with pytest.raises(PersistenceError):
            await store.upsert({"id": record.id, "title": "Renamed"})

        assert (await store.get(record.id)).title == "Claude 4"

    @pytest.mark.asyncio
    async def test_delete_keeps_record(self, store, failing_save):
        record = await store.upsert(fields())
        failing_save()

        with pytest.raises(PersistenceError):
            await store.delete(record.id)

        assert (await store.get(record.id)) is not None
        assert (await store.find_by_source_url(URL)).id == record.id

    @pytest.mark.asyncio
    async def test_update_status_keeps_status(self, store, failing_save):
        record = await store.upsert(fields(status=ContentStatus.PUBLISHED))
        failing_save()

        with pytest.raises(PersistenceError):
            await store.update_status([record.id], ContentStatus.REJECTED, "gone")

        unchanged = await store.get(record.id)
        assert unchanged.status == ContentStatus.PUBLISHED
        assert unchanged.fact_check_reason is None
        with pytest.raises(DuplicateSourceUrlError):
            await store.upsert(fields(title="Duplicate"))


def test_record_is_live():
    record = ContentRecord(source_url=URL, title="t", source_name="s")

    assert record.is_live
    assert not record.model_copy(update={"status": ContentStatus.REJECTED}).is_live
