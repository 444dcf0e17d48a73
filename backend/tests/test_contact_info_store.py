"""
Portfolio Backend — Contact Info Store Tests
==============================================

What:  ContactInfoStore against a real (SQLite) database.
How:   Fresh database per test (see conftest.db_engine), deterministic clock,
       unittest.mock for conflict and failure injection.

What we test:
    ✅ First write is CREATE, every later write UPDATE
    ✅ History newest first; head snapshot matches get_current()
    ✅ Partial payloads preserve omitted fields
    ✅ Identical payloads: identical data, distinct timestamps
    ✅ Rejected writes change nothing
    ✅ Concurrent first writes: one CREATE, one UPDATE
    ✅ Conflict retries, reset, empty sentinel, database failures
"""

import asyncio
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from portfolio.exceptions import (
    ConflictError,
    DatabaseError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from portfolio.schemas.contact_info import ContactInfo, ContactInfoUpdate, HistoryAction
from portfolio.services.contact_info_store import ContactInfoStore
from portfolio.services.history_log import HistoryLog


def _update(**fields) -> ContactInfoUpdate:
    return ContactInfoUpdate.model_validate(fields)


class TestGetCurrent:

    @pytest.mark.asyncio
    async def test_empty_store_returns_sentinel(self, store):
        current = await store.get_current()
        assert current == ContactInfo.empty()
        assert current.is_set is False
        assert current.updated_at is None
        assert current.updated_by is None

    @pytest.mark.asyncio
    async def test_database_failure_raises_database_error(self):
        failing_factory = MagicMock(side_effect=OperationalError("SELECT", {}, Exception("db down")))
        broken = ContactInfoStore(failing_factory, HistoryLog(failing_factory))
        with pytest.raises(DatabaseError):
            await broken.get_current()


class TestUpsertScenarios:

    @pytest.mark.asyncio
    async def test_first_write_creates(self, store, editor):
        result = await store.upsert(_update(email="a@x.com", availability="available"), editor)

        assert result.action is HistoryAction.CREATE
        assert result.action.past_tense == "created"
        current = await store.get_current()
        assert current.email == "a@x.com"
        assert current.updated_by == "editor-1"

        history = await store.history.list().all()
        assert len(history) == 1
        assert history[0].action is HistoryAction.CREATE
        assert history[0].actor == "editor-1"

    @pytest.mark.asyncio
    async def test_second_write_updates_and_preserves(self, store, editor):
        await store.upsert(_update(email="a@x.com", availability="available"), editor)
        result = await store.upsert(_update(phone="+1-555-0000"), editor)

        assert result.action is HistoryAction.UPDATE
        current = await store.get_current()
        assert current.email == "a@x.com"
        assert current.phone == "+1-555-0000"
        assert current.availability == "available"

        history = await store.history.list().all()
        assert len(history) == 2
        assert history[0].action is HistoryAction.UPDATE

    @pytest.mark.asyncio
    async def test_n_writes_one_create(self, store, editor):
        for i in range(5):
            await store.upsert(_update(responseTime=f"{i} days"), editor)

        history = await store.history.list().all()
        actions = [entry.action for entry in history]
        assert actions.count(HistoryAction.CREATE) == 1
        assert actions[-1] is HistoryAction.CREATE
        assert actions[:-1] == [HistoryAction.UPDATE] * 4

    @pytest.mark.asyncio
    async def test_history_head_matches_current(self, store, editor):
        await store.upsert(_update(email="a@x.com"), editor)
        await store.upsert(_update(address={"city": "Lisbon"}), editor)
        await store.upsert(_update(socialLinks={"github": "https://github.com/a"}), editor)

        history = await store.history.list().all()
        current = await store.get_current()
        assert len(history) == 3
        assert history[0].data == current.content()
        assert [entry.snapshot_at for entry in history] == sorted(
            (entry.snapshot_at for entry in history), reverse=True
        )

    @pytest.mark.asyncio
    async def test_identical_payload_twice(self, store, editor):
        payload = _update(email="a@x.com", phone="+1 555 0100")
        first = await store.upsert(payload, editor)
        second = await store.upsert(payload, editor)

        assert second.action is HistoryAction.UPDATE
        newest, oldest = await store.history.list().all()
        assert newest.data == oldest.data
        assert newest.snapshot_at != oldest.snapshot_at
        assert second.timestamp > first.timestamp

    @pytest.mark.asyncio
    async def test_explicit_empty_string_overwrites(self, store, editor):
        await store.upsert(_update(email="a@x.com", phone="+1 555 0100"), editor)
        await store.upsert(_update(phone=""), editor)

        current = await store.get_current()
        assert current.phone == ""
        assert current.email == "a@x.com"

    @pytest.mark.asyncio
    async def test_admin_may_write_without_explicit_capability(self, store, admin):
        result = await store.upsert(_update(email="a@x.com"), admin)
        assert result.action is HistoryAction.CREATE

    @pytest.mark.asyncio
    async def test_snapshot_time_never_goes_backwards(self, session_factory, editor):
        times = iter(
            [
                datetime(2026, 1, 1, 12, 0, 5, tzinfo=timezone.utc),
                datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
            ]
        )
        skewed = ContactInfoStore(
            session_factory, HistoryLog(session_factory), clock=lambda: next(times)
        )
        first = await skewed.upsert(_update(email="a@x.com"), editor)
        second = await skewed.upsert(_update(email="b@x.com"), editor)

        assert second.timestamp == first.timestamp
        newest = (await skewed.history.list(limit=1).all())[0]
        assert newest.data.email == "b@x.com"


class TestRejectedWrites:

    @pytest.mark.asyncio
    async def test_malformed_email_changes_nothing(self, store, editor):
        await store.upsert(_update(email="a@x.com"), editor)
        before = await store.get_current()

        with pytest.raises(ValidationError):
            await store.upsert(_update(email="not-an-email", phone="+1 555"), editor)

        assert await store.get_current() == before
        assert len(await store.history.list().all()) == 1

    @pytest.mark.asyncio
    async def test_missing_capability_changes_nothing(self, store, viewer):
        with pytest.raises(PermissionDeniedError) as exc_info:
            await store.upsert(_update(email="a@x.com"), viewer)

        assert exc_info.value.capability == "canEditProfile"
        assert (await store.get_current()).is_set is False
        assert await store.history.count() == 0

    @pytest.mark.asyncio
    async def test_failure_inside_transaction_rolls_back(self, store, editor):
        await store.upsert(_update(email="a@x.com"), editor)

        with patch.object(
            store.history, "append", side_effect=OperationalError("INSERT", {}, Exception("disk full"))
        ):
            with pytest.raises(DatabaseError):
                await store.upsert(_update(email="b@x.com"), editor)

        assert (await store.get_current()).email == "a@x.com"
        assert await store.history.count() == 1


class TestConcurrency:

    @pytest.mark.asyncio
    async def test_concurrent_first_writes_yield_one_create(self, store, editor, admin):
        results = await asyncio.gather(
            store.upsert(_update(email="a@x.com"), editor),
            store.upsert(_update(phone="+1 555 0100"), admin),
        )

        assert sorted(r.action.value for r in results) == ["CREATE", "UPDATE"]
        history = await store.history.list().all()
        assert [entry.action for entry in history] == [HistoryAction.UPDATE, HistoryAction.CREATE]

        current = await store.get_current()
        assert current.email == "a@x.com"
        assert current.phone == "+1 555 0100"

    @pytest.mark.asyncio
    async def test_readers_never_see_record_without_its_snapshot(self, store, editor, admin):
        """Readers interleaved with writers always find the current record in the log."""
        observations = []

        async def reader():
            for _ in range(5):
                current = await store.get_current()
                history = await store.history.list().all()
                observations.append((current, history))
                await asyncio.sleep(0)

        async def head_reader():
            for _ in range(5):
                head = await store.history.list(limit=1).all()
                current = await store.get_current()
                if head:
                    assert current.is_set
                    assert current.updated_at >= head[0].snapshot_at
                await asyncio.sleep(0)

        writers = [
            store.upsert(_update(email=f"user{i}@x.com", timezone=f"UTC+{i}"), editor if i % 2 else admin)
            for i in range(6)
        ]
        await asyncio.gather(*writers, reader(), reader(), head_reader())

        assert observations
        for current, history in observations:
            if not current.is_set:
                continue
            matching = [entry for entry in history if entry.snapshot_at == current.updated_at]
            assert len(matching) == 1
            assert matching[0].data == current.content()
            assert matching[0].actor == current.updated_by

        current = await store.get_current()
        newest = (await store.history.list(limit=1).all())[0]
        assert newest.data == current.content()
        assert await store.history.count() == 6

    @pytest.mark.asyncio
    async def test_conflict_is_retried(self, store, editor):
        real_apply = store._apply
        attempts = []

        async def flaky_apply(*args):
            attempts.append(1)
            if len(attempts) == 1:
                raise ConflictError()
            return await real_apply(*args)

        with patch.object(store, "_apply", new=flaky_apply):
            result = await store.upsert(_update(email="a@x.com"), editor)

        assert len(attempts) == 2
        assert result.action is HistoryAction.CREATE
        assert await store.history.count() == 1

    @pytest.mark.asyncio
    async def test_conflict_surfaces_after_retry_budget(self, store, editor):
        attempts = []

        async def always_conflict(*args):
            attempts.append(1)
            raise ConflictError()

        with patch.object(store, "_apply", new=always_conflict):
            with pytest.raises(ConflictError):
                await store.upsert(_update(email="a@x.com"), editor)

        assert len(attempts) == 3
        assert await store.history.count() == 0


class TestReset:

    @pytest.mark.asyncio
    async def test_reset_writes_neutral_values_as_update(self, store, editor, admin):
        await store.upsert(
            _update(email="a@x.com", availability="busy", socialLinks={"github": "https://github.com/a"}),
            editor,
        )
        result = await store.reset(admin)

        assert result.action is HistoryAction.UPDATE
        current = await store.get_current()
        assert current.email == ""
        assert current.availability == "available"
        assert current.social_links == {}
        assert current.updated_by == "admin-1"
        assert await store.history.count() == 2

    @pytest.mark.asyncio
    async def test_reset_of_unset_record_is_not_found(self, store, admin):
        with pytest.raises(NotFoundError):
            await store.reset(admin)
        assert await store.history.count() == 0

    @pytest.mark.asyncio
    async def test_reset_requires_admin(self, store, editor):
        await store.upsert(_update(email="a@x.com"), editor)
        with pytest.raises(PermissionDeniedError):
            await store.reset(editor)
        assert (await store.get_current()).email == "a@x.com"
