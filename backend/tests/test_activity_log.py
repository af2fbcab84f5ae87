"""
Tests for the activity audit log.
"""
import pytest

from portal.config import settings
from portal.models import ActivityType
from portal.services.activity_log import get_activity_logs, log_activity


@pytest.mark.asyncio
async def test_log_and_query_newest_first(store):
    await log_activity(store, ActivityType.USER_BANNED, "1", "mod", target_id="42")
    await log_activity(store, ActivityType.APPLICATION_CREATED, "2", "user", target_id="100")
    await log_activity(store, ActivityType.USER_UNBANNED, "1", "mod", target_id="42")

    logs = await get_activity_logs(store)

    assert [log.type for log in logs] == ["user_unbanned", "application_created", "user_banned"]


@pytest.mark.asyncio
async def test_filter_by_type_and_target(store):
    await log_activity(store, ActivityType.USER_BANNED, "1", "mod", target_id="42")
    await log_activity(store, ActivityType.APPLICATION_CREATED, "2", "user", target_id="100")

    by_type = await get_activity_logs(store, type="user_banned")
    by_target = await get_activity_logs(store, target_id="100")

    assert [log.target_id for log in by_type] == ["42"]
    assert [log.type for log in by_target] == ["application_created"]


@pytest.mark.asyncio
async def test_limit(store):
    for i in range(5):
        await log_activity(store, ActivityType.BULK_ACTION, "1", "mod", details={"n": i})

    logs = await get_activity_logs(store, limit=2)

    assert [log.details["n"] for log in logs] == [4, 3]


@pytest.mark.asyncio
async def test_trims_to_max_entries(store, monkeypatch):
    monkeypatch.setattr(settings, "activity_log_max_entries", 3)
    for i in range(5):
        await log_activity(store, ActivityType.BULK_ACTION, "1", "mod", details={"n": i})

    logs = await store.activity_log.read()

    assert [log.details["n"] for log in logs] == [2, 3, 4]


@pytest.mark.asyncio
async def test_write_failure_is_swallowed(store, monkeypatch):
    async def broken_write(records):
        raise OSError("disk full")

    monkeypatch.setattr(store.activity_log, "write", broken_write)

    entry = await log_activity(store, ActivityType.USER_BANNED, "1", "mod")

    assert entry is None
