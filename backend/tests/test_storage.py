"""
Tests for JSON collection storage.
"""
import asyncio
import json

import pytest

from conftest import make_application
from portal.models import Application
from portal.storage import CollectionStore, JsonCollection, StorageError, seed_data_files


@pytest.mark.asyncio
async def test_missing_file_reads_empty(store):
    assert await store.applications.read() == []


@pytest.mark.asyncio
async def test_corrupt_file_reads_empty_when_fail_open(tmp_path):
    path = tmp_path / "applications.json"
    path.write_text("{not json")
    collection = JsonCollection(path, Application, fail_open=True)

    assert await collection.read() == []


@pytest.mark.asyncio
async def test_corrupt_file_raises_when_fail_closed(tmp_path):
    path = tmp_path / "applications.json"
    path.write_text("{not json")
    collection = JsonCollection(path, Application, fail_open=False)

    with pytest.raises(StorageError):
        await collection.read()


@pytest.mark.asyncio
async def test_write_is_pretty_printed_camel_case(store):
    await store.applications.write([make_application("1", status="denied", updated_at=None)])

    raw = (store.data_dir / "applications.json").read_text()
    documents = json.loads(raw)
    assert raw.startswith("[\n  {")
    assert documents[0]["applicationType"] == "whitelist"
    assert "updatedAt" not in documents[0]
    assert not (store.data_dir / "applications.json.tmp").exists()


@pytest.mark.asyncio
async def test_legacy_record_defaults(tmp_path):
    path = tmp_path / "archived_applications.json"
    path.write_text(json.dumps([{
        "id": "1",
        "timestamp": "2023-05-01T10:00:00",
        "discord": {"id": "1", "username": "old"},
        "status": "",
        "age": "21",
    }]))
    collection = JsonCollection(path, Application)

    [record] = await collection.read()

    assert record.application_type == "whitelist"
    assert record.status == "pending"
    assert record.timestamp.tzinfo is not None
    assert record.model_extra["age"] == "21"


@pytest.mark.asyncio
async def test_transaction_does_not_write_when_body_raises(store):
    await store.applications.write([make_application("1")])

    with pytest.raises(RuntimeError):
        async with store.applications.transaction() as records:
            records.clear()
            raise RuntimeError("abort")

    assert [a.id for a in await store.applications.read()] == ["1"]


@pytest.mark.asyncio
async def test_transactions_are_serialized(store):
    async def add(i):
        async with store.applications.transaction() as records:
            await asyncio.sleep(0)
            records.append(make_application(str(i)))

    await asyncio.gather(*(add(i) for i in range(20)))

    assert len(await store.applications.read()) == 20


@pytest.mark.asyncio
async def test_seed_creates_missing_files_only(tmp_path):
    target = CollectionStore(tmp_path / "data")
    (tmp_path / "data").mkdir()
    (tmp_path / "data" / "bans.json").write_text('[{"discordId": "1", "reason": "x", "admin": "y"}]')

    created = await seed_data_files(target)

    assert "bans.json" not in created
    assert "application-types.json" in created
    assert {"application_drafts.json", "application_scores.json"} <= set(created)
    assert len(await target.bans.read()) == 1
    [staff] = await target.application_types.read()
    assert staff.name == "Staff Application"
    assert staff.cooldown_days == 14
    assert staff.unique_approved is True

    assert await seed_data_files(target) == []
