"""
Tests for the application / archive store.

Validates:
- Id assignment and uniqueness across both collections
- Lookup reports the owning collection
- Single and bulk updates touch only the matching records
- Archiving moves records and stamps archivedAt
- Extra answer keys survive a round trip through the store
"""
import asyncio
import json

import pytest

from conftest import make_application
from portal.models import ApplicationStatus, Priority
from portal.services.applications import (
    ApplicationNotFoundError,
    Location,
    append_application,
    archive_application,
    bulk_archive_applications,
    bulk_update_applications,
    find_application,
    generate_application_id,
    list_active,
    list_archived,
    update_application,
)


def test_generate_application_id_skips_taken_ids():
    first = generate_application_id([])
    bumped = generate_application_id([first, str(int(first) + 1)])

    assert first.isdigit()
    assert int(bumped) >= int(first) + 2


@pytest.mark.asyncio
async def test_append_assigns_id_and_defaults(store):
    application = await append_application(store, make_application(""))

    assert application.id
    active = await list_active(store)
    assert [a.id for a in active] == [application.id]
    assert active[0].status == ApplicationStatus.PENDING
    assert active[0].priority == Priority.NORMAL


@pytest.mark.asyncio
async def test_concurrent_appends_get_distinct_ids(store):
    results = await asyncio.gather(*(append_application(store, make_application("")) for _ in range(10)))

    ids = {a.id for a in results}
    assert len(ids) == 10
    assert len(await list_active(store)) == 10


@pytest.mark.asyncio
async def test_append_replaces_id_taken_by_archive(store):
    await store.archived_applications.write([make_application("42", status=ApplicationStatus.DENIED)])

    application = await append_application(store, make_application("42"))

    assert application.id != "42"


@pytest.mark.asyncio
async def test_extra_answers_round_trip(store):
    await append_application(store, make_application("1", characterName="Tony Vercetti", steamId="steam:1"))

    stored = json.loads((store.data_dir / "applications.json").read_text())
    assert stored[0]["characterName"] == "Tony Vercetti"
    assert stored[0]["applicationType"] == "whitelist"

    active = await list_active(store)
    assert active[0].model_extra["steamId"] == "steam:1"


@pytest.mark.asyncio
async def test_find_application_reports_location(store):
    await store.applications.write([make_application("a")])
    await store.archived_applications.write([make_application("b", status=ApplicationStatus.APPROVED)])

    _, active_location = await find_application(store, "a")
    _, archived_location = await find_application(store, "b")

    assert active_location == Location.ACTIVE
    assert archived_location == Location.ARCHIVED

    with pytest.raises(ApplicationNotFoundError):
        await find_application(store, "missing")


@pytest.mark.asyncio
async def test_update_application_in_archive(store):
    await store.archived_applications.write([make_application("b", status=ApplicationStatus.DENIED)])

    def assign(application):
        application.assigned_to = "900001"

    updated, location = await update_application(store, "b", assign)

    assert location == Location.ARCHIVED
    assert updated.assigned_to == "900001"
    archived = await list_archived(store)
    assert archived[0].assigned_to == "900001"


@pytest.mark.asyncio
async def test_update_missing_application_writes_nothing(store):
    with pytest.raises(ApplicationNotFoundError):
        await update_application(store, "missing", lambda a: None)

    assert not (store.data_dir / "applications.json").exists()


@pytest.mark.asyncio
async def test_update_restricted_to_active(store):
    await store.archived_applications.write([make_application("b", status=ApplicationStatus.DENIED)])

    with pytest.raises(ApplicationNotFoundError):
        await update_application(store, "b", lambda a: None, location=Location.ACTIVE)


@pytest.mark.asyncio
async def test_archive_application_moves_record(store):
    await store.applications.write([make_application("1"), make_application("2")])

    def deny(application):
        application.status = ApplicationStatus.DENIED

    archived = await archive_application(store, "1", deny)

    assert archived.status == ApplicationStatus.DENIED
    assert [a.id for a in await list_active(store)] == ["2"]
    assert [a.id for a in await list_archived(store)] == ["1"]


@pytest.mark.asyncio
async def test_archive_missing_application_leaves_collections_untouched(store):
    await store.applications.write([make_application("1")])

    with pytest.raises(ApplicationNotFoundError):
        await archive_application(store, "missing")

    assert [a.id for a in await list_active(store)] == ["1"]
    assert await list_archived(store) == []


@pytest.mark.asyncio
async def test_bulk_update_only_touches_selected(store):
    await store.applications.write([make_application(str(i)) for i in range(4)])

    def escalate(application):
        application.priority = Priority.URGENT

    updated = await bulk_update_applications(store, ["1", "3", "missing"], escalate)

    assert sorted(a.id for a in updated) == ["1", "3"]
    priorities = {a.id: a.priority for a in await list_active(store)}
    assert priorities == {"0": Priority.NORMAL, "1": Priority.URGENT, "2": Priority.NORMAL, "3": Priority.URGENT}


@pytest.mark.asyncio
async def test_bulk_archive_moves_and_stamps(store):
    await store.applications.write([make_application(str(i)) for i in range(5)])

    moved = await bulk_archive_applications(store, ["1", "3"])

    assert sorted(a.id for a in moved) == ["1", "3"]
    active = await list_active(store)
    archived = await list_archived(store)
    assert [a.id for a in active] == ["0", "2", "4"]
    assert sorted(a.id for a in archived) == ["1", "3"]
    assert all(a.archived_at is not None for a in archived)
    # Bulk archive is not a review
    assert all(a.status == ApplicationStatus.PENDING for a in archived)
