"""
Tests for the admin surfaces: application types, bans/blacklist,
activity log and the notification feed.
"""
import pytest

from conftest import ADMIN, APPLICANT, days_ago, make_application
from portal.models import ApplicationType
from portal.services.activity_log import get_activity_logs, log_activity
from portal.services.moderation import is_banned, is_blacklisted
from portal.services.notifications import push_notification


# =============================================================================
# Application types
# =============================================================================

@pytest.mark.asyncio
async def test_list_types_is_public(async_client, store):
    await store.application_types.write([ApplicationType(id="staff", name="Staff", cooldown_days=14)])

    response = await async_client.get("/api/admin/application-types")

    assert response.status_code == 200
    assert response.json()[0]["cooldownDays"] == 14


@pytest.mark.asyncio
async def test_type_crud(admin_client, store):
    created = await admin_client.post(
        "/api/admin/application-types",
        json={
            "id": "gang",
            "name": "Gang Application",
            "cooldownDays": 7,
            "requireUniqueApproval": True,
            "fields": [{"id": "1", "label": "Gang Name", "type": "text", "required": True}],
        },
    )
    duplicate = await admin_client.post(
        "/api/admin/application-types", json={"id": "gang", "name": "Again"}
    )
    updated = await admin_client.put(
        "/api/admin/application-types", json={"id": "gang", "cooldownDays": 30}
    )
    deleted = await admin_client.delete("/api/admin/application-types", params={"id": "gang"})
    missing = await admin_client.delete("/api/admin/application-types", params={"id": "gang"})

    assert created.status_code == 201
    assert created.json()["uniqueApproved"] is True
    assert duplicate.status_code == 409
    assert updated.status_code == 200
    assert updated.json()["cooldownDays"] == 30
    assert updated.json()["uniqueApproved"] is True
    assert deleted.status_code == 200
    assert missing.status_code == 404
    assert [log.type for log in await get_activity_logs(store)] == [
        "application_type_deleted", "application_type_updated", "application_type_created",
    ]


@pytest.mark.asyncio
async def test_null_for_required_type_field_rejected(client, admin_client, store):
    await store.application_types.write([ApplicationType(id="whitelist", name="Whitelist", cooldown_days=14)])

    response = await admin_client.put("/api/admin/application-types", json={"id": "whitelist", "name": None})

    assert response.status_code == 422
    [stored] = await store.application_types.read()
    assert stored.name == "Whitelist"
    assert (await admin_client.get("/api/admin/application-types")).status_code == 200
    assert (await client.get("/api/applications/reapply", params={"type": "whitelist"})).status_code == 200
    assert await get_activity_logs(store) == []


@pytest.mark.asyncio
async def test_type_changes_require_admin(reviewer_client):
    response = await reviewer_client.post("/api/admin/application-types", json={"id": "x", "name": "X"})

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_deleting_type_keeps_applications(admin_client, store):
    await store.application_types.write([ApplicationType(id="gang", name="Gang")])
    await store.applications.write([make_application("1", application_type="gang")])

    await admin_client.delete("/api/admin/application-types", params={"id": "gang"})

    [application] = await store.applications.read()
    assert application.application_type == "gang"


# =============================================================================
# Bans and blacklist
# =============================================================================

@pytest.mark.asyncio
async def test_ban_and_unban_user(admin_client, store):
    banned = await admin_client.post(
        "/api/admin/users",
        json={"action": "ban", "discordId": APPLICANT.id, "reason": "Cheating", "admin": ADMIN.username},
    )
    again = await admin_client.post(
        "/api/admin/users",
        json={"action": "ban", "discordId": APPLICANT.id, "reason": "Cheating", "admin": ADMIN.username},
    )
    lists = await admin_client.get("/api/admin/users")

    assert banned.status_code == 201
    assert banned.json()["entry"]["discordId"] == APPLICANT.id
    assert again.status_code == 409
    assert [b["discordId"] for b in lists.json()["bans"]] == [APPLICANT.id]
    assert await is_banned(store, APPLICANT.id)

    lifted = await admin_client.request(
        "DELETE", "/api/admin/users", json={"action": "unban", "discordId": APPLICANT.id}
    )
    missing = await admin_client.request(
        "DELETE", "/api/admin/users", json={"action": "unban", "discordId": APPLICANT.id}
    )

    assert lifted.status_code == 200
    assert missing.status_code == 404
    assert not await is_banned(store, APPLICANT.id)
    assert [log.type for log in await get_activity_logs(store)] == ["user_unbanned", "user_banned"]


@pytest.mark.asyncio
async def test_blacklist_user(admin_client, store):
    response = await admin_client.post(
        "/api/admin/users",
        json={"action": "blacklist", "discordId": APPLICANT.id, "reason": "Toxic", "admin": ADMIN.username},
    )

    assert response.status_code == 201
    assert await is_blacklisted(store, APPLICANT.id)


@pytest.mark.asyncio
async def test_moderation_requires_permission(reviewer_client):
    assert (await reviewer_client.get("/api/admin/users")).status_code == 403


@pytest.mark.asyncio
async def test_moderation_rejects_unknown_action(admin_client):
    response = await admin_client.post(
        "/api/admin/users",
        json={"action": "kick", "discordId": APPLICANT.id, "reason": "x", "admin": "y"},
    )

    assert response.status_code == 422


# =============================================================================
# Activity log
# =============================================================================

@pytest.mark.asyncio
async def test_activity_log_endpoint(admin_client, reviewer_client, store):
    await log_activity(store, "user_banned", ADMIN.id, ADMIN.username, target_id="42")
    await log_activity(store, "application_created", APPLICANT.id, APPLICANT.username, target_id="100")

    everything = await admin_client.get("/api/activity-log")
    by_target = await admin_client.get("/api/activity-log", params={"targetId": "42"})
    limited = await admin_client.get("/api/activity-log", params={"limit": 1})

    assert [e["type"] for e in everything.json()] == ["application_created", "user_banned"]
    assert [e["userName"] for e in by_target.json()] == [ADMIN.username]
    assert len(limited.json()) == 1
    assert (await reviewer_client.get("/api/activity-log")).status_code == 403


# =============================================================================
# Notifications
# =============================================================================

@pytest.mark.asyncio
async def test_notification_feed(reviewer_client, client, store):
    first = await push_notification(store, "system", "Hello", "one")
    await push_notification(store, "system", "Again", "two")

    count = await reviewer_client.get("/api/notifications/count")
    marked = await reviewer_client.post(f"/api/notifications/{first.id}/read")
    unread = await reviewer_client.get("/api/notifications", params={"unreadOnly": "true"})
    all_read = await reviewer_client.post("/api/notifications/mark-all-read")
    missing = await reviewer_client.post("/api/notifications/nope/read")

    assert count.json() == {"unread": 2}
    assert marked.json()["read"] is True
    assert [n["title"] for n in unread.json()] == ["Again"]
    assert all_read.json() == {"success": True, "count": 1}
    assert missing.status_code == 404
    assert (await client.get("/api/notifications")).status_code == 403


@pytest.mark.asyncio
async def test_applicant_sees_review_outcome(client, reviewer_client, store):
    await store.applications.write([make_application("100")])

    await reviewer_client.patch("/api/applications/100", json={"status": "denied", "reason": "Too short"})
    mine = await client.get("/api/notifications/user")
    staff_feed = await reviewer_client.get("/api/notifications")

    assert mine.status_code == 200
    [notice] = mine.json()
    assert notice["title"] == "Application Denied"
    assert notice["isUserNotification"] is True
    assert notice["applicationId"] == "100"
    assert all(not n["isUserNotification"] for n in staff_feed.json())
    assert (await reviewer_client.get("/api/notifications/user")).json() == []


@pytest.mark.asyncio
async def test_stale_sweep_endpoint(client, reviewer_client, store):
    await store.applications.write([
        make_application("old", timestamp=days_ago(9)),
        make_application("new", timestamp=days_ago(1)),
    ])

    response = await reviewer_client.get("/api/notifications/stale")

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 1
    assert data["stale"][0]["id"] == "old"
    assert data["stale"][0]["daysOld"] == 9
    assert (await client.get("/api/notifications/stale")).status_code == 403
