"""
Tests for bans and the blacklist.
"""
import json
import re

import pytest

from portal.services.moderation import (
    ModerationEntryExistsError,
    ModerationEntryNotFoundError,
    add_ban,
    add_blacklist,
    is_banned,
    is_blacklisted,
    list_bans,
    remove_ban,
    remove_blacklist,
)


@pytest.mark.asyncio
async def test_ban_and_unban(store):
    await add_ban(store, "42", "Cheating", "founder", expires="2030-01-01")

    assert await is_banned(store, "42")
    assert (await list_bans(store))[0].expires == "2030-01-01"

    await remove_ban(store, "42")
    assert not await is_banned(store, "42")


@pytest.mark.asyncio
async def test_duplicate_ban_rejected(store):
    await add_ban(store, "42", "Cheating", "founder")

    with pytest.raises(ModerationEntryExistsError):
        await add_ban(store, "42", "Again", "founder")


@pytest.mark.asyncio
async def test_blacklist_is_dated(store):
    entry = await add_blacklist(store, "42", "Toxic", "founder")

    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}", entry.date)
    assert await is_blacklisted(store, "42")
    assert not await is_banned(store, "42")


@pytest.mark.asyncio
async def test_remove_missing_entries(store):
    with pytest.raises(ModerationEntryNotFoundError):
        await remove_ban(store, "42")
    with pytest.raises(ModerationEntryNotFoundError):
        await remove_blacklist(store, "42")


@pytest.mark.asyncio
async def test_hand_edited_entries_match_on_discord_id(store):
    store.data_dir.mkdir(parents=True, exist_ok=True)
    (store.data_dir / "bans.json").write_text(json.dumps([{"discordId": "42"}]))
    (store.data_dir / "blacklist.json").write_text(json.dumps([{"discordId": "43", "reason": "Toxic"}]))

    assert await is_banned(store, "42")
    assert await is_blacklisted(store, "43")
    [ban] = await list_bans(store)
    assert ban.reason is None
    assert ban.admin is None
