"""
Discord REST client.

Resolves guild member roles and sends bot messages. Every call is bounded by
a timeout and degrades to a safe default (empty roles, "not sent") instead of
raising into request handlers.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import aiohttp

from portal.config import settings
from portal.services.cache import TTLCache

logger = logging.getLogger(__name__)

APPROVED_COLOR = 0x10B981
DENIED_COLOR = 0xEF4444


class DiscordAPIError(Exception):
    """Raised for non-2xx responses from the Discord API"""

    def __init__(self, status: int, message: str):
        super().__init__(f"Discord API returned {status}: {message}")
        self.status = status


class DiscordClient:
    """Bot-token client for the handful of Discord endpoints the portal needs."""

    def __init__(
        self,
        token: str = settings.discord_bot_token,
        guild_id: str = settings.discord_guild_id,
        api_base: str = settings.discord_api_base,
        timeout_s: float = settings.discord_timeout_seconds,
        role_cache_ttl_s: float = settings.role_cache_ttl_seconds,
    ):
        self.token = token
        self.guild_id = guild_id
        self.api_base = api_base.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_s)
        self.roles_cache: TTLCache[List[str]] = TTLCache(role_cache_ttl_s)
        self.role_names_cache: TTLCache[Dict[str, str]] = TTLCache(role_cache_ttl_s)
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def configured(self) -> bool:
        return bool(self.token and self.guild_id)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={
                    "Authorization": f"Bot {self.token}",
                    "User-Agent": "WhitelistPortal/1.0",
                },
                timeout=self.timeout,
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> Any:
        session = self._get_session()
        async with session.request(method, f"{self.api_base}{path}", json=json) as resp:
            if resp.status >= 300:
                body = await resp.text(errors="ignore")
                raise DiscordAPIError(resp.status, body[:200])
            if resp.status == 204:
                return None
            return await resp.json()

    async def _guild_role_names(self) -> Dict[str, str]:
        cached = self.role_names_cache.get(self.guild_id)
        if cached is not None:
            return cached
        roles = await self._request("GET", f"/guilds/{self.guild_id}/roles")
        names = {role["id"]: role["name"] for role in roles}
        self.role_names_cache.set(self.guild_id, names)
        return names

    async def get_user_roles(self, user_id: str) -> List[str]:
        """
        Names of the guild roles held by `user_id`.

        On lookup failure returns the last known (possibly expired) roles,
        or an empty list.
        """
        cached = self.roles_cache.get(user_id)
        if cached is not None:
            return cached

        if not self.configured:
            logger.debug("Discord bot not configured, returning empty roles")
            return []

        try:
            member = await self._request("GET", f"/guilds/{self.guild_id}/members/{user_id}")
            names = await self._guild_role_names()
            roles = [names[role_id] for role_id in member.get("roles", []) if role_id in names]
        except (aiohttp.ClientError, asyncio.TimeoutError, DiscordAPIError) as e:
            logger.error(f"Error fetching member roles for {user_id}: {e}")
            return self.roles_cache.get(user_id, allow_stale=True) or []

        self.roles_cache.set(user_id, roles)
        return roles

    def _status_embed(self, status: str, reason: Optional[str]) -> dict:
        approved = status == "approved"
        embed = {
            "title": f"Application {'Approved' if approved else 'Denied'}",
            "description": (
                f"Your application to {settings.server_name} has been approved. Welcome aboard!"
                if approved
                else f"Your application to {settings.server_name} has been denied."
            ),
            "color": APPROVED_COLOR if approved else DENIED_COLOR,
            "fields": [],
            "footer": {"text": settings.server_name},
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if reason:
            embed["fields"].append({"name": "Reviewer Notes", "value": reason[:1024], "inline": False})
        if approved:
            embed["fields"].append({
                "name": "Important Information",
                "value": "Please make sure to read our server rules and guidelines before connecting. "
                         "If you have any questions, our staff team is here to help!",
            })
        return embed

    async def send_direct_message(self, user_id: str, status: str, reason: Optional[str] = None) -> bool:
        """DM the applicant their review outcome. Returns whether delivery succeeded."""
        if not self.token:
            logger.info(f"Discord bot not configured, DM to {user_id} not sent")
            return False

        try:
            channel = await self._request("POST", "/users/@me/channels", json={"recipient_id": user_id})
            await self._request(
                "POST",
                f"/channels/{channel['id']}/messages",
                json={"embeds": [self._status_embed(status, reason)]},
            )
        except DiscordAPIError as e:
            if e.status == 403:
                logger.error(f"Cannot send DM to user {user_id}: DMs disabled or bot blocked")
            elif e.status == 404:
                logger.error(f"Cannot send DM to user {user_id}: user not found")
            else:
                logger.error(f"Failed to send Discord message to user {user_id}: {e}")
            return False
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Failed to send Discord message to user {user_id}: {e!r}")
            return False

        logger.info(f"Discord message sent successfully to user {user_id}")
        return True

    async def send_channel_message(self, content: str, channel_id: Optional[str] = None) -> bool:
        """Post plain text to the staff notification channel."""
        channel_id = channel_id or settings.discord_notification_channel_id
        if not self.token or not channel_id:
            logger.debug("No notification channel configured, skipping channel message")
            return False

        try:
            await self._request("POST", f"/channels/{channel_id}/messages", json={"content": content})
        except (aiohttp.ClientError, asyncio.TimeoutError, DiscordAPIError) as e:
            logger.error(f"Failed to send channel message: {e!r}")
            return False
        return True


discord_client = DiscordClient()


def get_discord_client() -> DiscordClient:
    """Dependency that provides the Discord collaborator."""
    return discord_client
