"""
Session endpoints and authentication dependencies.

Discord OAuth itself happens in the trusted frontend layer. After a
successful login it registers the Discord identity here (authenticated by
the shared session secret) and the browser receives an httpOnly cookie.

Security features:
- Sessions expire after SESSION_TTL_MINUTES
- Staff access is resolved from live Discord roles on every request
- Role lookup failures deny access rather than erroring
"""
import hmac
import logging
import secrets
from typing import List, Optional

from fastapi import APIRouter, Cookie, Depends, Header, HTTPException, Response

from portal.config import settings
from portal.models import DiscordIdentity
from portal.schemas.auth import MeResponse, SessionResponse
from portal.services import permissions
from portal.services.cache import TTLCache
from portal.services.discord import DiscordClient, get_discord_client

logger = logging.getLogger(__name__)
router = APIRouter()

COOKIE_NAME = "auth_token"


class SessionStore:
    """Token -> DiscordIdentity with time-based expiry."""

    def __init__(self, ttl_minutes: int = settings.session_ttl_minutes):
        self._sessions: TTLCache[DiscordIdentity] = TTLCache(ttl_minutes * 60)

    def create(self, identity: DiscordIdentity) -> str:
        token = secrets.token_urlsafe(32)
        self._sessions.set(token, identity)
        return token

    def resolve(self, token: str) -> Optional[DiscordIdentity]:
        return self._sessions.get(token)

    def revoke(self, token: str) -> None:
        self._sessions.pop(token)


session_store = SessionStore()


def get_session_store() -> SessionStore:
    return session_store


def secret_matches(candidate: Optional[str]) -> bool:
    """Constant-time comparison against the shared session secret."""
    if not candidate:
        return False
    return hmac.compare_digest(candidate.encode(), settings.session_secret.encode())


# Authentication Dependencies
async def get_current_identity(
    auth_token: Optional[str] = Cookie(None),
    sessions: SessionStore = Depends(get_session_store),
) -> DiscordIdentity:
    """
    Dependency to get the caller's Discord identity from the session cookie.

    Raises:
        HTTPException 401: If the cookie is missing, unknown or expired
    """
    if not auth_token:
        raise HTTPException(status_code=401, detail="Unauthorized")

    identity = sessions.resolve(auth_token)
    if identity is None:
        raise HTTPException(status_code=401, detail="Session expired. Please log in again.")
    return identity


async def get_optional_identity(
    auth_token: Optional[str] = Cookie(None),
    sessions: SessionStore = Depends(get_session_store),
) -> Optional[DiscordIdentity]:
    """Like get_current_identity, but anonymous callers get None."""
    if not auth_token:
        return None
    return sessions.resolve(auth_token)


async def get_current_roles(
    identity: DiscordIdentity = Depends(get_current_identity),
    discord: DiscordClient = Depends(get_discord_client),
) -> List[str]:
    """The caller's Discord role names. Lookup failures yield no roles."""
    try:
        return await discord.get_user_roles(identity.id)
    except Exception as e:
        logger.error(f"Error checking roles for {identity.id}: {e}")
        return []


async def require_staff(
    identity: DiscordIdentity = Depends(get_current_identity),
    roles: List[str] = Depends(get_current_roles),
) -> DiscordIdentity:
    """
    Dependency to require any staff role (admin, moderator or reviewer).

    Raises:
        HTTPException 403: If the caller holds no staff role
    """
    if not permissions.has_any_staff_role(roles):
        logger.warning(f"User {identity.username} ({identity.id}) attempted to access a staff endpoint")
        raise HTTPException(status_code=403, detail="Forbidden")
    return identity


def require_permission(permission: str):
    """
    Dependency factory for a named permission tier.

    Example:
        @router.get("/activity-log")
        async def read_log(staff: DiscordIdentity = Depends(require_permission("view_activity_log"))):
            ...
    """
    if permission not in permissions.PERMISSIONS:
        raise ValueError(f"Unknown permission: {permission}")

    async def dependency(
        identity: DiscordIdentity = Depends(get_current_identity),
        roles: List[str] = Depends(get_current_roles),
    ) -> DiscordIdentity:
        if not permissions.has_permission(roles, permission):
            logger.warning(f"User {identity.username} ({identity.id}) lacks permission {permission}")
            raise HTTPException(status_code=403, detail="Forbidden")
        return identity

    return dependency


# Endpoints
@router.post("/session", response_model=SessionResponse)
async def create_session(
    identity: DiscordIdentity,
    response: Response,
    x_session_secret: Optional[str] = Header(None),
    sessions: SessionStore = Depends(get_session_store),
):
    """
    Register a session for a Discord identity that completed OAuth.

    Only the trusted OAuth layer knows the session secret.

    Returns:
        200: Session created, cookie set
        403: Wrong or missing secret
    """
    if not secret_matches(x_session_secret):
        logger.warning(f"Rejected session registration for {identity.id}: bad secret")
        raise HTTPException(status_code=403, detail="Forbidden")

    token = sessions.create(identity)
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        httponly=True,  # Prevents JavaScript access (XSS protection)
        samesite="lax",  # CSRF protection
        max_age=settings.session_ttl_minutes * 60,
        secure=not settings.debug,
    )
    logger.info(f"Session created for {identity.username} ({identity.id})")

    return SessionResponse(access_token=token, user_id=identity.id, username=identity.username)


@router.get("/me", response_model=MeResponse)
async def read_me(
    identity: DiscordIdentity = Depends(get_current_identity),
    roles: List[str] = Depends(get_current_roles),
):
    """The caller's identity and permission tiers."""
    return MeResponse(
        discord=identity,
        roles=roles,
        is_staff=permissions.has_any_staff_role(roles),
        is_admin=permissions.has_admin_role(roles),
        is_moderator=permissions.has_moderator_role(roles),
        is_reviewer=permissions.has_reviewer_role(roles),
    )


@router.post("/logout")
async def logout(
    response: Response,
    auth_token: Optional[str] = Cookie(None),
    identity: DiscordIdentity = Depends(get_current_identity),
    sessions: SessionStore = Depends(get_session_store),
):
    """
    Logout by dropping the session and clearing the cookie.
    """
    sessions.revoke(auth_token)
    response.delete_cookie(key=COOKIE_NAME, httponly=True, samesite="lax")

    logger.info(f"User logged out: {identity.username}")

    return {"message": "Successfully logged out"}
