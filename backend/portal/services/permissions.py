"""
Discord-role based permission checks.

Roles are matched by name against the tiers configured in settings.
"""
from typing import Iterable, Optional

from portal.config import settings

# Permission name -> settings attribute holding its required tier
PERMISSIONS = {
    "review_applications": "permission_review_applications",
    "manage_bans": "permission_manage_bans",
    "view_activity_log": "permission_view_activity_log",
    "manage_application_types": "permission_manage_application_types",
}


def _holds_any(user_roles: Iterable[str], configured: Iterable[str]) -> bool:
    configured = set(configured)
    return any(role in configured for role in user_roles)


def has_admin_role(user_roles: Iterable[str]) -> bool:
    return _holds_any(user_roles, settings.admin_roles)


def has_moderator_role(user_roles: Iterable[str]) -> bool:
    return _holds_any(user_roles, settings.moderator_roles)


def has_reviewer_role(user_roles: Iterable[str]) -> bool:
    return _holds_any(user_roles, settings.reviewer_roles)


def has_priority_role(user_roles: Iterable[str], priority_roles: Optional[Iterable[str]] = None) -> bool:
    return _holds_any(user_roles, settings.priority_roles if priority_roles is None else priority_roles)


def has_any_staff_role(user_roles: Iterable[str]) -> bool:
    user_roles = list(user_roles)
    return has_admin_role(user_roles) or has_moderator_role(user_roles) or has_reviewer_role(user_roles)


def has_permission(user_roles: Iterable[str], permission: str) -> bool:
    """
    Check a named permission.

    Tiers are cumulative: admin ⊃ moderator ⊃ reviewer.
    """
    if permission not in PERMISSIONS:
        raise ValueError(f"Unknown permission: {permission}")

    user_roles = list(user_roles)
    required_level = getattr(settings, PERMISSIONS[permission])

    if required_level == "admin":
        return has_admin_role(user_roles)
    elif required_level == "moderator":
        return has_admin_role(user_roles) or has_moderator_role(user_roles)
    elif required_level == "reviewer":
        return has_any_staff_role(user_roles)

    return False
