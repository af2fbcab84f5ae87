"""
Submission priority.

Only `normal` and `high` are assigned automatically; `low` and `urgent` are
set by staff through the priority endpoints.
"""
import logging
from typing import Iterable, Optional

from portal.models import Priority
from portal.services.permissions import has_priority_role

logger = logging.getLogger(__name__)


def classify_priority(user_roles: Iterable[str], priority_roles: Optional[Iterable[str]] = None) -> Priority:
    """`high` if the user holds any priority role, else `normal`."""
    if has_priority_role(user_roles, priority_roles):
        return Priority.HIGH
    return Priority.NORMAL


async def resolve_submission_priority(discord, user_id: str) -> Priority:
    """
    Priority for a new submission from `user_id`.

    A role lookup failure yields `normal`; it never blocks the submission.
    """
    try:
        roles = await discord.get_user_roles(user_id)
    except Exception as e:
        logger.error(f"Error getting user roles for {user_id}: {e}")
        return Priority.NORMAL
    return classify_priority(roles)
