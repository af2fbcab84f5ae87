import enum
from typing import Any, Optional

from pydantic import Field

from portal.models.common import Record, UtcDatetime, utcnow


class ActivityType(str, enum.Enum):
    APPLICATION_CREATED = "application_created"
    APPLICATION_APPROVED = "application_approved"
    APPLICATION_DENIED = "application_denied"
    APPLICATION_ARCHIVED = "application_archived"
    APPLICATION_NOTE_ADDED = "application_note_added"
    APPLICATION_PRIORITY_CHANGED = "application_priority_changed"
    APPLICATION_ASSIGNED = "application_assigned"
    APPLICATION_UNASSIGNED = "application_unassigned"
    APPLICATION_EXPORTED = "application_exported"
    BULK_ACTION = "bulk_action"
    USER_BANNED = "user_banned"
    USER_UNBANNED = "user_unbanned"
    USER_BLACKLISTED = "user_blacklisted"
    USER_UNBLACKLISTED = "user_unblacklisted"
    APPLICATION_TYPE_CREATED = "application_type_created"
    APPLICATION_TYPE_UPDATED = "application_type_updated"
    APPLICATION_TYPE_DELETED = "application_type_deleted"


class ActivityLogEntry(Record):
    """Append-only audit record. Never mutated or deleted."""
    id: str
    type: str
    user_id: str
    user_name: str
    target_id: Optional[str] = None
    target_name: Optional[str] = None
    details: Optional[dict[str, Any]] = None
    timestamp: UtcDatetime = Field(default_factory=utcnow)


class NotificationType(str, enum.Enum):
    APPLICATION_SUBMITTED = "application_submitted"
    APPLICATION_APPROVED = "application_approved"
    APPLICATION_DENIED = "application_denied"
    APPLICATION_ARCHIVED = "application_archived"
    SYSTEM = "system"


class Notification(Record):
    """
    Feed item. Staff see the admin feed; items flagged is_user_notification
    belong to the applicant named by user_id instead.
    """
    id: str
    type: str
    title: str
    message: str
    application_id: Optional[str] = None
    user_id: Optional[str] = None
    username: Optional[str] = None
    priority: Optional[str] = None
    reviewer_name: Optional[str] = None
    timestamp: UtcDatetime = Field(default_factory=utcnow)
    read: bool = False
    is_user_notification: bool = False
