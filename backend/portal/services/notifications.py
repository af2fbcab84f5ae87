"""
Notification feeds.

One collection holds both the staff feed and applicant notifications; the
latter are flagged is_user_notification and addressed by user_id.
"""
import logging
import time
from datetime import datetime, timedelta
from typing import List, Optional

from portal.config import settings
from portal.models import Notification, NotificationType
from portal.models.common import utcnow
from portal.schemas.notification import StaleApplication, StaleApplicationsResponse
from portal.storage import CollectionStore

logger = logging.getLogger(__name__)


class NotificationNotFoundError(Exception):
    """Raised when a notification id does not exist"""
    pass


def _next_id(existing: List[Notification]) -> str:
    candidate = int(time.time() * 1000)
    taken = {n.id for n in existing}
    while str(candidate) in taken:
        candidate += 1
    return str(candidate)


async def push_notifications(store: CollectionStore, notifications: List[dict]) -> List[Notification]:
    """Append several notifications in one write. Each dict holds Notification fields except id."""
    created = []
    async with store.notifications.transaction() as feed:
        for fields in notifications:
            notification = Notification(id=_next_id(feed), **fields)
            feed.append(notification)
            created.append(notification)
    return created


async def push_notification(
    store: CollectionStore,
    type: NotificationType | str,
    title: str,
    message: str,
    **fields,
) -> Notification:
    type = type.value if isinstance(type, NotificationType) else type
    created = await push_notifications(store, [dict(type=type, title=title, message=message, **fields)])
    return created[0]


def _staff_feed(feed: List[Notification]) -> List[Notification]:
    return [n for n in feed if not n.is_user_notification]


async def list_notifications(store: CollectionStore, unread_only: bool = False) -> List[Notification]:
    """The staff feed, newest first."""
    feed = _staff_feed(await store.notifications.read())
    if unread_only:
        feed = [n for n in feed if not n.read]
    return sorted(feed, key=lambda n: n.timestamp, reverse=True)


async def unread_count(store: CollectionStore) -> int:
    feed = _staff_feed(await store.notifications.read())
    return sum(1 for n in feed if not n.read)


async def mark_notification_read(store: CollectionStore, notification_id: str) -> Notification:
    async with store.notifications.transaction() as feed:
        for notification in feed:
            if notification.id == notification_id and not notification.is_user_notification:
                notification.read = True
                return notification
        raise NotificationNotFoundError(f"Notification {notification_id} not found")


async def mark_all_read(store: CollectionStore) -> int:
    """Mark the whole staff feed read. Returns how many changed."""
    changed = 0
    async with store.notifications.transaction() as feed:
        for notification in _staff_feed(feed):
            if not notification.read:
                notification.read = True
                changed += 1
    return changed


def notification_for_submission(application, applicant_label: str) -> dict:
    return dict(
        type=NotificationType.APPLICATION_SUBMITTED.value,
        title="New Application Submitted",
        message=f"{applicant_label} has submitted a {application.application_type} application",
        application_id=application.id,
        user_id=application.discord.id,
        username=application.discord.username,
        priority=application.priority.value,
    )


def notifications_for_review(application, reviewer_name: str, reason: Optional[str] = None) -> List[dict]:
    """The status-changed and archived feed items for a reviewed application."""
    status = application.status.value
    approved = status == "approved"
    name = application.display_name
    if approved:
        message = f"{reviewer_name} approved application from {name}"
    else:
        message = f"{reviewer_name} denied application from {name}" + (f": {reason}" if reason else "")

    common = dict(
        application_id=application.id,
        user_id=application.discord.id,
        username=name,
        reviewer_name=reviewer_name,
    )
    return [
        dict(
            type=(NotificationType.APPLICATION_APPROVED if approved else NotificationType.APPLICATION_DENIED).value,
            title="✅ Application Approved" if approved else "❌ Application Denied",
            message=message,
            **common,
        ),
        dict(
            type=NotificationType.APPLICATION_ARCHIVED.value,
            title="📦 Application Archived",
            message=f"Application from {name} has been moved to archive with status: {status}",
            **common,
        ),
    ]


async def list_user_notifications(store: CollectionStore, user_id: str) -> List[Notification]:
    """Notifications addressed to one applicant, newest first."""
    feed = [
        n for n in await store.notifications.read()
        if n.is_user_notification and n.user_id == user_id
    ]
    return sorted(feed, key=lambda n: n.timestamp, reverse=True)


def notification_for_applicant(application, reason: Optional[str] = None) -> dict:
    """The applicant's own notice of a review decision."""
    approved = application.status.value == "approved"
    if approved:
        message = f"Your {application.application_type} application has been approved."
    else:
        message = f"Your {application.application_type} application has been denied." + (
            f" Reason: {reason}" if reason else ""
        )
    return dict(
        type=(NotificationType.APPLICATION_APPROVED if approved else NotificationType.APPLICATION_DENIED).value,
        title="Application Approved" if approved else "Application Denied",
        message=message,
        application_id=application.id,
        user_id=application.discord.id,
        username=application.display_name,
        is_user_notification=True,
    )


async def find_stale_applications(
    store: CollectionStore,
    now: Optional[datetime] = None,
    stale_days: Optional[int] = None,
) -> StaleApplicationsResponse:
    """Pending applications submitted more than `stale_days` ago, oldest first."""
    now = now or utcnow()
    stale_days = settings.stale_application_days if stale_days is None else stale_days
    threshold = now - timedelta(days=stale_days)

    stale = [
        StaleApplication(
            id=a.id,
            username=a.display_name,
            timestamp=a.timestamp,
            days_old=(now - a.timestamp).days,
        )
        for a in await store.applications.read()
        if a.is_pending() and a.timestamp < threshold
    ]
    stale.sort(key=lambda s: s.timestamp)
    return StaleApplicationsResponse(stale=stale, count=len(stale))
