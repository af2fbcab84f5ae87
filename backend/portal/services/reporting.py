"""Read-only views over both application collections."""
import csv
import io
from collections import OrderedDict
from datetime import datetime, time, timedelta, timezone
from typing import Iterable, List, Optional

from portal.models import Application, ApplicationStatus, Priority
from portal.models.common import utcnow
from portal.schemas.application import (
    ApplicationFilters,
    ApplicationStats,
    DailyCount,
    MyStatusResponse,
    ReviewerCount,
)
from portal.storage import CollectionStore

EXPORT_COLUMNS = [
    "ID", "Timestamp", "Type", "Username", "Discord ID", "Discord Username",
    "Status", "Priority", "Assigned To", "Reviewer", "Reviewed At",
]


async def my_status(store: CollectionStore, user_id: str) -> MyStatusResponse:
    """Everything `user_id` has submitted, newest first."""
    active = await store.applications.read()
    archived = await store.archived_applications.read()
    mine = sorted(
        [a for a in active + archived if a.discord.id == user_id],
        key=lambda a: a.timestamp,
        reverse=True,
    )
    return MyStatusResponse(
        applications=mine,
        latest_application=mine[0] if mine else None,
        total_applications=len(mine),
        pending_applications=sum(1 for a in mine if a.is_pending()),
    )


def _as_datetime(value, end_of_day: bool = False) -> datetime:
    if isinstance(value, datetime):
        moment = value
    else:
        moment = datetime.combine(value, time.max if end_of_day else time.min)
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def filter_applications(applications: Iterable[Application], filters: ApplicationFilters) -> List[Application]:
    result = list(applications)

    if filters.search:
        needle = filters.search.lower()

        def matches(app: Application) -> bool:
            extra = app.model_extra or {}
            haystack = [
                app.display_name,
                app.discord.id,
                app.discord.username,
                str(extra.get("steamId", "")),
                str(extra.get("characterName", "")),
            ]
            return any(needle in value.lower() for value in haystack if value)

        result = [a for a in result if matches(a)]

    if filters.status and filters.status != "all":
        result = [a for a in result if a.status.value == filters.status]
    if filters.priority and filters.priority != "all":
        result = [a for a in result if a.priority.value == filters.priority]
    if filters.assigned_to:
        result = [a for a in result if a.assigned_to == filters.assigned_to]
    if filters.application_type:
        result = [a for a in result if a.application_type == filters.application_type]
    if filters.date_from:
        start = _as_datetime(filters.date_from)
        result = [a for a in result if a.timestamp >= start]
    if filters.date_to:
        # The whole end day is included
        end = _as_datetime(filters.date_to, end_of_day=True)
        result = [a for a in result if a.timestamp <= end]
    return result


async def search_applications(store: CollectionStore, filters: ApplicationFilters) -> List[Application]:
    active = await store.applications.read()
    if filters.include_archived:
        active += await store.archived_applications.read()
    return filter_applications(active, filters)


async def application_stats(store: CollectionStore, now: Optional[datetime] = None) -> ApplicationStats:
    now = now or utcnow()
    active = await store.applications.read()
    archived = await store.archived_applications.read()
    everything = active + archived

    approved = [a for a in archived if a.status == ApplicationStatus.APPROVED]
    denied = [a for a in archived if a.status == ApplicationStatus.DENIED]
    pending = [a for a in active if a.is_pending()]

    review_hours = [
        (a.reviewed_at - a.timestamp).total_seconds() / 3600
        for a in archived
        if a.reviewed_at
    ]
    average_review_time = sum(review_hours) / len(review_hours) if review_hours else 0.0
    approval_rate = len(approved) / len(archived) * 100 if archived else 0.0

    by_priority = {p.value: sum(1 for a in active if a.priority == p) for p in Priority}

    # Last 30 days, oldest first
    days = OrderedDict(((now - timedelta(days=offset)).date(), 0) for offset in range(29, -1, -1))
    for a in everything:
        day = a.timestamp.date()
        if day in days:
            days[day] += 1

    by_reviewer: "OrderedDict[str, int]" = OrderedDict()
    for a in archived:
        if a.reviewer:
            by_reviewer[a.reviewer] = by_reviewer.get(a.reviewer, 0) + 1

    return ApplicationStats(
        total=len(everything),
        pending=len(pending),
        approved=len(approved),
        denied=len(denied),
        by_priority=by_priority,
        average_review_time=average_review_time,
        approval_rate=approval_rate,
        by_day=[DailyCount(date=day.isoformat(), count=count) for day, count in days.items()],
        by_admin=[ReviewerCount(admin_id=reviewer, count=count) for reviewer, count in by_reviewer.items()],
    )


async def export_applications(
    store: CollectionStore,
    include_archived: bool = False,
    ids: Optional[List[str]] = None,
) -> List[Application]:
    applications = await store.applications.read()
    if include_archived:
        applications += await store.archived_applications.read()
    if ids:
        wanted = set(ids)
        applications = [a for a in applications if a.id in wanted]
    return applications


def applications_to_csv(applications: Iterable[Application]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for a in applications:
        writer.writerow([
            a.id,
            a.timestamp.isoformat(),
            a.application_type,
            a.display_name,
            a.discord.id,
            a.discord.username,
            a.status.value,
            a.priority.value,
            a.assigned_to or "",
            a.reviewer or "",
            a.reviewed_at.isoformat() if a.reviewed_at else "",
        ])
    return buffer.getvalue()
