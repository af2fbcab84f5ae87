"""
Review transition for applications.
Approve/deny is the only way a pending application reaches the archive.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from portal.models import ActivityType, Application, ApplicationStatus, DiscordIdentity
from portal.models.common import utcnow
from portal.services import notifications
from portal.services.activity_log import log_activity
from portal.services.applications import archive_application
from portal.services.effects import PostCommitEffect, run_post_commit_effects
from portal.storage import CollectionStore

logger = logging.getLogger(__name__)


# Define allowed status transitions
ALLOWED_TRANSITIONS: Dict[ApplicationStatus, list[ApplicationStatus]] = {
    ApplicationStatus.PENDING: [ApplicationStatus.APPROVED, ApplicationStatus.DENIED],
    ApplicationStatus.APPROVED: [],  # Terminal state
    ApplicationStatus.DENIED: [],  # Terminal state
}


class InvalidTransitionError(Exception):
    """Raised when an invalid status transition is attempted"""
    pass


def can_transition(from_status: ApplicationStatus, to_status: ApplicationStatus) -> bool:
    """Check if a transition is allowed without touching storage"""
    return to_status in ALLOWED_TRANSITIONS.get(from_status, [])


@dataclass
class ReviewOutcome:
    application: Application
    effects: Dict[str, bool] = field(default_factory=dict)

    @property
    def discord_message_sent(self) -> bool:
        return self.effects.get("discord_dm", False)

    @property
    def email_sent(self) -> bool:
        return self.effects.get("email", False)


def _review_effects(
    store: CollectionStore,
    application: Application,
    reviewer: DiscordIdentity,
    reason: Optional[str],
    discord,
    email_service,
) -> List[PostCommitEffect]:
    status = application.status.value
    status_event = (
        ActivityType.APPLICATION_APPROVED
        if application.status == ApplicationStatus.APPROVED
        else ActivityType.APPLICATION_DENIED
    )

    effects = [
        PostCommitEffect(
            "activity_status",
            lambda: log_activity(
                store, status_event, reviewer.id, reviewer.username,
                target_id=application.id, target_name=application.display_name,
                details={"reason": reason},
            ),
        ),
        PostCommitEffect(
            "activity_archived",
            lambda: log_activity(
                store, ActivityType.APPLICATION_ARCHIVED, reviewer.id, reviewer.username,
                target_id=application.id, target_name=application.display_name,
            ),
        ),
        PostCommitEffect(
            "admin_notifications",
            lambda: notifications.push_notifications(
                store, notifications.notifications_for_review(application, reviewer.username, reason)
            ),
        ),
        PostCommitEffect(
            "applicant_notification",
            lambda: notifications.push_notifications(
                store, [notifications.notification_for_applicant(application, reason)]
            ),
        ),
        PostCommitEffect(
            "discord_dm",
            lambda: discord.send_direct_message(application.discord.id, status, reason),
        ),
    ]

    if application.discord.email:
        effects.append(PostCommitEffect(
            "email",
            lambda: email_service.send_application_status_email(
                application.discord.email, application.discord.username, status, reason
            ),
        ))
    return effects


async def review_application(
    store: CollectionStore,
    application_id: str,
    to_status: ApplicationStatus,
    reviewer: DiscordIdentity,
    discord,
    email_service,
    reason: Optional[str] = None,
) -> ReviewOutcome:
    """
    Approve or deny a pending application.

    Args:
        store: Collection store
        application_id: ID of the application to review
        to_status: APPROVED or DENIED
        reviewer: Identity of the acting staff member
        discord: Direct-message collaborator
        email_service: Email collaborator
        reason: Optional reviewer note shown to the applicant

    Returns:
        ReviewOutcome with the archived record and per-effect results

    Raises:
        InvalidTransitionError: If to_status is not a decision
        ApplicationNotFoundError: If the id is not in the active collection
    """
    if not can_transition(ApplicationStatus.PENDING, to_status):
        raise InvalidTransitionError(f"Invalid transition from pending to {to_status.value}")

    def stamp(application: Application) -> None:
        if not can_transition(application.status, to_status):
            raise InvalidTransitionError(
                f"Invalid transition from {application.status.value} to {to_status.value}"
            )
        now = utcnow()
        application.status = to_status
        application.status_reason = reason
        application.updated_at = now
        application.reviewer = reviewer.id
        application.reviewed_at = now

    # Commit point: the record moves from active to archived.
    # Archived applications are not found here, so decisions are never reverted.
    application = await archive_application(store, application_id, stamp)

    logger.info(
        f"Application review: pending → {to_status.value}",
        extra={"application_id": application_id, "reviewer": reviewer.id, "to_status": to_status.value},
    )

    effects = _review_effects(store, application, reviewer, reason, discord, email_service)
    results = await run_post_commit_effects(effects, context=f"for application {application_id}")
    return ReviewOutcome(application=application, effects=results)
