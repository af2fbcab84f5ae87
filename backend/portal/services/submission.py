"""
Application submission.

Priority and eligibility are decided before the record is stored; admin
notifications, the staff channel message and the audit entry follow as
best-effort post-commit effects.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from pydantic.alias_generators import to_camel

from portal.models import ActivityType, Application, ApplicationType, DiscordIdentity
from portal.schemas.eligibility import EligibilityDecision
from portal.services import notifications
from portal.services.activity_log import log_activity
from portal.services.applications import append_application
from portal.services.application_types import resolve_type_config
from portal.services.effects import PostCommitEffect, run_post_commit_effects
from portal.services.eligibility import check_eligibility
from portal.services.priority import resolve_submission_priority
from portal.storage import CollectionStore

logger = logging.getLogger(__name__)

# Answers may not overwrite record metadata
RESERVED_KEYS = set(Application.model_fields) | {to_camel(name) for name in Application.model_fields}


class SubmissionRejectedError(Exception):
    """Raised when the eligibility evaluator refuses a submission"""

    def __init__(self, decision: EligibilityDecision):
        super().__init__(decision.message)
        self.decision = decision


class SubmissionInvalidError(Exception):
    """Raised when the answers do not satisfy the type's form definition"""
    pass


@dataclass
class SubmissionOutcome:
    application: Application
    effects: Dict[str, bool] = field(default_factory=dict)


def missing_required_fields(application_type: ApplicationType, answers: Dict[str, Any]) -> List[str]:
    """Labels of required fields with no answer. Answers may be keyed by field id or label."""
    missing = []
    for definition in application_type.fields:
        if not definition.required:
            continue
        value = answers.get(definition.id, answers.get(definition.label))
        if value is None or value is False or (isinstance(value, str) and not value.strip()):
            missing.append(definition.label)
    return missing


async def submit_application(
    store: CollectionStore,
    applicant: DiscordIdentity,
    type_id: str,
    answers: Dict[str, Any],
    discord,
) -> SubmissionOutcome:
    """
    Validate and store a new application for `applicant`.

    Raises:
        SubmissionInvalidError: Type disabled or required answers missing
        SubmissionRejectedError: Eligibility evaluator refused the submission
    """
    priority = await resolve_submission_priority(discord, applicant.id)

    application_type = await resolve_type_config(store, type_id)
    if not application_type.enabled:
        raise SubmissionInvalidError(f"Application type {type_id} is not accepting submissions")

    missing = missing_required_fields(application_type, answers)
    if missing:
        raise SubmissionInvalidError(f"Missing required fields: {', '.join(missing)}")

    decision = await check_eligibility(store, applicant.id, type_id)
    if not decision.can_reapply:
        raise SubmissionRejectedError(decision)

    extra = {key: value for key, value in answers.items() if key not in RESERVED_KEYS}
    application = await append_application(
        store,
        Application(
            id="",
            discord=applicant,
            application_type=type_id,
            priority=priority,
            **extra,
        ),
    )

    label = application.display_name
    effects = [
        PostCommitEffect(
            "admin_notification",
            lambda: notifications.push_notifications(
                store, [notifications.notification_for_submission(application, label)]
            ),
        ),
        PostCommitEffect(
            "discord_channel",
            lambda: discord.send_channel_message(
                f"New {type_id} application submitted by {label} ({applicant.username}) - "
                f"Priority: {priority.value}"
            ),
        ),
        PostCommitEffect(
            "activity_created",
            lambda: log_activity(
                store, ActivityType.APPLICATION_CREATED, applicant.id, applicant.username,
                target_id=application.id, target_name=label,
            ),
        ),
    ]
    results = await run_post_commit_effects(effects, context=f"for application {application.id}")
    return SubmissionOutcome(application=application, effects=results)
