"""
Eligibility evaluator.

Decides whether a user may submit a new application of a given type. The
checks run in a fixed order and the first failing check wins:

1. ban, then blacklist
2. pending duplicate (only when the type disallows multiple pending)
3. unique approval (permanent, no cooldown ever clears it)
4. cooldown since the most recent denial
"""
import enum
import logging
import math
from datetime import datetime, timedelta
from typing import List, Optional

from portal.models import Application, ApplicationStatus, ApplicationType
from portal.models.common import utcnow
from portal.schemas.eligibility import EligibilityDecision, LastDenied
from portal.services import moderation
from portal.services.application_types import resolve_type_config
from portal.storage import CollectionStore

logger = logging.getLogger(__name__)

DAY = timedelta(days=1)


class EligibilityReason(str, enum.Enum):
    ELIGIBLE = "eligible"
    BANNED = "banned"
    BLACKLISTED = "blacklisted"
    PENDING = "pending"
    ALREADY_APPROVED = "already_approved"
    COOLDOWN = "cooldown"


MESSAGES = {
    EligibilityReason.BANNED: "You are banned",
    EligibilityReason.BLACKLISTED: "You are blacklisted",
    EligibilityReason.PENDING: "You already have a pending application of this type.",
    EligibilityReason.ALREADY_APPROVED: "You are already approved for this application type.",
}


def days_remaining(cooldown_ends: datetime, now: datetime) -> int:
    """Whole days left until `cooldown_ends`, rounded up, never negative."""
    return max(0, math.ceil((cooldown_ends - now) / DAY))


def evaluate_eligibility(
    user_id: str,
    application_type: ApplicationType,
    active: List[Application],
    archived: List[Application],
    banned: bool = False,
    blacklisted: bool = False,
    now: Optional[datetime] = None,
) -> EligibilityDecision:
    """Run the eligibility checks over already-loaded collections."""
    now = now or utcnow()
    type_id = application_type.id

    def reject(reason: EligibilityReason, message: Optional[str] = None, **extra) -> EligibilityDecision:
        return EligibilityDecision(
            can_reapply=False, reason=reason.value, message=message or MESSAGES[reason], **extra
        )

    if banned:
        return reject(EligibilityReason.BANNED)
    if blacklisted:
        return reject(EligibilityReason.BLACKLISTED)

    def mine(app: Application) -> bool:
        return app.discord.id == user_id and app.application_type == type_id

    if not application_type.allow_multiple_pending:
        if any(mine(app) and app.is_pending() for app in active):
            return reject(EligibilityReason.PENDING)

    history = [app for app in archived if mine(app)]

    if application_type.unique_approved:
        if any(app.status == ApplicationStatus.APPROVED for app in history):
            return reject(EligibilityReason.ALREADY_APPROVED)

    denied = sorted(
        (app for app in history if app.status == ApplicationStatus.DENIED),
        key=lambda app: app.decided_at(),
        reverse=True,
    )
    if not denied:
        return EligibilityDecision(
            can_reapply=True,
            reason=EligibilityReason.ELIGIBLE.value,
            message="No previous denied applications found",
        )

    last_denied = denied[0]
    cooldown_ends = last_denied.decided_at() + timedelta(days=application_type.cooldown_days)
    remaining = days_remaining(cooldown_ends, now)
    cooldown_fields = dict(
        cooldown_ends=cooldown_ends,
        days_remaining=remaining,
        total_denied=len(denied),
        last_denied=LastDenied(
            id=last_denied.id,
            timestamp=last_denied.timestamp,
            updated_at=last_denied.updated_at,
            status_reason=last_denied.status_reason,
        ),
    )

    if now < cooldown_ends:
        return reject(
            EligibilityReason.COOLDOWN,
            f"Please wait {remaining} day(s) before applying again for this type.",
            **cooldown_fields,
        )

    return EligibilityDecision(
        can_reapply=True,
        reason=EligibilityReason.ELIGIBLE.value,
        message="Cooldown period has ended. You may apply again.",
        **cooldown_fields,
    )


async def check_eligibility(
    store: CollectionStore,
    user_id: str,
    type_id: str,
    now: Optional[datetime] = None,
) -> EligibilityDecision:
    """Load the collections a decision depends on and evaluate it."""
    application_type = await resolve_type_config(store, type_id)
    decision = evaluate_eligibility(
        user_id=user_id,
        application_type=application_type,
        active=await store.applications.read(),
        archived=await store.archived_applications.read(),
        banned=await moderation.is_banned(store, user_id),
        blacklisted=await moderation.is_blacklisted(store, user_id),
        now=now,
    )
    if not decision.can_reapply:
        logger.info(
            f"Eligibility rejected for {user_id} ({type_id}): {decision.reason}",
            extra={"user_id": user_id, "application_type": type_id, "reason": decision.reason},
        )
    return decision
