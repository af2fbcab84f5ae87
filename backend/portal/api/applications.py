"""
Applications API endpoints.
Handles submission, eligibility checks, review and staff tooling.

Routes with fixed paths are declared before the /{application_id} routes.
"""
import json
import logging
from typing import List, Literal, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from portal.api.auth import (
    get_current_identity,
    get_current_roles,
    get_optional_identity,
    require_permission,
    require_staff,
    secret_matches,
)
from portal.models import (
    ActivityType,
    Application,
    ApplicationDraft,
    ApplicationNote,
    ApplicationScore,
    ApplicationStatus,
    DiscordIdentity,
)
from portal.models.application import DEFAULT_APPLICATION_TYPE
from portal.models.common import utcnow
from portal.schemas.application import (
    ApplicationFilters,
    ApplicationStats,
    ApplicationSubmission,
    AssignUpdate,
    BulkActionRequest,
    BulkActionResponse,
    DraftSave,
    DraftSaveResponse,
    MyStatusResponse,
    NoteCreate,
    NoteResponse,
    NotesResponse,
    PriorityUpdate,
    ReviewResponse,
    ScoreRequest,
    StatusUpdateRequest,
    SubmissionResponse,
    SuccessResponse,
)
from portal.schemas.eligibility import EligibilityDecision
from portal.services import applications as application_store
from portal.services import drafts, permissions, reporting, scoring
from portal.services.activity_log import log_activity
from portal.services.applications import ApplicationNotFoundError, Location
from portal.services.discord import DiscordClient, get_discord_client
from portal.services.drafts import DraftNotFoundError
from portal.services.eligibility import EligibilityReason, check_eligibility
from portal.services.email import EmailService, get_email_service
from portal.services.review import InvalidTransitionError, review_application
from portal.services.submission import (
    SubmissionInvalidError,
    SubmissionRejectedError,
    submit_application,
)
from portal.storage import CollectionStore, get_store

logger = logging.getLogger(__name__)
router = APIRouter()

BULK_ACTIONS = ("assign", "priority", "archive")

# Actor recorded for bot-triggered priority updates
SYSTEM_ACTOR = DiscordIdentity(id="system", username="System (Auto)")


def _not_found(application_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Application {application_id} not found")


# Applicant endpoints
@router.post("", response_model=SubmissionResponse, status_code=201)
async def create_application(
    submission: ApplicationSubmission,
    identity: DiscordIdentity = Depends(get_current_identity),
    store: CollectionStore = Depends(get_store),
    discord: DiscordClient = Depends(get_discord_client),
):
    """
    Submit a new application for the logged-in user.

    Returns:
        201: Application stored
        400: Type disabled, required answers missing, or not yet eligible
        403: Caller is banned or blacklisted
    """
    try:
        outcome = await submit_application(
            store,
            applicant=identity,
            type_id=submission.application_type,
            answers=submission.answers(),
            discord=discord,
        )
    except SubmissionInvalidError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SubmissionRejectedError as e:
        blocked = e.decision.reason in (EligibilityReason.BANNED.value, EligibilityReason.BLACKLISTED.value)
        raise HTTPException(status_code=403 if blocked else 400, detail=e.decision.message)

    application = outcome.application
    logger.info(f"Application {application.id} submitted by {identity.username}")

    return SubmissionResponse(
        message="Application submitted successfully",
        id=application.id,
        priority=application.priority,
    )


@router.get("/reapply", response_model=EligibilityDecision)
async def check_reapply(
    application_type: str = Query(DEFAULT_APPLICATION_TYPE, alias="type"),
    user_id: Optional[str] = Query(None, alias="userId"),
    identity: DiscordIdentity = Depends(get_current_identity),
    store: CollectionStore = Depends(get_store),
    discord: DiscordClient = Depends(get_discord_client),
):
    """
    Whether a user may submit an application of the given type.

    Defaults to the caller. Checking someone else requires a staff role.
    """
    target = user_id or identity.id
    if target != identity.id:
        roles = await get_current_roles(identity, discord)
        if not permissions.has_any_staff_role(roles):
            raise HTTPException(status_code=403, detail="Forbidden")

    return await check_eligibility(store, target, application_type)


@router.get("/my-status", response_model=MyStatusResponse)
async def read_my_status(
    identity: DiscordIdentity = Depends(get_current_identity),
    store: CollectionStore = Depends(get_store),
):
    """The caller's applications across active and archived, newest first."""
    return await reporting.my_status(store, identity.id)


@router.get("/drafts", response_model=List[ApplicationDraft])
async def list_drafts(
    identity: DiscordIdentity = Depends(get_current_identity),
    store: CollectionStore = Depends(get_store),
):
    """The caller's saved drafts."""
    return await drafts.list_drafts(store, identity.id)


@router.post("/drafts", response_model=DraftSaveResponse)
async def save_draft(
    request: DraftSave,
    identity: DiscordIdentity = Depends(get_current_identity),
    store: CollectionStore = Depends(get_store),
):
    """
    Save a draft. Sending the id of an existing draft replaces it.
    """
    draft = await drafts.save_draft(store, identity, request.answers(), draft_id=request.id)
    return DraftSaveResponse(id=draft.id)


@router.delete("/drafts", response_model=SuccessResponse)
async def delete_draft(
    draft_id: Optional[str] = Query(None, alias="id"),
    identity: DiscordIdentity = Depends(get_current_identity),
    store: CollectionStore = Depends(get_store),
):
    if not draft_id:
        raise HTTPException(status_code=400, detail="Draft ID is required")
    try:
        await drafts.delete_draft(store, identity.id, draft_id)
    except DraftNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return SuccessResponse()


# Staff endpoints
@router.get("", response_model=List[Application])
async def list_applications(
    staff: DiscordIdentity = Depends(require_staff),
    store: CollectionStore = Depends(get_store),
):
    """All active (pending) applications."""
    return await application_store.list_active(store)


@router.get("/archive", response_model=List[Application])
async def list_archive(
    staff: DiscordIdentity = Depends(require_staff),
    store: CollectionStore = Depends(get_store),
):
    """All archived (decided or bulk-archived) applications."""
    return await application_store.list_archived(store)


@router.post("/search", response_model=List[Application])
async def search_applications(
    filters: ApplicationFilters,
    staff: DiscordIdentity = Depends(require_staff),
    store: CollectionStore = Depends(get_store),
):
    return await reporting.search_applications(store, filters)


@router.get("/stats", response_model=ApplicationStats)
async def read_stats(
    staff: DiscordIdentity = Depends(require_staff),
    store: CollectionStore = Depends(get_store),
):
    return await reporting.application_stats(store)


@router.get("/export")
async def export_applications(
    format: Literal["csv", "json"] = Query("csv"),
    include_archived: bool = Query(False, alias="includeArchived"),
    ids: Optional[str] = Query(None, description="Comma-separated application ids"),
    staff: DiscordIdentity = Depends(require_staff),
    store: CollectionStore = Depends(get_store),
):
    """
    Download applications as CSV or JSON.
    """
    wanted = [i.strip() for i in ids.split(",") if i.strip()] if ids else None
    applications = await reporting.export_applications(store, include_archived, wanted)

    await log_activity(
        store, ActivityType.APPLICATION_EXPORTED, staff.id, staff.username,
        details={"format": format, "count": len(applications), "includeArchived": include_archived},
    )

    stamp = utcnow().date().isoformat()
    if format == "json":
        body = json.dumps([a.to_document() for a in applications], indent=2)
        media_type = "application/json"
    else:
        body = reporting.applications_to_csv(applications)
        media_type = "text/csv"

    return Response(
        content=body,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="applications-{stamp}.{format}"'},
    )


@router.post("/bulk", response_model=BulkActionResponse)
async def bulk_action(
    request: BulkActionRequest,
    staff: DiscordIdentity = Depends(require_staff),
    store: CollectionStore = Depends(get_store),
):
    """
    Assign, re-prioritize or archive several active applications at once.

    Returns:
        200: Count of applications changed
        400: Empty id list, unknown action or missing priority
        404: None of the ids are active applications
    """
    if not request.application_ids:
        raise HTTPException(status_code=400, detail="No applications selected")
    if request.action not in BULK_ACTIONS:
        raise HTTPException(status_code=400, detail=f"Unknown bulk action: {request.action}")
    if request.action == "priority" and request.priority is None:
        raise HTTPException(status_code=400, detail="Priority is required")

    active = await application_store.list_active(store)
    wanted = set(request.application_ids)
    if not any(a.id in wanted for a in active):
        raise HTTPException(status_code=404, detail="No matching applications found")

    if request.action == "archive":
        changed = await application_store.bulk_archive_applications(store, wanted)
    else:
        now = utcnow()

        def mutate(application: Application) -> None:
            if request.action == "assign":
                application.assigned_to = request.assigned_to or None
            else:
                application.priority = request.priority
            application.updated_at = now

        changed = await application_store.bulk_update_applications(store, wanted, mutate)

    await log_activity(
        store, ActivityType.BULK_ACTION, staff.id, staff.username,
        details={
            "action": request.action,
            "applicationIds": [a.id for a in changed],
            "count": len(changed),
        },
    )
    logger.info(f"Bulk {request.action} on {len(changed)} applications by {staff.username}")

    return BulkActionResponse(success=True, count=len(changed))


@router.get("/score", response_model=Union[ApplicationScore, List[ApplicationScore], None])
async def read_scores(
    application_id: Optional[str] = Query(None, alias="id"),
    staff: DiscordIdentity = Depends(require_staff),
    store: CollectionStore = Depends(get_store),
):
    """
    All scores, or the score of one application (null if it has none).
    """
    if application_id:
        return await scoring.get_score(store, application_id)
    return await scoring.list_scores(store)


@router.post("/score", response_model=ApplicationScore)
async def score_application(
    request: ScoreRequest,
    staff: DiscordIdentity = Depends(require_staff),
    store: CollectionStore = Depends(get_store),
):
    """
    Score an active application. Criteria left out are calculated from
    the answers.

    Returns:
        200: The stored score
        400: No application id
        404: Application is not active
    """
    if not request.application_id:
        raise HTTPException(status_code=400, detail="Application ID is required")
    try:
        return await scoring.score_application(
            store, request.application_id, staff, criteria=request.criteria, notes=request.notes
        )
    except ApplicationNotFoundError:
        raise _not_found(request.application_id)


@router.get("/{application_id}", response_model=Application)
async def get_application(
    application_id: str,
    staff: DiscordIdentity = Depends(require_staff),
    store: CollectionStore = Depends(get_store),
):
    """A single application from either collection."""
    try:
        application, _ = await application_store.find_application(store, application_id)
    except ApplicationNotFoundError:
        raise _not_found(application_id)
    return application


@router.patch("/{application_id}", response_model=ReviewResponse)
async def review(
    application_id: str,
    request: StatusUpdateRequest,
    reviewer: DiscordIdentity = Depends(require_permission("review_applications")),
    store: CollectionStore = Depends(get_store),
    discord: DiscordClient = Depends(get_discord_client),
    email_service: EmailService = Depends(get_email_service),
):
    """
    Approve or deny a pending application and move it to the archive.

    Notifications to the applicant are best-effort; the response tells the
    reviewer whether the Discord DM was delivered.

    Returns:
        200: Application reviewed
        404: Application is not pending (unknown or already archived)
    """
    try:
        outcome = await review_application(
            store,
            application_id,
            ApplicationStatus(request.status.value),
            reviewer=reviewer,
            discord=discord,
            email_service=email_service,
            reason=request.reason,
        )
    except ApplicationNotFoundError:
        raise _not_found(application_id)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    status = request.status.value
    if outcome.discord_message_sent:
        message = f"Application {status} and applicant notified via Discord"
    else:
        message = f"Application {status}, but the Discord message could not be delivered"

    return ReviewResponse(
        message=message,
        discord_message_sent=outcome.discord_message_sent,
        email_sent=outcome.email_sent,
        application=outcome.application,
    )


@router.post("/{application_id}/notes", response_model=NoteResponse, status_code=201)
async def add_note(
    application_id: str,
    request: NoteCreate,
    staff: DiscordIdentity = Depends(require_staff),
    store: CollectionStore = Depends(get_store),
):
    """Attach an internal staff note to an application."""
    now = utcnow()
    note = ApplicationNote(
        id=str(int(now.timestamp() * 1000)),
        author_id=staff.id,
        author_name=staff.username,
        content=request.content,
        timestamp=now,
    )

    def append_note(application: Application) -> None:
        application.notes.append(note)

    try:
        application, _ = await application_store.update_application(store, application_id, append_note)
    except ApplicationNotFoundError:
        raise _not_found(application_id)

    await log_activity(
        store, ActivityType.APPLICATION_NOTE_ADDED, staff.id, staff.username,
        target_id=application.id, target_name=application.display_name,
        details={"noteId": note.id},
    )

    return NoteResponse(note=note)


@router.get("/{application_id}/notes", response_model=NotesResponse)
async def list_notes(
    application_id: str,
    staff: DiscordIdentity = Depends(require_staff),
    store: CollectionStore = Depends(get_store),
):
    try:
        application, _ = await application_store.find_application(store, application_id)
    except ApplicationNotFoundError:
        raise _not_found(application_id)
    return NotesResponse(notes=application.notes)


@router.patch("/{application_id}/priority", response_model=SuccessResponse)
async def update_priority(
    application_id: str,
    request: PriorityUpdate,
    identity: Optional[DiscordIdentity] = Depends(get_optional_identity),
    store: CollectionStore = Depends(get_store),
    discord: DiscordClient = Depends(get_discord_client),
):
    """
    Change the priority of an active application.

    The Discord bot may call this without a session when a member's roles
    change, by sending the session secret as systemUpdate.
    """
    system_update = secret_matches(request.system_update)
    if system_update:
        actor = SYSTEM_ACTOR
    else:
        if identity is None:
            raise HTTPException(status_code=401, detail="Unauthorized")
        roles = await get_current_roles(identity, discord)
        if not permissions.has_any_staff_role(roles):
            raise HTTPException(status_code=403, detail="Forbidden")
        actor = identity

    previous = {}

    def set_priority(application: Application) -> None:
        previous["priority"] = application.priority
        application.priority = request.priority
        application.updated_at = utcnow()

    try:
        application, _ = await application_store.update_application(
            store, application_id, set_priority, location=Location.ACTIVE
        )
    except ApplicationNotFoundError:
        raise _not_found(application_id)

    details = {"oldPriority": previous["priority"].value, "newPriority": request.priority.value}
    if system_update:
        details["reason"] = "Discord role change"

    await log_activity(
        store, ActivityType.APPLICATION_PRIORITY_CHANGED, actor.id, actor.username,
        target_id=application.id, target_name=application.display_name,
        details=details,
    )

    return SuccessResponse()


@router.patch("/{application_id}/assign", response_model=SuccessResponse)
async def assign_application(
    application_id: str,
    request: AssignUpdate,
    staff: DiscordIdentity = Depends(require_staff),
    store: CollectionStore = Depends(get_store),
):
    """Assign an application to a staff member. An empty value unassigns it."""
    assigned_to = request.assigned_to or None

    def set_assignee(application: Application) -> None:
        application.assigned_to = assigned_to

    try:
        application, _ = await application_store.update_application(
            store, application_id, set_assignee, location=Location.ACTIVE
        )
    except ApplicationNotFoundError:
        raise _not_found(application_id)

    await log_activity(
        store,
        ActivityType.APPLICATION_ASSIGNED if assigned_to else ActivityType.APPLICATION_UNASSIGNED,
        staff.id, staff.username,
        target_id=application.id, target_name=application.display_name,
        details={"assignedTo": assigned_to},
    )

    return SuccessResponse()
