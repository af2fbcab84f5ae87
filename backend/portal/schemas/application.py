"""Application-related Pydantic schemas."""
import enum
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from portal.models import Application, ApplicationNote, Priority, ScoreCriteria
from portal.models.application import DEFAULT_APPLICATION_TYPE


class CamelSchema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReviewDecision(str, enum.Enum):
    """The two outcomes a reviewer can choose."""
    APPROVED = "approved"
    DENIED = "denied"


class ApplicationSubmission(BaseModel):
    """
    Request body for a new application.

    Any keys besides applicationType are stored as form answers.
    """
    application_type: str = Field(default=DEFAULT_APPLICATION_TYPE, alias="applicationType")

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @field_validator("application_type", mode="before")
    @classmethod
    def _default_type(cls, value):
        return value or DEFAULT_APPLICATION_TYPE

    def answers(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class SubmissionResponse(CamelSchema):
    message: str
    id: str
    priority: Priority


class StatusUpdateRequest(CamelSchema):
    """Request body for approving or denying an application."""
    status: ReviewDecision
    reason: Optional[str] = None


class ReviewResponse(CamelSchema):
    message: str
    discord_message_sent: bool
    email_sent: bool
    application: Application


class NoteCreate(CamelSchema):
    content: str

    @field_validator("content")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Note content is required")
        return value


class NoteResponse(CamelSchema):
    note: ApplicationNote


class NotesResponse(CamelSchema):
    notes: List[ApplicationNote]


class PriorityUpdate(CamelSchema):
    priority: Priority
    # Shared secret sent by the bot when roles change
    system_update: Optional[str] = None


class AssignUpdate(CamelSchema):
    assigned_to: Optional[str] = None


class BulkActionRequest(CamelSchema):
    action: str
    application_ids: List[str]
    priority: Optional[Priority] = None
    assigned_to: Optional[str] = None


class BulkActionResponse(CamelSchema):
    success: bool
    count: int


class SuccessResponse(CamelSchema):
    success: bool = True


class ApplicationFilters(CamelSchema):
    search: Optional[str] = None
    status: Optional[Literal["pending", "approved", "denied", "all"]] = None
    priority: Optional[Literal["low", "normal", "high", "urgent", "all"]] = None
    assigned_to: Optional[str] = None
    application_type: Optional[str] = None
    date_from: Optional[date | datetime] = None
    date_to: Optional[date | datetime] = None
    include_archived: bool = False


class MyStatusResponse(CamelSchema):
    applications: List[Application]
    latest_application: Optional[Application] = None
    total_applications: int
    pending_applications: int


class DailyCount(CamelSchema):
    date: str
    count: int


class ReviewerCount(CamelSchema):
    admin_id: str
    count: int


class ApplicationStats(CamelSchema):
    total: int
    pending: int
    approved: int
    denied: int
    by_priority: Dict[str, int]
    average_review_time: float  # hours
    approval_rate: float  # percent
    by_day: List[DailyCount]
    by_admin: List[ReviewerCount]


class DraftSave(BaseModel):
    """
    Request body for saving a draft. Any keys besides id are kept as answers.
    """
    id: Optional[str] = None

    model_config = ConfigDict(extra="allow")

    def answers(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class DraftSaveResponse(CamelSchema):
    success: bool = True
    id: str


class ScoreRequest(CamelSchema):
    """Criteria are calculated from the answers when left out."""
    application_id: Optional[str] = None
    criteria: Optional[ScoreCriteria] = None
    notes: Optional[str] = None
