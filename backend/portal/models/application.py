import enum
from typing import Optional

from pydantic import Field, field_validator

from portal.models.common import Record, UtcDatetime, utcnow


DEFAULT_APPLICATION_TYPE = "whitelist"


class ApplicationStatus(str, enum.Enum):
    """Review state of an application."""
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class Priority(str, enum.Enum):
    """Triage tag on a pending application."""
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class DiscordIdentity(Record):
    """Snapshot of the submitter's Discord account at submission time."""
    id: str
    username: str
    discriminator: Optional[str] = None
    avatar: Optional[str] = None
    email: Optional[str] = None


class ApplicationNote(Record):
    id: str
    author_id: str
    author_name: str
    content: str
    timestamp: UtcDatetime = Field(default_factory=utcnow)


class Application(Record):
    """
    A submitted application.

    Lives in exactly one of the active or archived collections. Form answers
    (username, age, steamId, ...) are kept as extra keys.
    """
    id: str
    timestamp: UtcDatetime = Field(default_factory=utcnow)
    discord: DiscordIdentity
    application_type: str = DEFAULT_APPLICATION_TYPE
    status: ApplicationStatus = ApplicationStatus.PENDING
    priority: Priority = Priority.NORMAL
    notes: list[ApplicationNote] = Field(default_factory=list)

    # Set by the review transition
    status_reason: Optional[str] = None
    reviewer: Optional[str] = None
    reviewed_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None

    assigned_to: Optional[str] = None
    archived_at: Optional[UtcDatetime] = None

    @field_validator("application_type", mode="before")
    @classmethod
    def _default_type(cls, value):
        # Records written before the type system have no type
        return value or DEFAULT_APPLICATION_TYPE

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, value):
        return value or ApplicationStatus.PENDING

    @field_validator("priority", mode="before")
    @classmethod
    def _default_priority(cls, value):
        return value or Priority.NORMAL

    @property
    def display_name(self) -> str:
        """Name shown to staff: the in-game username answer, else Discord name."""
        return (self.model_extra or {}).get("username") or self.discord.username

    def is_pending(self) -> bool:
        return self.status == ApplicationStatus.PENDING

    def decided_at(self):
        """When the final decision was recorded, falling back to submission time."""
        return self.updated_at or self.timestamp
