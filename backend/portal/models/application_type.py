import enum
from typing import Optional

from pydantic import AliasChoices, Field

from portal.models.common import Record, UtcDatetime, utcnow


class FieldType(str, enum.Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    SELECT = "select"
    CHECKBOX = "checkbox"


class FieldDefinition(Record):
    """One question on an application form."""
    id: str
    label: str
    type: FieldType = FieldType.TEXT
    required: bool = False
    options: Optional[list[str]] = None
    placeholder: Optional[str] = None


class ApplicationType(Record):
    """
    Configuration profile for a category of application.

    cooldown_days: minimum days between a denial and a new submission
    allow_multiple_pending: if False, one pending application per user
    unique_approved: if True, one approval blocks further submissions forever
    """
    id: str
    name: str
    description: Optional[str] = None
    cooldown_days: int = Field(default=0, ge=0)
    allow_multiple_pending: bool = False
    unique_approved: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "uniqueApproved", "requireUniqueApproval", "unique_approved"
        ),
        serialization_alias="uniqueApproved",
    )
    fields: list[FieldDefinition] = Field(default_factory=list)
    enabled: bool = True
    created_at: UtcDatetime = Field(default_factory=utcnow)

    def required_field_ids(self) -> list[str]:
        return [f.id for f in self.fields if f.required]


def fallback_type(type_id: str) -> ApplicationType:
    """Config applied to applications whose type is not registered."""
    return ApplicationType(
        id=type_id,
        name=type_id,
        cooldown_days=0,
        unique_approved=False,
        allow_multiple_pending=False,
    )
