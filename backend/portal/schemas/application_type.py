"""Application type registry schemas."""
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from portal.models.application_type import FieldDefinition


class ApplicationTypeCreate(BaseModel):
    """Request body for registering a new application type."""
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: Optional[str] = None
    cooldown_days: int = Field(default=0, ge=0)
    allow_multiple_pending: bool = False
    unique_approved: bool = Field(
        default=False,
        validation_alias=AliasChoices("uniqueApproved", "requireUniqueApproval", "unique_approved"),
    )
    fields: list[FieldDefinition] = Field(default_factory=list)
    enabled: bool = True

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApplicationTypePatch(BaseModel):
    """
    Partial update of an application type.

    Only these fields may be changed, and only the ones present in the
    request body are applied.
    """
    id: str = Field(min_length=1)
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    cooldown_days: Optional[int] = Field(default=None, ge=0)
    allow_multiple_pending: Optional[bool] = None
    unique_approved: Optional[bool] = Field(
        default=None,
        validation_alias=AliasChoices("uniqueApproved", "requireUniqueApproval", "unique_approved"),
    )
    fields: Optional[list[FieldDefinition]] = None
    enabled: Optional[bool] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator(
        "name", "cooldown_days", "allow_multiple_pending", "unique_approved", "fields", "enabled"
    )
    @classmethod
    def _not_null(cls, value):
        # Omit a field to keep it; only description can be cleared
        if value is None:
            raise ValueError("may not be null")
        return value

    def changes(self) -> dict:
        """Field name -> new value, for the fields the caller supplied."""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if name != "id"
        }


class ApplicationTypeResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    cooldown_days: int
    allow_multiple_pending: bool
    unique_approved: bool
    fields: list[FieldDefinition]
    enabled: bool

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)
