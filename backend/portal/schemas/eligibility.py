"""Eligibility-related Pydantic schemas."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class LastDenied(BaseModel):
    """The denial a cooldown is counted from."""
    id: str
    timestamp: datetime
    updated_at: Optional[datetime] = None
    status_reason: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EligibilityDecision(BaseModel):
    """
    Whether a user may submit an application of a type, and why not.

    Cooldown fields are only populated when a previous denial exists.
    """
    can_reapply: bool
    reason: str
    message: str
    cooldown_ends: Optional[datetime] = None
    days_remaining: Optional[int] = None
    total_denied: Optional[int] = None
    last_denied: Optional[LastDenied] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
