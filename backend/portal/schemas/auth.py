"""Auth-related Pydantic schemas."""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from portal.models import DiscordIdentity


class SessionResponse(BaseModel):
    """Response after registering a session."""
    access_token: str
    user_id: str
    username: str

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MeResponse(BaseModel):
    """The caller's identity and resolved permission tiers."""
    discord: DiscordIdentity
    roles: list[str]
    is_staff: bool
    is_admin: bool
    is_moderator: bool
    is_reviewer: bool

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
