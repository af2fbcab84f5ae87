"""Ban/blacklist management schemas."""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from portal.models import BanEntry, BlacklistEntry


class ModerationRequest(BaseModel):
    """Request body for banning or blacklisting a user."""
    action: Literal["ban", "blacklist"]
    discord_id: str = Field(min_length=1)
    reason: str = Field(min_length=1)
    admin: str = Field(min_length=1)
    expires: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ModerationRemoval(BaseModel):
    """Request body for lifting a ban or blacklist entry."""
    action: Literal["unban", "unblacklist"]
    discord_id: str = Field(min_length=1)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ModerationLists(BaseModel):
    bans: List[BanEntry]
    blacklist: List[BlacklistEntry]


class ModerationResponse(BaseModel):
    message: str
    entry: Optional[dict] = None  # the stored ban or blacklist document
