from pydantic import Field

from portal.models.application import DiscordIdentity
from portal.models.common import Record, UtcDatetime, utcnow


class ApplicationDraft(Record):
    """
    A partly filled application form saved by its owner.

    Draft ids are only unique per owner. Form answers are kept as extra keys.
    """
    id: str
    discord: DiscordIdentity
    last_saved: UtcDatetime = Field(default_factory=utcnow)
