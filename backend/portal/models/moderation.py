from typing import Optional

from portal.models.common import Record


# Entries are matched on discord_id alone; the rest is informational and
# may be missing from hand-edited files.
class BanEntry(Record):
    discord_id: str
    reason: Optional[str] = None
    admin: Optional[str] = None
    expires: Optional[str] = None


class BlacklistEntry(Record):
    discord_id: str
    reason: Optional[str] = None
    admin: Optional[str] = None
    date: Optional[str] = None  # YYYY-MM-DD
