from typing import Optional

from pydantic import Field

from portal.models.common import Record, UtcDatetime, utcnow

# Each criterion is worth up to this many points
CRITERION_MAX = 25


class ScoreCriteria(Record):
    experience_quality: int = Field(default=0, ge=0, le=CRITERION_MAX)
    character_depth: int = Field(default=0, ge=0, le=CRITERION_MAX)
    completeness: int = Field(default=0, ge=0, le=CRITERION_MAX)
    length: int = Field(default=0, ge=0, le=CRITERION_MAX)

    def total(self) -> int:
        return self.experience_quality + self.character_depth + self.completeness + self.length


class ApplicationScore(Record):
    """Staff quality score of an application. At most one per application."""
    application_id: str
    overall_score: int
    criteria: ScoreCriteria
    reviewed_by: str
    reviewed_at: UtcDatetime = Field(default_factory=utcnow)
    notes: Optional[str] = None
