"""Notification feed schemas."""
from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StaleApplication(BaseModel):
    id: str
    username: str
    timestamp: datetime
    days_old: int

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StaleApplicationsResponse(BaseModel):
    stale: List[StaleApplication]
    count: int

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
