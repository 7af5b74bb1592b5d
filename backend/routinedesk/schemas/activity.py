from datetime import datetime

from pydantic import BaseModel, Field


class ActivityLogOut(BaseModel):
    id: str
    actor_id: str | None = None
    action: str
    entity_type: str
    entity_id: str | None = None
    academic_year_id: str | None = None
    day_index: int | None = None
    details: dict = Field(default_factory=dict)
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
