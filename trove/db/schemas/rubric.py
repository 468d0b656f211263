# db/schemas/rubric.py
import uuid
from datetime import datetime
from typing import Optional
from pydantic import Field
from trove.db.schemas._base import OrmModel

class RubricCriterion(OrmModel):
    id: str
    name: str
    description: str = ""
    max_score: float
    weight: float = 1.0

class RubricBase(OrmModel):
    event_id: uuid.UUID
    track_id: Optional[str] = None
    criteria: list[RubricCriterion] = Field(default_factory=list)

class RubricCreate(RubricBase): ...
class RubricRead(RubricBase):
    id: uuid.UUID
    total_max_score: float
    created_at: datetime
    updated_at: datetime

    def criterion(self, criteria_id: str) -> Optional[RubricCriterion]:
        for c in self.criteria:
            if c.id == criteria_id:
                return c
        return None
