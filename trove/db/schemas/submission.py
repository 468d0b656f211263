# db/schemas/submission.py
import uuid
from datetime import datetime
from typing import Optional
from pydantic import Field
from trove.db.schemas._base import OrmModel
from trove.db.enums import SubmissionStatus

class SubmissionBase(OrmModel):
    event_id: uuid.UUID
    team_id: uuid.UUID
    track_id: Optional[str] = None
    project_name: str = ""
    tagline: str = ""
    problem_statement: str = ""
    solution: str = ""
    tech_stack: list[str] = Field(default_factory=list)
    key_features: list[str] = Field(default_factory=list)

class SubmissionCreate(SubmissionBase):
    status: SubmissionStatus = SubmissionStatus.DRAFT
    submitted_at: Optional[datetime] = None

class SubmissionRead(SubmissionBase):
    id: uuid.UUID
    status: SubmissionStatus
    submitted_at: Optional[datetime] = None
    average_score: Optional[float] = None
    total_judges: Optional[int] = None
    rank: Optional[int] = None
    created_at: datetime
    updated_at: datetime

class SubmissionRanking(OrmModel):
    """Denormalized ranking output patched onto a submission."""
    id: uuid.UUID
    average_score: float
    total_judges: int
    rank: int
