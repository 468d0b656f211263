# db/schemas/score.py
import uuid
from datetime import datetime
from typing import Optional
from pydantic import Field
from trove.db.schemas._base import OrmModel
from trove.db.schemas.user import JudgeSummary
from trove.db.enums import ScoreStatus

class ScoreEntry(OrmModel):
    criteria_id: str
    score: float
    comment: Optional[str] = None

class ScoreUpsert(OrmModel):
    submission_id: uuid.UUID
    judge_id: uuid.UUID
    rubric_id: uuid.UUID
    scores: list[ScoreEntry] = Field(default_factory=list)
    total_score: float
    weighted_score: float
    overall_comment: Optional[str] = None
    compared_with: list[uuid.UUID] = Field(default_factory=list)
    status: ScoreStatus = ScoreStatus.COMPLETED

class ScoreRead(ScoreUpsert):
    id: uuid.UUID
    created_at: datetime
    updated_at: datetime

class ScoreWithJudge(ScoreRead):
    judge: Optional[JudgeSummary] = None
