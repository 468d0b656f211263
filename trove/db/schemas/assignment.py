# db/schemas/assignment.py
import uuid
from datetime import datetime
from typing import Optional
from pydantic import Field
from trove.db.schemas._base import OrmModel
from trove.db.schemas.user import JudgeSummary
from trove.db.schemas.team import TeamSummary
from trove.db.schemas.submission import SubmissionRead

class AssignmentRead(OrmModel):
    id: uuid.UUID
    event_id: uuid.UUID
    judge_id: uuid.UUID
    submission_ids: list[uuid.UUID] = Field(default_factory=list)
    track_id: Optional[str] = None
    completed_count: int = 0
    total_count: int = 0
    created_at: datetime

class AssignmentWithJudge(AssignmentRead):
    judge: Optional[JudgeSummary] = None

class AssignedSubmission(OrmModel):
    submission: SubmissionRead
    team: Optional[TeamSummary] = None
    is_scored: bool = False
    score_id: Optional[uuid.UUID] = None

class AssignmentDetail(AssignmentRead):
    submissions: list[AssignedSubmission] = Field(default_factory=list)
