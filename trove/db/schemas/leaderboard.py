# db/schemas/leaderboard.py
import uuid
from datetime import datetime
from typing import Optional
from pydantic import Field
from trove.db.schemas._base import OrmModel

class LeaderboardEntry(OrmModel):
    rank: int
    team_id: uuid.UUID
    team_name: str
    project_name: str
    score: float
    avatar_url: Optional[str] = None

class LeaderboardRead(OrmModel):
    # None for a live view that has never been published
    id: Optional[uuid.UUID] = None
    event_id: uuid.UUID
    track_id: Optional[str] = None
    entries: list[LeaderboardEntry] = Field(default_factory=list)
    last_updated_at: datetime
    is_published: bool = False

class GlobalTopEntry(OrmModel):
    team_id: uuid.UUID
    team_name: str
    project_name: str
    event_title: str
    rank: int
    score: float
    event_date: Optional[datetime] = None
