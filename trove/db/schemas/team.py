# db/schemas/team.py
import uuid
from typing import Optional
from trove.db.schemas._base import OrmModel

class TeamBase(OrmModel):
    event_id: uuid.UUID
    name: str
    slug: str
    avatar_url: Optional[str] = None
    track_id: Optional[str] = None

class TeamCreate(TeamBase): ...
class TeamRead(TeamBase):
    id: uuid.UUID
    has_submitted: bool = False

class TeamSummary(OrmModel):
    id: uuid.UUID
    name: str
    avatar_url: Optional[str] = None
