# db/schemas/event.py
import uuid
from datetime import datetime
from typing import Optional
from trove.db.schemas._base import OrmModel
from trove.db.enums import EventStatus

class EventBase(OrmModel):
    title: str
    slug: str
    status: EventStatus = EventStatus.DRAFT
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None

class EventCreate(EventBase): ...
class EventRead(EventBase):
    id: uuid.UUID
    submission_count: int = 0
