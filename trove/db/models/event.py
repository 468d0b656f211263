# db/models/event.py
import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import Enum as SAEnum, DateTime, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column
from trove.db.models._base import Base
from trove.db.enums import EventStatus

class Event(Base):
    __tablename__ = "event"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    slug: Mapped[str] = mapped_column(String(128), nullable=False, unique=True, index=True)
    status: Mapped[EventStatus] = mapped_column(
        SAEnum(EventStatus, name="event_status"),
        nullable=False,
        default=EventStatus.DRAFT,
        index=True,
    )
    start_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=False), nullable=True)
    end_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=False), nullable=True)
    submission_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, server_default=func.now())
