# db/models/rubric.py
import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import DateTime, Float, ForeignKey, JSON, String, Index, UniqueConstraint, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column
from trove.db.models._base import Base

class Rubric(Base):
    __tablename__ = "rubric"
    __table_args__ = (
        UniqueConstraint("event_id", "track_id", name="uq_rubric_event_track"),
        # NULLs are distinct in the constraint above; one event-wide row per event
        Index(
            "uq_rubric_event_wide",
            "event_id",
            unique=True,
            postgresql_where=text("track_id IS NULL"),
            sqlite_where=text("track_id IS NULL"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("event.id", ondelete="CASCADE"), nullable=False, index=True
    )
    track_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    criteria: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    total_max_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, server_default=func.now())
