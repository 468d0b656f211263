# db/models/leaderboard.py
import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import Boolean, DateTime, ForeignKey, JSON, String, Index, UniqueConstraint, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column
from trove.db.models._base import Base

class Leaderboard(Base):
    __tablename__ = "leaderboard"
    __table_args__ = (
        UniqueConstraint("event_id", "track_id", name="uq_leaderboard_event_track"),
        # NULLs are distinct in the constraint above; one event-wide row per event
        Index(
            "uq_leaderboard_event_wide",
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
    entries: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    last_updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, server_default=func.now())
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
