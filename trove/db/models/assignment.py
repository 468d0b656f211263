# db/models/assignment.py
import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import DateTime, ForeignKey, Integer, JSON, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from trove.db.models._base import Base

class Assignment(Base):
    __tablename__ = "assignment"
    __table_args__ = (
        UniqueConstraint("event_id", "judge_id", name="uq_assignment_event_judge"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("event.id", ondelete="CASCADE"), nullable=False, index=True
    )
    judge_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # submission ids as strings, in assignment order
    submission_ids: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    track_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    completed_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, server_default=func.now())

    judge = relationship("User")
