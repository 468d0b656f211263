# db/models/submission.py
import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import Enum as SAEnum, DateTime, Float, ForeignKey, Index, Integer, JSON, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column
from trove.db.models._base import Base
from trove.db.enums import SubmissionStatus

class Submission(Base):
    __tablename__ = "submission"
    __table_args__ = (
        Index("ix_submission_event_track", "event_id", "track_id"),
        Index("ix_submission_event_status", "event_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("event.id", ondelete="CASCADE"), nullable=False, index=True
    )
    team_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("team.id", ondelete="CASCADE"), nullable=False, index=True
    )
    track_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    project_name: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    tagline: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    problem_statement: Mapped[str] = mapped_column(Text, nullable=False, default="")
    solution: Mapped[str] = mapped_column(Text, nullable=False, default="")
    tech_stack: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    key_features: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    status: Mapped[SubmissionStatus] = mapped_column(
        SAEnum(SubmissionStatus, name="submission_status"),
        nullable=False,
        default=SubmissionStatus.DRAFT,
    )
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=False), nullable=True)

    # written by the ranking run only
    average_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    total_judges: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    rank: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, server_default=func.now())

