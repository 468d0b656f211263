# db/models/score.py
import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import Enum as SAEnum, DateTime, Float, ForeignKey, JSON, Text, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from trove.db.models._base import Base
from trove.db.enums import ScoreStatus

class Score(Base):
    __tablename__ = "score"
    __table_args__ = (
        UniqueConstraint("submission_id", "judge_id", name="uq_score_submission_judge"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    submission_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("submission.id", ondelete="CASCADE"), nullable=False, index=True
    )
    judge_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    rubric_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("rubric.id", ondelete="CASCADE"), nullable=False
    )
    scores: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    total_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    weighted_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    overall_comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    compared_with: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[ScoreStatus] = mapped_column(
        SAEnum(ScoreStatus, name="score_status"),
        nullable=False,
        default=ScoreStatus.COMPLETED,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, server_default=func.now())

    judge = relationship("User")
