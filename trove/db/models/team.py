# db/models/team.py
import uuid
from typing import Optional
from sqlalchemy import Boolean, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from trove.db.models._base import Base

class Team(Base):
    __tablename__ = "team"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("event.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    slug: Mapped[str] = mapped_column(String(128), nullable=False)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    track_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    has_submitted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
