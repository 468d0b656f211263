# db/models/user.py
import uuid
from typing import Optional
from sqlalchemy import Enum as SAEnum, String, BigInteger, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from trove.db.models._base import Base
from trove.db.enums import UserRole

class User(Base):
    __tablename__ = "user"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tg_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True, unique=True)
    tg_username: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    display_name: Mapped[str] = mapped_column(String(256), nullable=False)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    role: Mapped[UserRole] = mapped_column(SAEnum(UserRole, name="user_role"), nullable=False, default=UserRole.PARTICIPANT)

    audit_logs = relationship("AuditLog", back_populates="actor", passive_deletes=True)
