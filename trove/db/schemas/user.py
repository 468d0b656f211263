# db/schemas/user.py
import uuid
from typing import Optional
from trove.db.schemas._base import OrmModel
from trove.db.enums import UserRole
from trove.utils.sentinels import Missing

class UserBase(OrmModel):
    tg_id: Optional[int] = None
    tg_username: Optional[str] = None
    display_name: str
    avatar_url: Optional[str] = None
    role: UserRole = UserRole.PARTICIPANT

class UserCreate(UserBase): ...
class UserUpdate(OrmModel):
    id: uuid.UUID
    tg_username: str | Missing | None = Missing()
    display_name: str | Missing = Missing()
    avatar_url: str | Missing | None = Missing()
    role: UserRole | Missing = Missing()

class UserRead(UserBase):
    id: uuid.UUID

class JudgeSummary(OrmModel):
    """Display identity attached to scores and assignments."""
    id: uuid.UUID
    display_name: str
    avatar_url: Optional[str] = None
