# bot/services/user.py
from uuid import UUID
from typing import Self, ClassVar, Optional

from trove.db.database import DataBase
from trove.db.enums import UserRole
from trove.db.schemas.user import UserCreate, UserRead, UserUpdate
from trove.bot.services.audit_log import instrument_service_class
from trove.utils.errors import UserNotFound


class UserService:
    _instance: ClassVar[Optional["UserService"]] = None

    def __new__(cls) -> Self:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if getattr(self, "_initialized", False):
            return

        self.database = DataBase()
        self.users: dict[int, UserRead] = dict()
        self._initialized = True

    async def create_user(self, user: UserCreate) -> UserRead:
        new_user = await self.database.create_user(user)
        if isinstance(new_user.tg_id, int):
            self.users[new_user.tg_id] = new_user
        return new_user

    async def get_user(self, uid: UUID) -> UserRead:
        user = await self.database.get_user_by_id(uid)
        if user is None:
            raise UserNotFound()
        return user

    async def get_or_create_by_tg(
        self,
        tg_id: int,
        tg_username: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> UserRead:
        """
        Resolve the Telegram account to a user, creating a participant on first contact.
        The username is kept in sync; role is never changed here.
        """
        if tg_username and tg_username.startswith("@"):
            tg_username = tg_username[1:]

        user = self.users.get(tg_id)
        if user is None:
            user = await self.database.get_user_by_tg_id(tg_id)
        if user is None:
            user = await self.create_user(
                UserCreate(
                    tg_id=tg_id,
                    tg_username=tg_username,
                    display_name=display_name or tg_username or str(tg_id),
                )
            )
        elif tg_username is not None and user.tg_username != tg_username:
            user = await self.database.update_user(UserUpdate(id=user.id, tg_username=tg_username))

        self.users[tg_id] = user
        return user

    async def set_role(self, user_id: UUID, role: UserRole) -> UserRead:
        try:
            updated = await self.database.update_user(UserUpdate(id=user_id, role=role))
        except LookupError as exc:
            raise UserNotFound() from exc
        if isinstance(updated.tg_id, int):
            self.users[updated.tg_id] = updated
        return updated


instrument_service_class(UserService, prefix="services.user", exclude=("get_or_create_by_tg",))
