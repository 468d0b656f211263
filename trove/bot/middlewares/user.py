# bot/middlewares/user.py
from typing import Callable, Awaitable, Any, Dict, Optional
from aiogram import BaseMiddleware
from aiogram.types import User as TgUser
from trove.bot.services.user import UserService
from trove.bot.services.audit_log import audit_logger


class UserMiddleware(BaseMiddleware):
	"""Resolves the Telegram sender to ``current_user`` and binds it as the audit actor."""

	def __init__(self) -> None:
		self._user_service = UserService()

	async def __call__(self,
		handler: Callable[[Any, Dict[str, Any]], Awaitable[Any]],
		event: Any,
		data: dict[str, Any]) -> Any:
		tg_user: Optional[TgUser] = data.get("event_from_user")
		if tg_user is None or tg_user.is_bot:
			return

		user = await self._user_service.get_or_create_by_tg(
			tg_user.id,
			tg_username=tg_user.username,
			display_name=tg_user.full_name,
		)
		data["current_user"] = user

		token = audit_logger.bind_actor(user.id)
		try:
			return await handler(event, data)
		finally:
			audit_logger.unbind_actor(token)
