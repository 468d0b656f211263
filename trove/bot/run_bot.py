# bot/run_bot.py
import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.client.session.aiohttp import AiohttpSession
from aiogram.client.telegram import TelegramAPIServer
from aiogram.enums import ParseMode

from trove.config import Settings
from trove.bot.middlewares.user import UserMiddleware
from trove.bot.routers.leaderboard import router as LeaderboardRouter
from trove.bot.routers.judging import router as JudgingRouter
from trove.db.database import DataBase

logging.basicConfig(level=logging.INFO)


def setup_dispatcher(dp: Dispatcher) -> None:
    dp.update.outer_middleware(UserMiddleware())

def setup_routers(dp: Dispatcher) -> None:
    dp.include_router(LeaderboardRouter)
    dp.include_router(JudgingRouter)

async def main() -> None:
    settings = Settings()
    if not settings.bot_token:
        raise RuntimeError("Bot token is not set.")

    session = None
    if settings.bot_api_server:
        session = AiohttpSession(api=TelegramAPIServer.from_base(settings.bot_api_server, is_local=True))
    bot = Bot(
        settings.bot_token,
        session=session,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )

    dp = Dispatcher()
    setup_dispatcher(dp)
    setup_routers(dp)

    await DataBase().create_all()

    await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
