# bot/routers/leaderboard.py
from aiogram import Router, html
from aiogram.filters import Command, CommandObject
from aiogram.types import Message

from trove.bot.routers.utils import event_and_track, format_score, get_localizer, is_staff, track_label
from trove.bot.services.event import EventService
from trove.bot.services.leaderboard import LeaderboardService
from trove.db.schemas.leaderboard import LeaderboardRead
from trove.db.schemas.user import UserRead
from trove.i18n import Localizer
from trove.utils.errors import TroveError


router = Router(name="leaderboard")


def render_leaderboard(board: LeaderboardRead, event_title: str, lz: Localizer) -> str:
	if board.is_published:
		state = lz.get("leaderboard.state.published", updated=board.last_updated_at.strftime("%Y-%m-%d %H:%M UTC"))
	else:
		state = lz.get("leaderboard.state.live")
	header = lz.get(
		"leaderboard.header",
		event=html.quote(event_title),
		track=html.quote(track_label(board.track_id, lz)),
		state=state,
	)
	if not board.entries:
		return f"{header}\n\n{lz.get('leaderboard.empty')}"

	rows = [
		lz.get(
			"leaderboard.row",
			rank=str(e.rank),
			team=html.quote(e.team_name),
			project=html.quote(e.project_name or lz.get("common.dash")),
			score=format_score(e.score),
		)
		for e in board.entries
	]
	return f"{header}\n\n" + "\n".join(rows)


@router.message(Command("leaderboard"))
async def leaderboard_cmd(message: Message, command: CommandObject, current_user: UserRead) -> None:
	lz = get_localizer()
	slug, track_id = event_and_track(command.args)
	if slug is None:
		await message.answer(lz.get("leaderboard.usage"))
		return
	try:
		event = await EventService().get_event_by_slug(slug)
		board = await LeaderboardService().get_by_event(event.id, track_id)
	except TroveError as exc:
		await message.answer(lz.get("common.error", message=html.quote(exc.message)))
		return
	await message.answer(render_leaderboard(board, event.title, lz))


@router.message(Command("top"))
async def global_top_cmd(message: Message, command: CommandObject, current_user: UserRead) -> None:
	lz = get_localizer()
	limit = None
	if command.args and command.args.strip():
		raw = command.args.strip()
		if not raw.isdigit() or int(raw) <= 0:
			await message.answer(lz.get("leaderboard.top.bad_limit"))
			return
		limit = int(raw)

	top = await LeaderboardService().get_global_top(limit)
	if not top:
		await message.answer(lz.get("leaderboard.top.empty"))
		return
	rows = [
		lz.get(
			"leaderboard.top.row",
			rank=str(t.rank),
			team=html.quote(t.team_name),
			project=html.quote(t.project_name or lz.get("common.dash")),
			event=html.quote(t.event_title),
			score=format_score(t.score),
		)
		for t in top
	]
	await message.answer(lz.get("leaderboard.top.header") + "\n\n" + "\n".join(rows))


@router.message(Command("publish"))
async def publish_cmd(message: Message, command: CommandObject, current_user: UserRead) -> None:
	lz = get_localizer()
	if not is_staff(current_user):
		await message.answer(lz.get("common.not_allowed"))
		return
	slug, track_id = event_and_track(command.args)
	if slug is None:
		await message.answer(lz.get("leaderboard.usage"))
		return
	try:
		event = await EventService().get_event_by_slug(slug)
		board = await LeaderboardService().publish(event.id, track_id)
	except TroveError as exc:
		await message.answer(lz.get("common.error", message=html.quote(exc.message)))
		return
	await message.answer(
		lz.get(
			"leaderboard.published",
			event=html.quote(event.title),
			track=html.quote(track_label(track_id, lz)),
			count=str(len(board.entries)),
		)
	)


@router.message(Command("unpublish"))
async def unpublish_cmd(message: Message, command: CommandObject, current_user: UserRead) -> None:
	lz = get_localizer()
	if not is_staff(current_user):
		await message.answer(lz.get("common.not_allowed"))
		return
	slug, track_id = event_and_track(command.args)
	if slug is None:
		await message.answer(lz.get("leaderboard.usage"))
		return
	try:
		event = await EventService().get_event_by_slug(slug)
		board = await LeaderboardService().unpublish(event.id, track_id)
	except TroveError as exc:
		await message.answer(lz.get("common.error", message=html.quote(exc.message)))
		return
	key = "leaderboard.unpublished" if board is not None else "leaderboard.unpublish_missing"
	await message.answer(lz.get(key, event=html.quote(event.title), track=html.quote(track_label(track_id, lz))))
