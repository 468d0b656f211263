# bot/routers/judging.py
import math
import uuid
from typing import Optional

from aiogram import Router, html
from aiogram.filters import Command, CommandObject
from aiogram.types import Message

from trove.bot.routers.utils import event_and_track, format_score, get_localizer, is_judge, is_staff, parse_uuid, split_args, track_label
from trove.bot.services.assignment import AssignmentService
from trove.bot.services.event import EventService
from trove.bot.services.ranking import RankingService
from trove.bot.services.rubric import RubricService
from trove.bot.services.scoring import ScoringService
from trove.bot.services.submission import SubmissionService
from trove.db.schemas.score import ScoreEntry
from trove.db.schemas.user import UserRead
from trove.utils.errors import AssignmentNotFound, TroveError


router = Router(name="judging")


class ScoreCommandError(ValueError):
	def __init__(self, key: str, **params: str) -> None:
		super().__init__(key)
		self.key = key
		self.params = params


def parse_score_command(args: Optional[str]) -> tuple[uuid.UUID, list[ScoreEntry], Optional[str]]:
	"""
	``<submission-id> <criterion>=<value> ... [| overall comment]``

	Raises ScoreCommandError carrying the locale key to answer with.
	"""
	if not args or not args.strip():
		raise ScoreCommandError("judging.score.usage")

	body, sep, comment = args.partition("|")
	parts = body.split()
	if len(parts) < 2:
		raise ScoreCommandError("judging.score.usage")

	submission_id = parse_uuid(parts[0])
	if submission_id is None:
		raise ScoreCommandError("common.bad_id", value=html.quote(parts[0]))

	entries: list[ScoreEntry] = []
	for token in parts[1:]:
		criteria_id, eq, raw = token.partition("=")
		if not eq or not criteria_id:
			raise ScoreCommandError("judging.score.usage")
		try:
			value = float(raw.replace(",", "."))
		except ValueError:
			raise ScoreCommandError("judging.score.bad_value", value=html.quote(token)) from None
		if not math.isfinite(value):
			raise ScoreCommandError("judging.score.bad_value", value=html.quote(token))
		entries.append(ScoreEntry(criteria_id=criteria_id, score=value))

	comment = comment.strip() if sep else ""
	return submission_id, entries, comment or None


@router.message(Command("queue"))
async def queue_cmd(message: Message, command: CommandObject, current_user: UserRead) -> None:
	lz = get_localizer()
	if not is_judge(current_user):
		await message.answer(lz.get("common.not_allowed"))
		return
	slug, _ = event_and_track(command.args)
	if slug is None:
		await message.answer(lz.get("judging.queue.usage"))
		return
	try:
		event = await EventService().get_event_by_slug(slug)
		detail = await AssignmentService().get_assignment(event.id, current_user.id)
	except AssignmentNotFound:
		await message.answer(lz.get("judging.queue.none", event=html.quote(slug)))
		return
	except TroveError as exc:
		await message.answer(lz.get("common.error", message=html.quote(exc.message)))
		return

	lines = [
		lz.get(
			"judging.queue.header",
			event=html.quote(event.title),
			completed=str(detail.completed_count),
			total=str(detail.total_count),
		)
	]
	for item in detail.submissions:
		lines.append(
			lz.get(
				"judging.queue.item",
				mark=lz.get("judging.queue.scored" if item.is_scored else "judging.queue.pending"),
				id=str(item.submission.id),
				project=html.quote(item.submission.project_name or lz.get("common.dash")),
				team=html.quote(item.team.name if item.team else lz.get("common.dash")),
			)
		)
	await message.answer("\n".join(lines))


@router.message(Command("score"))
async def score_cmd(message: Message, command: CommandObject, current_user: UserRead) -> None:
	lz = get_localizer()
	if not is_judge(current_user):
		await message.answer(lz.get("common.not_allowed"))
		return
	try:
		submission_id, entries, comment = parse_score_command(command.args)
	except ScoreCommandError as exc:
		await message.answer(lz.get(exc.key, **exc.params))
		return

	try:
		submission = await SubmissionService().get_submission(submission_id)
		rubric = await RubricService().get_rubric(submission.event_id, submission.track_id)
		if rubric is None:
			await message.answer(lz.get("judging.score.no_rubric"))
			return
		score = await ScoringService().submit_score(
			submission.id, current_user.id, rubric.id, entries, overall_comment=comment
		)
	except TroveError as exc:
		await message.answer(lz.get("common.error", message=html.quote(exc.message)))
		return

	await message.answer(
		lz.get(
			"judging.score.saved",
			total=format_score(score.total_score),
			weighted=format_score(score.weighted_score),
			max=format_score(rubric.total_max_score),
		)
	)


@router.message(Command("rank"))
async def rank_cmd(message: Message, command: CommandObject, current_user: UserRead) -> None:
	lz = get_localizer()
	if not is_staff(current_user):
		await message.answer(lz.get("common.not_allowed"))
		return
	slug, track_id = event_and_track(command.args)
	if slug is None:
		await message.answer(lz.get("judging.rank.usage"))
		return
	try:
		event = await EventService().get_event_by_slug(slug)
		count = await RankingService().calculate_rankings(event.id, track_id)
	except TroveError as exc:
		await message.answer(lz.get("common.error", message=html.quote(exc.message)))
		return
	await message.answer(
		lz.get(
			"judging.rank.done",
			count=str(count),
			event=html.quote(event.title),
			track=html.quote(track_label(track_id, lz)),
		)
	)


@router.message(Command("progress"))
async def progress_cmd(message: Message, command: CommandObject, current_user: UserRead) -> None:
	lz = get_localizer()
	if not is_staff(current_user):
		await message.answer(lz.get("common.not_allowed"))
		return
	args = split_args(command.args)
	if not args:
		await message.answer(lz.get("judging.progress.usage"))
		return
	try:
		event = await EventService().get_event_by_slug(args[0])
		assignments = await AssignmentService().list_assignments(event.id)
	except TroveError as exc:
		await message.answer(lz.get("common.error", message=html.quote(exc.message)))
		return

	lines = [lz.get("judging.progress.header", event=html.quote(event.title))]
	if not assignments:
		lines.append(lz.get("judging.progress.empty"))
	for a in assignments:
		lines.append(
			lz.get(
				"judging.progress.row",
				judge=html.quote(a.judge.display_name if a.judge else str(a.judge_id)),
				completed=str(a.completed_count),
				total=str(a.total_count),
			)
		)
	await message.answer("\n".join(lines))


@router.message(Command("reconcile"))
async def reconcile_cmd(message: Message, command: CommandObject, current_user: UserRead) -> None:
	lz = get_localizer()
	if not is_staff(current_user):
		await message.answer(lz.get("common.not_allowed"))
		return
	args = split_args(command.args)
	if not args:
		await message.answer(lz.get("judging.reconcile.usage"))
		return
	try:
		event = await EventService().get_event_by_slug(args[0])
		changed = await AssignmentService().reconcile_completed_counts(event.id)
	except TroveError as exc:
		await message.answer(lz.get("common.error", message=html.quote(exc.message)))
		return
	await message.answer(lz.get("judging.reconcile.done", event=html.quote(event.title), count=str(changed)))
