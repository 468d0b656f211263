import uuid
from unittest.mock import AsyncMock

import pytest
from aiogram.filters import CommandObject

from trove.bot.routers.judging import (
    ScoreCommandError,
    parse_score_command,
    progress_cmd,
    queue_cmd,
    rank_cmd,
    reconcile_cmd,
    score_cmd,
)
from trove.bot.routers.leaderboard import global_top_cmd, leaderboard_cmd, publish_cmd, unpublish_cmd
from trove.bot.routers.utils import event_and_track, format_score, parse_uuid
from trove.bot.services.assignment import AssignmentService
from trove.bot.services.rubric import RubricService
from trove.db.enums import UserRole


def _command(name: str, args: str | None = None) -> CommandObject:
    return CommandObject(prefix="/", command=name, args=args)


def _reply(message: AsyncMock) -> str:
    return message.answer.await_args.args[0]


def test_event_and_track():
    assert event_and_track(None) == (None, None)
    assert event_and_track("  ") == (None, None)
    assert event_and_track("spring") == ("spring", None)
    assert event_and_track("spring  green energy ") == ("spring", "green energy")


def test_parse_uuid_and_format_score():
    value = uuid.uuid4()
    assert parse_uuid(str(value)) == value
    assert parse_uuid("nope") is None
    assert format_score(14.0) == "14"
    assert format_score(2.456) == "2.46"
    assert format_score(0) == "0"


def test_parse_score_command():
    sub_id = uuid.uuid4()
    parsed_id, entries, comment = parse_score_command(f"{sub_id} c1=8 c2=3,5 | great demo ")

    assert parsed_id == sub_id
    assert [(e.criteria_id, e.score) for e in entries] == [("c1", 8.0), ("c2", 3.5)]
    assert comment == "great demo"


def test_parse_score_command_without_comment():
    _, entries, comment = parse_score_command(f"{uuid.uuid4()} c1=1")
    assert len(entries) == 1
    assert comment is None


@pytest.mark.parametrize(
    "args, key",
    [
        (None, "judging.score.usage"),
        ("abc", "judging.score.usage"),
        ("abc c1=1", "common.bad_id"),
        (f"{uuid.UUID(int=1)} c1", "judging.score.usage"),
        (f"{uuid.UUID(int=1)} c1=high", "judging.score.bad_value"),
    ],
)
def test_parse_score_command_errors(args, key):
    with pytest.raises(ScoreCommandError) as exc:
        parse_score_command(args)
    assert exc.value.key == key


async def test_score_flow_through_handlers(factory, criteria):
    event = await factory.event()
    judge = await factory.user(role=UserRole.JUDGE)
    sub = await factory.submission(event.id, project_name="Rocket")
    await RubricService().create_rubric(event.id, criteria)
    await AssignmentService().assign_submissions(event.id, judge.id, [sub.id])

    message = AsyncMock()
    await score_cmd(message, _command("score", f"{sub.id} c1=8 c2=3 | nice"), judge)
    assert _reply(message).startswith("✅")
    assert "weighted 14" in _reply(message)
    assert "max 30" in _reply(message)

    message = AsyncMock()
    await queue_cmd(message, _command("queue", event.slug), judge)
    text = _reply(message)
    assert "1/1" in text
    assert "Rocket" in text


async def test_score_without_rubric(factory):
    event = await factory.event()
    judge = await factory.user(role=UserRole.JUDGE)
    sub = await factory.submission(event.id)

    message = AsyncMock()
    await score_cmd(message, _command("score", f"{sub.id} c1=1"), judge)
    assert "No rubric" in _reply(message)


async def test_participants_cannot_score_or_publish(factory):
    participant = await factory.user(role=UserRole.PARTICIPANT)

    for handler in (score_cmd, queue_cmd, publish_cmd, unpublish_cmd, rank_cmd, progress_cmd, reconcile_cmd):
        message = AsyncMock()
        await handler(message, _command("x", "anything"), participant)
        assert _reply(message) == "You are not allowed to do this."


async def test_queue_without_assignment(factory):
    event = await factory.event()
    judge = await factory.user(role=UserRole.JUDGE)

    message = AsyncMock()
    await queue_cmd(message, _command("queue", event.slug), judge)
    assert "no assignment" in _reply(message)


async def test_staff_rank_publish_and_view(factory, criteria):
    event = await factory.event(title="Spring Hack")
    organizer = await factory.user(role=UserRole.ORGANIZER)
    await factory.submission(event.id, project_name="Alpha")

    message = AsyncMock()
    await rank_cmd(message, _command("rank", event.slug), organizer)
    assert "Ranked 1 submissions" in _reply(message)

    message = AsyncMock()
    await publish_cmd(message, _command("publish", event.slug), organizer)
    assert "published with 1 entries" in _reply(message)

    message = AsyncMock()
    await leaderboard_cmd(message, _command("leaderboard", event.slug), organizer)
    text = _reply(message)
    assert "Spring Hack" in text
    assert "Official results" in text
    assert "Alpha" in text

    message = AsyncMock()
    await unpublish_cmd(message, _command("unpublish", event.slug), organizer)
    assert "live again" in _reply(message)


async def test_progress_and_reconcile(factory):
    event = await factory.event()
    organizer = await factory.user(role=UserRole.ADMIN)
    judge = await factory.user(role=UserRole.JUDGE, name="Judge Judy")
    sub = await factory.submission(event.id)
    await AssignmentService().assign_submissions(event.id, judge.id, [sub.id])

    message = AsyncMock()
    await progress_cmd(message, _command("progress", event.slug), organizer)
    assert "Judge Judy: 0/1" in _reply(message)

    message = AsyncMock()
    await reconcile_cmd(message, _command("reconcile", event.slug), organizer)
    assert "0 counters fixed" in _reply(message)


async def test_leaderboard_unknown_event_and_usage(db):
    from trove.db.schemas.user import UserRead

    user = UserRead(id=uuid.uuid4(), display_name="Anon")

    message = AsyncMock()
    await leaderboard_cmd(message, _command("leaderboard"), user)
    assert _reply(message).startswith("Usage: /leaderboard")

    message = AsyncMock()
    await leaderboard_cmd(message, _command("leaderboard", "ghost"), user)
    assert "Event 'ghost' not found." in _reply(message)


async def test_global_top_handler(db):
    from trove.db.schemas.user import UserRead

    user = UserRead(id=uuid.uuid4(), display_name="Anon")

    message = AsyncMock()
    await global_top_cmd(message, _command("top", "zero"), user)
    assert "positive number" in _reply(message)

    message = AsyncMock()
    await global_top_cmd(message, _command("top"), user)
    assert _reply(message) == "No completed events yet."


@pytest.mark.parametrize("raw", ["nan", "inf", "-inf", "NaN"])
def test_parse_score_command_rejects_non_finite(raw):
    with pytest.raises(ScoreCommandError) as exc:
        parse_score_command(f"{uuid.uuid4()} c1={raw}")
    assert exc.value.key == "judging.score.bad_value"


async def test_score_handler_rejects_nan(factory, criteria):
    event = await factory.event()
    judge = await factory.user(role=UserRole.JUDGE)
    sub = await factory.submission(event.id)
    await RubricService().create_rubric(event.id, criteria)

    message = AsyncMock()
    await score_cmd(message, _command("score", f"{sub.id} c1=nan"), judge)
    assert "Cannot read score" in _reply(message)
