import pytest

from trove.bot.services.event import EventService
from trove.bot.services.submission import SubmissionService, missing_fields
from trove.db.enums import EventStatus, SubmissionStatus
from trove.db.schemas.submission import SubmissionCreate
from trove.utils.errors import EventNotFound, InvalidSubmissionState, SubmissionIncomplete, SubmissionNotFound


async def _draft(factory, event, **fields):
    team = await factory.team(event.id)
    data = dict(
        event_id=event.id,
        team_id=team.id,
        project_name="Trove",
        tagline="Judging made easy",
        problem_statement="Spreadsheets",
        solution="A bot",
        tech_stack=["python"],
        key_features=["leaderboard"],
    )
    data.update(fields)
    return await SubmissionService().create_submission(SubmissionCreate(**data))


async def test_missing_fields_lists_blank_required_fields(factory):
    event = await factory.event()
    draft = await _draft(factory, event, tagline="  ", key_features=[])
    assert missing_fields(draft) == ["tagline", "key_features"]


async def test_submit_and_unsubmit_move_counters(factory):
    event = await factory.event()
    draft = await _draft(factory, event)
    service = SubmissionService()

    submitted = await service.submit(draft.id)
    assert submitted.status == SubmissionStatus.SUBMITTED
    assert submitted.submitted_at is not None
    assert (await service.get_team(draft.team_id)).has_submitted is True
    assert (await EventService().get_event(event.id)).submission_count == 1

    pulled = await service.unsubmit(draft.id)
    assert pulled.status == SubmissionStatus.DRAFT
    assert pulled.submitted_at is None
    assert (await service.get_team(draft.team_id)).has_submitted is False
    assert (await EventService().get_event(event.id)).submission_count == 0


async def test_submit_incomplete_is_rejected(factory):
    event = await factory.event()
    draft = await _draft(factory, event, solution="")

    with pytest.raises(SubmissionIncomplete) as exc:
        await SubmissionService().submit(draft.id)
    assert "solution" in exc.value.message


async def test_unsubmit_requires_submitted_state(factory):
    event = await factory.event()
    draft = await _draft(factory, event)
    with pytest.raises(InvalidSubmissionState):
        await SubmissionService().unsubmit(draft.id)


async def test_submission_count_never_goes_negative(factory, db):
    event = await factory.event()
    await db.shift_event_submission_count(event.id, -1)
    assert (await EventService().get_event(event.id)).submission_count == 0


async def test_unknown_submission_raises(db):
    import uuid

    with pytest.raises(SubmissionNotFound):
        await SubmissionService().get_submission(uuid.uuid4())


async def test_event_lookup_by_slug_and_status(factory):
    event = await factory.event()
    service = EventService()

    assert (await service.get_event_by_slug(event.slug.upper())).id == event.id
    done = await service.update_status(event.id, EventStatus.COMPLETED)
    assert done.status == EventStatus.COMPLETED

    with pytest.raises(EventNotFound):
        await service.get_event_by_slug("nope")


async def test_list_event_submissions_filters_by_track(factory):
    event = await factory.event()
    ai = await factory.submission(event.id, track_id="ai")
    web = await factory.submission(event.id, track_id="web")
    service = SubmissionService()

    assert {s.id for s in await service.list_event_submissions(event.id)} == {ai.id, web.id}
    assert [s.id for s in await service.list_event_submissions(event.id, "ai")] == [ai.id]
