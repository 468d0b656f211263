import uuid

import pytest

from trove.bot.services.assignment import AssignmentService
from trove.bot.services.rubric import RubricService
from trove.bot.services.scoring import ScoringService
from trove.db.schemas.score import ScoreEntry
from trove.utils.errors import AssignmentNotFound


async def test_assign_creates_then_replaces_list(factory):
    event = await factory.event()
    judge = await factory.user()
    subs = [await factory.submission(event.id) for _ in range(3)]
    service = AssignmentService()

    created = await service.assign_submissions(event.id, judge.id, [s.id for s in subs])
    assert created.total_count == 3
    assert created.completed_count == 0
    assert created.submission_ids == [s.id for s in subs]

    replaced = await service.assign_submissions(event.id, judge.id, [subs[0].id])
    assert replaced.id == created.id
    assert replaced.total_count == 1
    assert replaced.submission_ids == [subs[0].id]


async def test_reassignment_keeps_completed_count(factory, criteria):
    event = await factory.event()
    judge = await factory.user()
    subs = [await factory.submission(event.id) for _ in range(2)]
    rubric = await RubricService().create_rubric(event.id, criteria)
    service = AssignmentService()
    await service.assign_submissions(event.id, judge.id, [s.id for s in subs])

    for sub in subs:
        await ScoringService().submit_score(sub.id, judge.id, rubric.id, [ScoreEntry(criteria_id="c1", score=5)])

    replaced = await service.assign_submissions(event.id, judge.id, [])
    assert replaced.total_count == 0
    assert replaced.completed_count == 2


async def test_get_assignment_marks_scored_submissions(factory, criteria):
    event = await factory.event()
    judge = await factory.user()
    scored = await factory.submission(event.id)
    pending = await factory.submission(event.id)
    rubric = await RubricService().create_rubric(event.id, criteria)
    service = AssignmentService()
    await service.assign_submissions(event.id, judge.id, [scored.id, pending.id])
    score = await ScoringService().submit_score(
        scored.id, judge.id, rubric.id, [ScoreEntry(criteria_id="c1", score=5)]
    )

    detail = await service.get_assignment(event.id, judge.id)

    assert [item.submission.id for item in detail.submissions] == [scored.id, pending.id]
    assert detail.submissions[0].is_scored is True
    assert detail.submissions[0].score_id == score.id
    assert detail.submissions[0].team is not None
    assert detail.submissions[1].is_scored is False
    assert detail.submissions[1].score_id is None
    assert detail.completed_count == 1


async def test_get_assignment_skips_missing_submissions(factory):
    event = await factory.event()
    judge = await factory.user()
    sub = await factory.submission(event.id)
    await AssignmentService().assign_submissions(event.id, judge.id, [sub.id, uuid.uuid4()])

    detail = await AssignmentService().get_assignment(event.id, judge.id)

    assert detail.total_count == 2
    assert [item.submission.id for item in detail.submissions] == [sub.id]


async def test_get_assignment_unknown_raises(factory):
    event = await factory.event()
    judge = await factory.user()
    with pytest.raises(AssignmentNotFound):
        await AssignmentService().get_assignment(event.id, judge.id)


async def test_list_assignments_carries_judge_identity(factory):
    event = await factory.event()
    judge = await factory.user(name="Ada")
    await AssignmentService().assign_submissions(event.id, judge.id, [])

    [item] = await AssignmentService().list_assignments(event.id)
    assert item.judge.display_name == "Ada"


async def test_reconcile_fixes_drifted_counters(factory, criteria, db):
    event = await factory.event()
    judge = await factory.user()
    other = await factory.user()
    subs = [await factory.submission(event.id) for _ in range(2)]
    rubric = await RubricService().create_rubric(event.id, criteria)
    service = AssignmentService()
    drifted = await service.assign_submissions(event.id, judge.id, [s.id for s in subs])
    await service.assign_submissions(event.id, other.id, [subs[0].id])

    await ScoringService().submit_score(subs[0].id, judge.id, rubric.id, [ScoreEntry(criteria_id="c1", score=1)])
    await db.set_assignment_completed_count(drifted.id, 5)

    assert await service.reconcile_completed_counts(event.id) == 1
    assert (await service.get_assignment(event.id, judge.id)).completed_count == 1
    assert (await service.get_assignment(event.id, other.id)).completed_count == 0
    assert await service.reconcile_completed_counts(event.id) == 0
