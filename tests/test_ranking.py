import uuid

from trove.bot.services.ranking import RankingService, ScoredSubmission, average_scores, rank_cohort
from trove.bot.services.rubric import RubricService
from trove.bot.services.scoring import ScoringService
from trove.db.enums import SubmissionStatus
from trove.db.schemas.score import ScoreEntry


def test_rank_cohort_orders_by_average_and_keeps_ties_stable():
    a, b, c = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    ranked = rank_cohort(
        [
            ScoredSubmission(a, 5.0, 1),
            ScoredSubmission(b, 9.0, 2),
            ScoredSubmission(c, 5.0, 1),
        ]
    )
    assert [(r.id, r.rank) for r in ranked] == [(b, 1), (a, 2), (c, 3)]


async def _score(submission, judge, rubric, value):
    await ScoringService().submit_score(
        submission.id, judge.id, rubric.id, [ScoreEntry(criteria_id="c1", score=value)]
    )


async def test_average_scores_defaults_to_zero(factory):
    event = await factory.event()
    sub = await factory.submission(event.id)
    [scored] = average_scores([sub], {})
    assert scored.average_score == 0.0
    assert scored.total_judges == 0


async def test_calculate_rankings_writes_average_and_rank(factory, criteria, db):
    event = await factory.event()
    rubric = await RubricService().create_rubric(event.id, criteria)
    judges = [await factory.user() for _ in range(2)]
    low = await factory.submission(event.id)
    high = await factory.submission(event.id)
    mid = await factory.submission(event.id)

    for judge in judges:
        await _score(low, judge, rubric, 10)
        await _score(high, judge, rubric, 30)
    await _score(mid, judges[0], rubric, 10)
    await _score(mid, judges[1], rubric, 30)

    assert await RankingService().calculate_rankings(event.id) == 3

    subs = await db.get_submissions([low.id, high.id, mid.id])
    assert (subs[low.id].average_score, subs[low.id].rank) == (10.0, 3)
    assert (subs[high.id].average_score, subs[high.id].rank) == (30.0, 1)
    assert (subs[mid.id].average_score, subs[mid.id].rank) == (20.0, 2)
    assert subs[mid.id].total_judges == 2
    assert all(s.status == SubmissionStatus.JUDGED for s in subs.values())


async def test_unscored_submissions_rank_last_and_drafts_are_skipped(factory, criteria, db):
    event = await factory.event()
    rubric = await RubricService().create_rubric(event.id, criteria)
    judge = await factory.user()
    unscored = await factory.submission(event.id)
    scored = await factory.submission(event.id)
    draft = await factory.submission(event.id, status=SubmissionStatus.DRAFT)
    await _score(scored, judge, rubric, 4)

    assert await RankingService().calculate_rankings(event.id) == 2

    subs = await db.get_submissions([unscored.id, scored.id, draft.id])
    assert subs[scored.id].rank == 1
    assert (subs[unscored.id].rank, subs[unscored.id].average_score, subs[unscored.id].total_judges) == (2, 0.0, 0)
    assert subs[draft.id].rank is None
    assert subs[draft.id].status == SubmissionStatus.DRAFT


async def test_rerun_picks_up_late_scores(factory, criteria, db):
    event = await factory.event()
    rubric = await RubricService().create_rubric(event.id, criteria)
    judge = await factory.user()
    first = await factory.submission(event.id)
    second = await factory.submission(event.id)
    await _score(first, judge, rubric, 5)
    service = RankingService()
    await service.calculate_rankings(event.id)

    await _score(second, judge, rubric, 8)
    assert await service.calculate_rankings(event.id) == 2

    subs = await db.get_submissions([first.id, second.id])
    assert subs[second.id].rank == 1
    assert subs[first.id].rank == 2


async def test_ranking_by_track_leaves_other_tracks_alone(factory, criteria, db):
    event = await factory.event()
    rubric = await RubricService().create_rubric(event.id, criteria)
    judge = await factory.user()
    ai = await factory.submission(event.id, track_id="ai")
    web = await factory.submission(event.id, track_id="web")
    await _score(ai, judge, rubric, 3)

    assert await RankingService().calculate_rankings(event.id, "ai") == 1

    subs = await db.get_submissions([ai.id, web.id])
    assert subs[ai.id].rank == 1
    assert subs[web.id].rank is None
    assert subs[web.id].status == SubmissionStatus.SUBMITTED


async def test_nothing_to_rank(factory):
    event = await factory.event()
    assert await RankingService().calculate_rankings(event.id) == 0
