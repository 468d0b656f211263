# db/database.py
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Optional, ClassVar, Self, Any, Iterable, Sequence, Tuple

from sqlalchemy import select, func, update, case, and_
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.exc import IntegrityError

from trove.config import Settings
from trove.db.enums import EventStatus, ScoreStatus, SubmissionStatus
from trove.db.models._base import Base
from trove.db.models.user import User
from trove.db.models.event import Event
from trove.db.models.team import Team
from trove.db.models.submission import Submission
from trove.db.models.rubric import Rubric
from trove.db.models.score import Score
from trove.db.models.assignment import Assignment
from trove.db.models.leaderboard import Leaderboard
from trove.db.models.audit_log import AuditLog
from trove.db.schemas.user import UserCreate, UserRead, UserUpdate, JudgeSummary
from trove.db.schemas.event import EventCreate, EventRead
from trove.db.schemas.team import TeamCreate, TeamRead
from trove.db.schemas.submission import SubmissionCreate, SubmissionRead, SubmissionRanking
from trove.db.schemas.rubric import RubricCreate, RubricCriterion, RubricRead
from trove.db.schemas.score import ScoreRead, ScoreUpsert, ScoreWithJudge
from trove.db.schemas.assignment import AssignmentRead, AssignmentWithJudge
from trove.db.schemas.leaderboard import LeaderboardEntry, LeaderboardRead
from trove.db.schemas.audit_log import AuditLogCreate, AuditLogRead
from trove.utils.sentinels import MISSING, provided
from trove.utils.time import utcnow


def _track_clause(column, track_id: Optional[str]):
    """Exact (event, track) key match; ``None`` selects the event-wide row."""
    if track_id is None:
        return column.is_(None)
    return column == track_id


class DataBase():
    """
    Async SQLAlchemy database singleton.
    Usage:
        db = DataBase()  # same instance everywhere
        async with db.session() as s:
            ...

    Every public method runs in its own session, so each call is a single
    all-or-nothing write. Methods return pydantic DTOs, never ORM objects.
    """
    _instance: ClassVar[Optional["DataBase"]] = None

    def __new__(cls, *args: Any, **kwargs: Any) -> Self:
        if cls._instance is None:
            cls._instance = super().__new__(cls)

        return cls._instance

    def __init__(self, echo: Optional[bool] = None) -> None:
        if getattr(self, "_initialized", False):
            return

        settings = Settings()
        self._engine: AsyncEngine = create_async_engine(
            settings.database_url,
            echo=settings.db_echo if echo is None else echo,
            pool_pre_ping=True,
        )
        self._sessionmaker: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=self._engine,
            expire_on_commit=False,
            autoflush=False,
        )

        self._initialized = True

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Provides an AsyncSession with safe commit/rollback semantics.
        """
        session: AsyncSession = self._sessionmaker()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    # --- schema management helpers ---

    async def create_all(self) -> None:
        """
        Create tables based on Base metadata. Use only in dev/tests; prefer Alembic in prod.
        """
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self._engine.dispose()

    # ---------- User ----------

    async def create_user(self, data: UserCreate) -> UserRead:
        """
        Create a user. On unique-constraint violation (tg_id) re-raises IntegrityError.
        """
        tg_username = data.tg_username
        if tg_username and tg_username.startswith("@"):
            tg_username = tg_username[1:]

        user = User(
            tg_id=data.tg_id,
            tg_username=tg_username,
            display_name=data.display_name,
            avatar_url=data.avatar_url,
            role=data.role,
        )
        async with self.session() as s:
            s.add(user)
            await s.flush()
            await s.refresh(user)

        return UserRead.model_validate(user)

    async def get_user_by_id(self, uid: Optional[uuid.UUID]) -> Optional[UserRead]:
        if uid is None:
            return None
        async with self.session() as s:
            row = await s.get(User, uid)
        return UserRead.model_validate(row) if row is not None else None

    async def get_user_by_tg_id(self, tg_id: Optional[int]) -> Optional[UserRead]:
        """
        Fetch a user by Telegram numeric ID (unique).
        """
        if tg_id is None:
            return None
        async with self.session() as s:
            res = await s.execute(select(User).where(User.tg_id == tg_id))
            row = res.scalar_one_or_none()
        return UserRead.model_validate(row) if row is not None else None

    async def update_user(self, data: UserUpdate) -> UserRead:
        """
        Partially update a user by id. Only fields that are not MISSING are written.

        Raises:
            LookupError: if the user does not exist.
        """
        async with self.session() as s:
            db_user = await s.get(User, data.id)
            if db_user is None:
                raise LookupError("User not found.")

            if provided(data.tg_username):
                db_user.tg_username = data.tg_username
            if provided(data.display_name):
                db_user.display_name = data.display_name
            if provided(data.avatar_url):
                db_user.avatar_url = data.avatar_url
            if provided(data.role):
                db_user.role = data.role

            await s.flush()
            await s.refresh(db_user)

        return UserRead.model_validate(db_user)

    # ---------- Event ----------

    async def create_event(self, payload: EventCreate) -> EventRead:
        obj = Event(
            title=payload.title,
            slug=payload.slug,
            status=payload.status,
            start_at=payload.start_at,
            end_at=payload.end_at,
            submission_count=0,
        )
        async with self.session() as s:
            s.add(obj)
            await s.flush()
            await s.refresh(obj)
            return EventRead.model_validate(obj)

    async def get_event_by_id(self, event_id: Optional[uuid.UUID]) -> Optional[EventRead]:
        if not event_id:
            return None
        async with self.session() as s:
            row = await s.get(Event, event_id)
        return EventRead.model_validate(row) if row is not None else None

    async def get_event_by_slug(self, slug: str) -> Optional[EventRead]:
        """Fetch an event by its slug (case-insensitive)."""
        name = (slug or "").strip()
        if not name:
            return None
        async with self.session() as s:
            res = await s.execute(select(Event).where(func.lower(Event.slug) == name.lower()))
            row = res.scalar_one_or_none()
        return EventRead.model_validate(row) if row is not None else None

    async def update_event_status(self, event_id: uuid.UUID, status: EventStatus) -> EventRead:
        async with self.session() as s:
            db_obj = await s.get(Event, event_id)
            if db_obj is None:
                raise LookupError("Event not found.")
            db_obj.status = status
            await s.flush()
            await s.refresh(db_obj)
            return EventRead.model_validate(db_obj)

    async def shift_event_submission_count(self, event_id: uuid.UUID, delta: int) -> bool:
        """
        Atomically add ``delta`` to Event.submission_count, never going below zero.
        Returns False when the event does not exist.
        """
        new_value = Event.submission_count + delta
        stmt = (
            update(Event)
            .where(Event.id == event_id)
            .values(submission_count=case((new_value < 0, 0), else_=new_value))
        )
        async with self.session() as s:
            res = await s.execute(stmt)
            return (res.rowcount or 0) > 0

    async def list_recent_completed_events(self, limit: int) -> list[EventRead]:
        """Completed events, most recently ended first (then newest created)."""
        limit = max(0, int(limit))
        if limit == 0:
            return []
        async with self.session() as s:
            stmt = (
                select(Event)
                .where(Event.status == EventStatus.COMPLETED)
                .order_by(
                    Event.end_at.is_(None).asc(),
                    Event.end_at.desc(),
                    Event.created_at.desc(),
                    Event.id.asc(),
                )
                .limit(limit)
            )
            rows = (await s.execute(stmt)).scalars().all()
        return [EventRead.model_validate(r) for r in rows]

    # ---------- Team ----------

    async def create_team(self, payload: TeamCreate) -> TeamRead:
        obj = Team(
            event_id=payload.event_id,
            name=payload.name,
            slug=payload.slug,
            avatar_url=payload.avatar_url,
            track_id=payload.track_id,
            has_submitted=False,
        )
        async with self.session() as s:
            s.add(obj)
            await s.flush()
            await s.refresh(obj)
            return TeamRead.model_validate(obj)

    async def get_team(self, team_id: Optional[uuid.UUID]) -> Optional[TeamRead]:
        if not team_id:
            return None
        async with self.session() as s:
            row = await s.get(Team, team_id)
        return TeamRead.model_validate(row) if row is not None else None

    async def get_teams(self, team_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, TeamRead]:
        """
        For many team ids return {team_id: TeamRead} in one round trip.
        """
        keys = list({tid for tid in team_ids if tid})
        if not keys:
            return {}
        async with self.session() as s:
            rows = (await s.execute(select(Team).where(Team.id.in_(keys)))).scalars().all()
        return {r.id: TeamRead.model_validate(r) for r in rows}

    async def set_team_submitted(self, team_id: uuid.UUID, has_submitted: bool) -> bool:
        async with self.session() as s:
            res = await s.execute(
                update(Team).where(Team.id == team_id).values(has_submitted=has_submitted)
            )
            return (res.rowcount or 0) > 0

    # ---------- Submission: reads ----------

    async def get_submission_by_id(self, sub_id: Optional[uuid.UUID]) -> Optional[SubmissionRead]:
        """
        Fetch a single submission by id.
        """
        if not sub_id:
            return None
        async with self.session() as s:
            db_obj = await s.get(Submission, sub_id)
            return SubmissionRead.model_validate(db_obj) if db_obj else None

    async def get_submissions(self, sub_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, SubmissionRead]:
        """
        For many submission ids return {submission_id: SubmissionRead} in one round trip.
        """
        keys = list({sid for sid in sub_ids if sid})
        if not keys:
            return {}
        async with self.session() as s:
            rows = (await s.execute(select(Submission).where(Submission.id.in_(keys)))).scalars().all()
        return {r.id: SubmissionRead.model_validate(r) for r in rows}

    async def list_submissions_by_event(
        self,
        event_id: uuid.UUID,
        *,
        track_id: Optional[str] = None,
        statuses: Optional[Sequence[SubmissionStatus]] = None,
    ) -> list[SubmissionRead]:
        """
        Submissions of an event, optionally narrowed to one track and a status set.
        Ordered by submitted_at asc (unsubmitted last), then created_at, then id,
        so callers relying on a stable sort get a deterministic tie order.
        """
        if not event_id:
            return []
        stmt = select(Submission).where(Submission.event_id == event_id)
        if track_id is not None:
            stmt = stmt.where(Submission.track_id == track_id)
        if statuses:
            stmt = stmt.where(Submission.status.in_(list(statuses)))
        stmt = stmt.order_by(
            Submission.submitted_at.is_(None).asc(),
            Submission.submitted_at.asc(),
            Submission.created_at.asc(),
            Submission.id.asc(),
        )
        async with self.session() as s:
            rows = (await s.execute(stmt)).scalars().all()
        return [SubmissionRead.model_validate(r) for r in rows]

    async def list_top_ranked_submissions(self, event_ids: Sequence[uuid.UUID], max_rank: int) -> list[SubmissionRead]:
        """Submissions of the given events whose stored rank is <= max_rank."""
        keys = [eid for eid in event_ids if eid]
        if not keys:
            return []
        stmt = (
            select(Submission)
            .where(
                Submission.event_id.in_(keys),
                Submission.rank.is_not(None),
                Submission.rank <= max_rank,
            )
            .order_by(Submission.rank.asc(), Submission.id.asc())
        )
        async with self.session() as s:
            rows = (await s.execute(stmt)).scalars().all()
        return [SubmissionRead.model_validate(r) for r in rows]

    # ---------- Submission: writes ----------

    async def create_submission(self, data: SubmissionCreate) -> SubmissionRead:
        """
        Insert a new submission row.
        """
        now = utcnow()
        async with self.session() as s:
            db_obj = Submission(
                event_id=data.event_id,
                team_id=data.team_id,
                track_id=data.track_id,
                project_name=data.project_name,
                tagline=data.tagline,
                problem_statement=data.problem_statement,
                solution=data.solution,
                tech_stack=list(data.tech_stack),
                key_features=list(data.key_features),
                status=data.status,
                submitted_at=data.submitted_at,
                created_at=now,
                updated_at=now,
            )
            s.add(db_obj)
            await s.flush()
            await s.refresh(db_obj)
            return SubmissionRead.model_validate(db_obj)

    async def set_submission_status(
        self,
        sub_id: uuid.UUID,
        status: SubmissionStatus,
        submitted_at: datetime | None | Any = MISSING,
    ) -> SubmissionRead:
        """
        Move a submission to ``status``; ``submitted_at`` is written only when provided.

        Raises:
            LookupError: if the submission does not exist.
        """
        async with self.session() as s:
            db_obj = await s.get(Submission, sub_id)
            if db_obj is None:
                raise LookupError("Submission not found.")
            db_obj.status = status
            if provided(submitted_at):
                db_obj.submitted_at = submitted_at
            db_obj.updated_at = utcnow()
            await s.flush()
            await s.refresh(db_obj)
            return SubmissionRead.model_validate(db_obj)

    async def apply_rankings(self, rankings: Sequence[SubmissionRanking]) -> int:
        """
        Overwrite average_score / total_judges / rank and mark each submission judged.
        Returns the number of rows patched.
        """
        if not rankings:
            return 0
        now = utcnow()
        patched = 0
        async with self.session() as s:
            for r in rankings:
                res = await s.execute(
                    update(Submission)
                    .where(Submission.id == r.id)
                    .values(
                        average_score=r.average_score,
                        total_judges=r.total_judges,
                        rank=r.rank,
                        status=SubmissionStatus.JUDGED,
                        updated_at=now,
                    )
                )
                patched += res.rowcount or 0
        return patched

    # ---------- Rubric ----------

    async def create_rubric(self, payload: RubricCreate, total_max_score: float) -> RubricRead:
        """
        Insert a rubric. The unique (event_id, track_id) constraint surfaces as IntegrityError.
        """
        now = utcnow()
        obj = Rubric(
            event_id=payload.event_id,
            track_id=payload.track_id,
            criteria=[c.model_dump(mode="json") for c in payload.criteria],
            total_max_score=total_max_score,
            created_at=now,
            updated_at=now,
        )
        async with self.session() as s:
            s.add(obj)
            await s.flush()
            await s.refresh(obj)
            return RubricRead.model_validate(obj)

    async def update_rubric_criteria(
        self,
        rubric_id: uuid.UUID,
        criteria: Sequence[RubricCriterion],
        total_max_score: float,
    ) -> RubricRead:
        """
        Replace the criteria array wholesale.

        Raises:
            LookupError: if the rubric does not exist.
        """
        async with self.session() as s:
            db_obj = await s.get(Rubric, rubric_id)
            if db_obj is None:
                raise LookupError("Rubric not found.")
            db_obj.criteria = [c.model_dump(mode="json") for c in criteria]
            db_obj.total_max_score = total_max_score
            db_obj.updated_at = utcnow()
            await s.flush()
            await s.refresh(db_obj)
            return RubricRead.model_validate(db_obj)

    async def get_rubric_by_id(self, rubric_id: Optional[uuid.UUID]) -> Optional[RubricRead]:
        if not rubric_id:
            return None
        async with self.session() as s:
            row = await s.get(Rubric, rubric_id)
        return RubricRead.model_validate(row) if row is not None else None

    async def find_rubric(self, event_id: uuid.UUID, track_id: Optional[str]) -> Optional[RubricRead]:
        """First (oldest) rubric stored for exactly (event_id, track_id)."""
        stmt = (
            select(Rubric)
            .where(Rubric.event_id == event_id, _track_clause(Rubric.track_id, track_id))
            .order_by(Rubric.created_at.asc(), Rubric.id.asc())
            .limit(1)
        )
        async with self.session() as s:
            row = (await s.execute(stmt)).scalars().first()
        return RubricRead.model_validate(row) if row is not None else None

    # ---------- Score ----------

    async def upsert_score(self, payload: ScoreUpsert) -> Tuple[ScoreRead, bool]:
        """
        Insert or patch the score keyed by (submission_id, judge_id).

        Returns (score, created). A concurrent insert for the same key loses on the
        unique constraint and re-raises IntegrityError; retrying takes the patch path.
        """
        data = payload.model_dump(mode="json")
        now = utcnow()
        async with self.session() as s:
            res = await s.execute(
                select(Score).where(
                    Score.submission_id == payload.submission_id,
                    Score.judge_id == payload.judge_id,
                )
            )
            db_obj = res.scalar_one_or_none()
            created = db_obj is None

            if created:
                db_obj = Score(
                    submission_id=payload.submission_id,
                    judge_id=payload.judge_id,
                    created_at=now,
                )
                s.add(db_obj)

            db_obj.rubric_id = payload.rubric_id
            db_obj.scores = data["scores"]
            db_obj.total_score = payload.total_score
            db_obj.weighted_score = payload.weighted_score
            db_obj.overall_comment = payload.overall_comment
            db_obj.compared_with = data["compared_with"]
            db_obj.status = payload.status
            db_obj.updated_at = now

            await s.flush()
            await s.refresh(db_obj)
            return ScoreRead.model_validate(db_obj), created

    async def list_scores_by_submission(self, submission_id: uuid.UUID) -> list[ScoreWithJudge]:
        """All judges' scores for one submission, each with the judge display identity."""
        stmt = (
            select(Score, User)
            .join(User, User.id == Score.judge_id, isouter=True)
            .where(Score.submission_id == submission_id)
            .order_by(Score.created_at.asc(), Score.id.asc())
        )
        async with self.session() as s:
            rows = (await s.execute(stmt)).all()
        result: list[ScoreWithJudge] = []
        for score, judge in rows:
            item = ScoreWithJudge.model_validate(score)
            item.judge = JudgeSummary.model_validate(judge) if judge is not None else None
            result.append(item)
        return result

    async def list_scores_by_judge_for_event(self, event_id: uuid.UUID, judge_id: uuid.UUID) -> list[ScoreRead]:
        """Scores given by one judge, restricted to submissions that belong to the event."""
        stmt = (
            select(Score)
            .join(Submission, Submission.id == Score.submission_id)
            .where(Score.judge_id == judge_id, Submission.event_id == event_id)
            .order_by(Score.created_at.asc(), Score.id.asc())
        )
        async with self.session() as s:
            rows = (await s.execute(stmt)).scalars().all()
        return [ScoreRead.model_validate(r) for r in rows]

    async def list_scores_by_judge(
        self,
        judge_id: uuid.UUID,
        submission_ids: Iterable[uuid.UUID],
    ) -> dict[uuid.UUID, ScoreRead]:
        """{submission_id: ScoreRead} for one judge over a set of submissions."""
        keys = list({sid for sid in submission_ids if sid})
        if not keys:
            return {}
        stmt = select(Score).where(Score.judge_id == judge_id, Score.submission_id.in_(keys))
        async with self.session() as s:
            rows = (await s.execute(stmt)).scalars().all()
        return {r.submission_id: ScoreRead.model_validate(r) for r in rows}

    async def completed_score_aggregates(
        self,
        submission_ids: Iterable[uuid.UUID],
    ) -> dict[uuid.UUID, Tuple[int, float]]:
        """
        For many submissions return {submission_id: (completed_count, weighted_sum)}.
        Submissions without completed scores are absent.
        """
        keys = list({sid for sid in submission_ids if sid})
        if not keys:
            return {}
        stmt = (
            select(
                Score.submission_id,
                func.count(Score.id).label("judges"),
                func.sum(Score.weighted_score).label("weighted_sum"),
            )
            .where(Score.submission_id.in_(keys), Score.status == ScoreStatus.COMPLETED)
            .group_by(Score.submission_id)
        )
        async with self.session() as s:
            rows = (await s.execute(stmt)).all()
        return {
            row.submission_id: (int(row.judges or 0), float(row.weighted_sum or 0.0))
            for row in rows
        }

    # ---------- Assignment ----------

    async def get_assignment(self, event_id: uuid.UUID, judge_id: uuid.UUID) -> Optional[AssignmentRead]:
        async with self.session() as s:
            res = await s.execute(
                select(Assignment).where(Assignment.event_id == event_id, Assignment.judge_id == judge_id)
            )
            row = res.scalar_one_or_none()
        return AssignmentRead.model_validate(row) if row is not None else None

    async def upsert_assignment(
        self,
        event_id: uuid.UUID,
        judge_id: uuid.UUID,
        submission_ids: Sequence[uuid.UUID],
        track_id: Optional[str] = None,
    ) -> AssignmentRead:
        """
        Create the (event, judge) assignment, or replace its submission list.
        On replace, total_count follows the new list and completed_count is left untouched.
        """
        ids = [str(sid) for sid in submission_ids]
        async with self.session() as s:
            res = await s.execute(
                select(Assignment).where(Assignment.event_id == event_id, Assignment.judge_id == judge_id)
            )
            db_obj = res.scalar_one_or_none()
            if db_obj is None:
                db_obj = Assignment(
                    event_id=event_id,
                    judge_id=judge_id,
                    submission_ids=ids,
                    track_id=track_id,
                    completed_count=0,
                    total_count=len(ids),
                    created_at=utcnow(),
                )
                s.add(db_obj)
            else:
                db_obj.submission_ids = ids
                db_obj.total_count = len(ids)

            await s.flush()
            await s.refresh(db_obj)
            return AssignmentRead.model_validate(db_obj)

    async def increment_assignment_completed(self, event_id: uuid.UUID, judge_id: uuid.UUID) -> bool:
        """
        Atomic ``completed_count = completed_count + 1`` on the (event, judge) assignment.
        Returns False when there is no such assignment.
        """
        stmt = (
            update(Assignment)
            .where(Assignment.event_id == event_id, Assignment.judge_id == judge_id)
            .values(completed_count=Assignment.completed_count + 1)
        )
        async with self.session() as s:
            res = await s.execute(stmt)
            return (res.rowcount or 0) > 0

    async def set_assignment_completed_count(self, assignment_id: uuid.UUID, value: int) -> None:
        async with self.session() as s:
            await s.execute(
                update(Assignment).where(Assignment.id == assignment_id).values(completed_count=max(0, int(value)))
            )

    async def list_assignments_by_event(self, event_id: uuid.UUID) -> list[AssignmentWithJudge]:
        stmt = (
            select(Assignment, User)
            .join(User, User.id == Assignment.judge_id, isouter=True)
            .where(Assignment.event_id == event_id)
            .order_by(Assignment.created_at.asc(), Assignment.id.asc())
        )
        async with self.session() as s:
            rows = (await s.execute(stmt)).all()
        result: list[AssignmentWithJudge] = []
        for assignment, judge in rows:
            item = AssignmentWithJudge.model_validate(assignment)
            item.judge = JudgeSummary.model_validate(judge) if judge is not None else None
            result.append(item)
        return result

    # ---------- Leaderboard ----------

    async def get_leaderboard(self, event_id: uuid.UUID, track_id: Optional[str]) -> Optional[LeaderboardRead]:
        stmt = (
            select(Leaderboard)
            .where(Leaderboard.event_id == event_id, _track_clause(Leaderboard.track_id, track_id))
            .limit(1)
        )
        async with self.session() as s:
            row = (await s.execute(stmt)).scalars().first()
        return LeaderboardRead.model_validate(row) if row is not None else None

    async def upsert_leaderboard(
        self,
        event_id: uuid.UUID,
        track_id: Optional[str],
        entries: Sequence[LeaderboardEntry],
        *,
        is_published: bool,
    ) -> LeaderboardRead:
        """
        Write the (event, track) snapshot, creating the row on first use.

        Two concurrent first writes race on the unique key; the loser retries
        once and lands on the update path.
        """
        dumped = [e.model_dump(mode="json") for e in entries]
        try:
            return await self._write_leaderboard(event_id, track_id, dumped, is_published)
        except IntegrityError:
            return await self._write_leaderboard(event_id, track_id, dumped, is_published)

    async def _write_leaderboard(
        self,
        event_id: uuid.UUID,
        track_id: Optional[str],
        dumped: list[dict],
        is_published: bool,
    ) -> LeaderboardRead:
        now = utcnow()
        async with self.session() as s:
            res = await s.execute(
                select(Leaderboard).where(
                    Leaderboard.event_id == event_id,
                    _track_clause(Leaderboard.track_id, track_id),
                )
            )
            db_obj = res.scalars().first()
            if db_obj is None:
                db_obj = Leaderboard(event_id=event_id, track_id=track_id)
                s.add(db_obj)
            db_obj.entries = dumped
            db_obj.last_updated_at = now
            db_obj.is_published = is_published
            await s.flush()
            await s.refresh(db_obj)
            return LeaderboardRead.model_validate(db_obj)

    async def set_leaderboard_published(
        self,
        event_id: uuid.UUID,
        track_id: Optional[str],
        is_published: bool,
    ) -> Optional[LeaderboardRead]:
        """Flip the published flag, keeping entries. Returns None if no row exists."""
        async with self.session() as s:
            res = await s.execute(
                select(Leaderboard).where(
                    Leaderboard.event_id == event_id,
                    _track_clause(Leaderboard.track_id, track_id),
                )
            )
            db_obj = res.scalars().first()
            if db_obj is None:
                return None
            db_obj.is_published = is_published
            await s.flush()
            await s.refresh(db_obj)
            return LeaderboardRead.model_validate(db_obj)

    # ---------- Audit log ----------

    async def create_audit_log(self, payload: AuditLogCreate) -> AuditLogRead:
        obj = AuditLog(actor_id=payload.actor_id, action=payload.action, payload=payload.payload)
        async with self.session() as s:
            s.add(obj)
            await s.flush()
            await s.refresh(obj)
            return AuditLogRead.model_validate(obj)

    async def list_audit_logs(
        self,
        *,
        limit: int,
        offset: int,
        actor_id: uuid.UUID | None = None,
        action: str | None = None,
    ) -> Tuple[list[AuditLogRead], int]:
        """Most recent audit entries first, optionally filtered. Returns (items, total)."""
        limit = max(0, int(limit))
        offset = max(0, int(offset))
        filters = []
        if actor_id is not None:
            filters.append(AuditLog.actor_id == actor_id)
        if action is not None:
            filters.append(AuditLog.action == action)
        where = and_(*filters) if filters else None

        async with self.session() as s:
            total_stmt = select(func.count(AuditLog.id))
            items_stmt = (
                select(AuditLog)
                .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
                .limit(limit)
                .offset(offset)
            )
            if where is not None:
                total_stmt = total_stmt.where(where)
                items_stmt = items_stmt.where(where)

            total = int((await s.execute(total_stmt)).scalar_one())
            if limit == 0:
                return [], total
            rows = (await s.execute(items_stmt)).scalars().all()

        return [AuditLogRead.model_validate(r) for r in rows], total
