import uuid
from datetime import datetime, timedelta

import pytest

from trove.config import Settings
from trove.db.database import DataBase
from trove.db.enums import EventStatus, SubmissionStatus, UserRole
from trove.db.schemas.event import EventCreate
from trove.db.schemas.rubric import RubricCriterion
from trove.db.schemas.submission import SubmissionCreate
from trove.db.schemas.team import TeamCreate
from trove.db.schemas.user import UserCreate
from trove.bot.services.assignment import AssignmentService
from trove.bot.services.event import EventService
from trove.bot.services.leaderboard import LeaderboardService
from trove.bot.services.ranking import RankingService
from trove.bot.services.rubric import RubricService
from trove.bot.services.scoring import ScoringService
from trove.bot.services.submission import SubmissionService
from trove.bot.services.user import UserService

SINGLETONS = (
    Settings,
    DataBase,
    UserService,
    EventService,
    SubmissionService,
    RubricService,
    ScoringService,
    AssignmentService,
    RankingService,
    LeaderboardService,
)

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0)


def _reset_singletons() -> None:
    for cls in SINGLETONS:
        cls._instance = None


@pytest.fixture
async def db(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'trove.db'}")
    monkeypatch.setenv("DB_ECHO", "0")
    _reset_singletons()
    database = DataBase()
    await database.create_all()
    yield database
    await database.dispose()
    _reset_singletons()


class Factory:
    """Builds fixtures rows through the same DataBase facade the services use."""

    def __init__(self, database: DataBase) -> None:
        self.db = database
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    async def user(self, role: UserRole = UserRole.JUDGE, name: str | None = None):
        n = self._next()
        return await self.db.create_user(
            UserCreate(tg_id=1000 + n, tg_username=f"user{n}", display_name=name or f"User {n}", role=role)
        )

    async def event(self, status: EventStatus = EventStatus.JUDGING, end_at: datetime | None = None, title: str | None = None):
        n = self._next()
        return await self.db.create_event(
            EventCreate(title=title or f"Hackathon {n}", slug=f"hack-{n}", status=status, end_at=end_at)
        )

    async def team(self, event_id: uuid.UUID, name: str | None = None, track_id: str | None = None):
        n = self._next()
        return await self.db.create_team(
            TeamCreate(event_id=event_id, name=name or f"Team {n}", slug=f"team-{n}", track_id=track_id)
        )

    async def submission(
        self,
        event_id: uuid.UUID,
        team_id: uuid.UUID | None = None,
        *,
        status: SubmissionStatus = SubmissionStatus.SUBMITTED,
        track_id: str | None = None,
        submitted_offset: int | None = None,
        project_name: str | None = None,
    ):
        n = self._next()
        if team_id is None:
            team_id = (await self.team(event_id, track_id=track_id)).id
        submitted_at = None
        if status != SubmissionStatus.DRAFT:
            submitted_at = BASE_TIME + timedelta(minutes=submitted_offset if submitted_offset is not None else n)
        return await self.db.create_submission(
            SubmissionCreate(
                event_id=event_id,
                team_id=team_id,
                track_id=track_id,
                project_name=project_name or f"Project {n}",
                tagline="Tagline",
                problem_statement="Problem",
                solution="Solution",
                tech_stack=["python"],
                key_features=["fast"],
                status=status,
                submitted_at=submitted_at,
            )
        )


@pytest.fixture
def factory(db) -> Factory:
    return Factory(db)


@pytest.fixture
def criteria() -> list[RubricCriterion]:
    return [
        RubricCriterion(id="c1", name="Innovation", max_score=10, weight=1),
        RubricCriterion(id="c2", name="Execution", max_score=10, weight=2),
    ]
