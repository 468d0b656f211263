# bot/services/leaderboard.py
import logging
from functools import cmp_to_key
from uuid import UUID
from typing import ClassVar, Mapping, Optional, Self, Sequence

from trove.config import Settings
from trove.db.database import DataBase
from trove.db.enums import SubmissionStatus
from trove.db.schemas.leaderboard import GlobalTopEntry, LeaderboardEntry, LeaderboardRead
from trove.db.schemas.submission import SubmissionRead
from trove.db.schemas.team import TeamRead
from trove.bot.services.audit_log import instrument_service_class
from trove.utils.time import utcnow

logger = logging.getLogger(__name__)

UNKNOWN_TEAM = "Unknown Team"
LIVE_STATUSES = (SubmissionStatus.JUDGED, SubmissionStatus.SUBMITTED)
PODIUM_RANK = 3


def _submitted_ts(sub: SubmissionRead) -> float:
	return sub.submitted_at.timestamp() if sub.submitted_at is not None else 0.0


def compare_live(a: SubmissionRead, b: SubmissionRead) -> int:
	"""
	Live-view order: scored before unscored, higher average first; unscored
	ones by earliest submission time.
	"""
	if a.average_score is not None and b.average_score is not None:
		return (b.average_score > a.average_score) - (b.average_score < a.average_score)
	if a.average_score is not None:
		return -1
	if b.average_score is not None:
		return 1
	ta, tb = _submitted_ts(a), _submitted_ts(b)
	return (ta > tb) - (ta < tb)


def build_entries(
	submissions: Sequence[SubmissionRead],
	teams: Mapping[UUID, TeamRead],
) -> list[LeaderboardEntry]:
	"""Denormalize already-ordered submissions into leaderboard rows ranked by position."""
	entries: list[LeaderboardEntry] = []
	for position, sub in enumerate(submissions, start=1):
		team = teams.get(sub.team_id)
		entries.append(
			LeaderboardEntry(
				rank=position,
				team_id=sub.team_id,
				team_name=team.name if team is not None else UNKNOWN_TEAM,
				project_name=sub.project_name,
				score=sub.average_score or 0.0,
				avatar_url=team.avatar_url if team is not None else None,
			)
		)
	return entries


class LeaderboardService:
	"""
	Live and published leaderboards per (event, track).

	A published row is a frozen snapshot returned verbatim until it is
	re-published or unpublished; otherwise the view is computed on each read.
	"""

	_instance: ClassVar[Optional["LeaderboardService"]] = None

	def __new__(cls) -> Self:
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __init__(self) -> None:
		if getattr(self, "_initialized", False):
			return

		self._database: DataBase = DataBase()
		self._settings = Settings()
		self._initialized = True

	async def get_by_event(self, event_id: UUID, track_id: Optional[str] = None) -> LeaderboardRead:
		stored = await self._database.get_leaderboard(event_id, track_id)
		if stored is not None and stored.is_published:
			return stored

		submissions = await self._database.list_submissions_by_event(
			event_id, track_id=track_id, statuses=LIVE_STATUSES
		)
		ordered = sorted(submissions, key=cmp_to_key(compare_live))[: self._settings.leaderboard_live_limit]
		teams = await self._database.get_teams(s.team_id for s in ordered)

		return LeaderboardRead(
			id=stored.id if stored is not None else None,
			event_id=event_id,
			track_id=track_id,
			entries=build_entries(ordered, teams),
			last_updated_at=utcnow(),
			is_published=False,
		)

	async def publish(self, event_id: UUID, track_id: Optional[str] = None) -> LeaderboardRead:
		submissions = await self._database.list_submissions_by_event(
			event_id, track_id=track_id, statuses=(SubmissionStatus.JUDGED,)
		)
		ordered = sorted(submissions, key=lambda s: s.average_score or 0.0, reverse=True)
		teams = await self._database.get_teams(s.team_id for s in ordered)

		leaderboard = await self._database.upsert_leaderboard(
			event_id, track_id, build_entries(ordered, teams), is_published=True
		)
		logger.info(
			"Leaderboard published event=%s track=%s (%d entries)",
			event_id, track_id or "-", len(leaderboard.entries),
		)
		return leaderboard

	async def unpublish(self, event_id: UUID, track_id: Optional[str] = None) -> Optional[LeaderboardRead]:
		leaderboard = await self._database.set_leaderboard_published(event_id, track_id, False)
		if leaderboard is None:
			logger.info("Unpublish event=%s track=%s: no leaderboard stored", event_id, track_id or "-")
		return leaderboard

	async def get_global_top(self, limit: Optional[int] = None) -> list[GlobalTopEntry]:
		"""Podium finishers of the most recently completed events, best placings first."""
		limit = limit or self._settings.global_top_default_limit
		events = await self._database.list_recent_completed_events(self._settings.global_top_events)
		if not events:
			return []

		by_id = {e.id: e for e in events}
		submissions = await self._database.list_top_ranked_submissions(list(by_id), PODIUM_RANK)
		teams = await self._database.get_teams(s.team_id for s in submissions)

		top: list[GlobalTopEntry] = []
		for sub in submissions:
			team = teams.get(sub.team_id)
			if team is None:
				continue
			event = by_id[sub.event_id]
			top.append(
				GlobalTopEntry(
					team_id=team.id,
					team_name=team.name,
					project_name=sub.project_name,
					event_title=event.title,
					rank=sub.rank or 0,
					score=sub.average_score or 0.0,
					event_date=event.end_at,
				)
			)

		top.sort(key=lambda t: (t.rank, -t.score))
		return top[:limit]


instrument_service_class(LeaderboardService, prefix="services.leaderboard")
