# bot/services/ranking.py
import logging
from dataclasses import dataclass
from uuid import UUID
from typing import ClassVar, Iterable, Mapping, Optional, Self, Tuple

from trove.db.database import DataBase
from trove.db.enums import SubmissionStatus
from trove.db.schemas.submission import SubmissionRanking, SubmissionRead
from trove.bot.services.audit_log import instrument_service_class

logger = logging.getLogger(__name__)

# judged submissions are re-ranked so repeated runs converge after late scores
RANKABLE_STATUSES = (
	SubmissionStatus.SUBMITTED,
	SubmissionStatus.UNDER_REVIEW,
	SubmissionStatus.JUDGED,
)


@dataclass(frozen=True)
class ScoredSubmission:
	submission_id: UUID
	average_score: float
	total_judges: int


def average_scores(
	submissions: Iterable[SubmissionRead],
	aggregates: Mapping[UUID, Tuple[int, float]],
) -> list[ScoredSubmission]:
	"""
	Mean of the judges' weighted totals per submission, in input order.
	No completed scores means average 0 from 0 judges. The mean is an absolute
	point value, not normalized by the rubric maximum.
	"""
	result: list[ScoredSubmission] = []
	for sub in submissions:
		judges, weighted_sum = aggregates.get(sub.id, (0, 0.0))
		average = weighted_sum / judges if judges else 0.0
		result.append(ScoredSubmission(sub.id, average, judges))
	return result


def rank_cohort(cohort: Iterable[ScoredSubmission]) -> list[SubmissionRanking]:
	"""
	Sort descending by average and number positions from 1. Ties never share a
	rank; the sort is stable, so tied entries keep their input order.
	"""
	ordered = sorted(cohort, key=lambda s: s.average_score, reverse=True)
	return [
		SubmissionRanking(
			id=s.submission_id,
			average_score=s.average_score,
			total_judges=s.total_judges,
			rank=position,
		)
		for position, s in enumerate(ordered, start=1)
	]


class RankingService:
	_instance: ClassVar[Optional["RankingService"]] = None

	def __new__(cls) -> Self:
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __init__(self) -> None:
		if getattr(self, "_initialized", False):
			return

		self._database: DataBase = DataBase()
		self._initialized = True

	async def calculate_rankings(self, event_id: UUID, track_id: Optional[str] = None) -> int:
		"""
		Recompute average score, judge count and rank of every rankable submission
		of the event (or of one track) and mark them judged.
		Returns the number of submissions ranked.
		"""
		submissions = await self._database.list_submissions_by_event(
			event_id, track_id=track_id, statuses=RANKABLE_STATUSES
		)
		if not submissions:
			logger.info("Ranking event=%s track=%s: nothing to rank", event_id, track_id or "-")
			return 0

		aggregates = await self._database.completed_score_aggregates(s.id for s in submissions)
		rankings = rank_cohort(average_scores(submissions, aggregates))
		await self._database.apply_rankings(rankings)

		unscored = sum(1 for r in rankings if r.total_judges == 0)
		logger.info(
			"Ranking event=%s track=%s: ranked %d submissions (%d without scores)",
			event_id, track_id or "-", len(rankings), unscored,
		)
		return len(rankings)


instrument_service_class(RankingService, prefix="services.ranking")
