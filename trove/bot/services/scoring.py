# bot/services/scoring.py
import logging
import math
from uuid import UUID
from typing import ClassVar, Iterable, Optional, Self, Tuple

from trove.db.database import DataBase
from trove.db.enums import ScoreStatus
from trove.db.schemas.rubric import RubricRead
from trove.db.schemas.score import ScoreEntry, ScoreRead, ScoreUpsert, ScoreWithJudge
from trove.bot.services.audit_log import instrument_service_class
from trove.bot.services.rubric import RubricService
from trove.utils.errors import InvalidScoreValue

logger = logging.getLogger(__name__)


def compute_totals(rubric: RubricRead, scores: Iterable[ScoreEntry]) -> Tuple[float, float]:
	"""
	Return (total_score, weighted_score) for one judge's evaluation.

	Every entry counts toward the raw total. Only entries whose criteria_id is
	in the rubric contribute score * weight to the weighted total. Values above
	a criterion's max_score are taken as-is.
	"""
	total = 0.0
	weighted = 0.0
	for entry in scores:
		total += entry.score
		criterion = rubric.criterion(entry.criteria_id)
		if criterion is not None:
			weighted += entry.score * criterion.weight
	return total, weighted


class ScoringService:
	"""Score ledger: one score record per (submission, judge)."""

	_instance: ClassVar[Optional["ScoringService"]] = None

	def __new__(cls) -> Self:
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __init__(self) -> None:
		if getattr(self, "_initialized", False):
			return

		self._database: DataBase = DataBase()
		self._rubric_svc = RubricService()
		self._initialized = True

	async def submit_score(
		self,
		submission_id: UUID,
		judge_id: UUID,
		rubric_id: UUID,
		scores: list[ScoreEntry],
		overall_comment: Optional[str] = None,
		compared_with: Iterable[UUID] = (),
	) -> ScoreRead:
		bad = [e.criteria_id for e in scores if not math.isfinite(e.score)]
		if bad:
			raise InvalidScoreValue(f"Scores must be finite numbers: {', '.join(bad)}.")

		rubric = await self._rubric_svc.get_rubric_by_id(rubric_id)
		total_score, weighted_score = compute_totals(rubric, scores)

		score, created = await self._database.upsert_score(
			ScoreUpsert(
				submission_id=submission_id,
				judge_id=judge_id,
				rubric_id=rubric.id,
				scores=scores,
				total_score=total_score,
				weighted_score=weighted_score,
				overall_comment=overall_comment,
				compared_with=list(compared_with),
				status=ScoreStatus.COMPLETED,
			)
		)

		if created:
			await self._count_completion(submission_id, judge_id)
		else:
			logger.debug("Score %s re-submitted by judge %s", score.id, judge_id)

		return score

	async def _count_completion(self, submission_id: UUID, judge_id: UUID) -> None:
		submission = await self._database.get_submission_by_id(submission_id)
		if submission is None:
			logger.warning("Scored submission %s does not exist; completion not counted", submission_id)
			return
		counted = await self._database.increment_assignment_completed(submission.event_id, judge_id)
		if not counted:
			logger.info(
				"Judge %s has no assignment in event %s; completion not counted",
				judge_id, submission.event_id,
			)

	async def get_scores_for_submission(self, submission_id: UUID) -> list[ScoreWithJudge]:
		return await self._database.list_scores_by_submission(submission_id)

	async def get_scores_for_judge(self, event_id: UUID, judge_id: UUID) -> list[ScoreRead]:
		return await self._database.list_scores_by_judge_for_event(event_id, judge_id)


instrument_service_class(ScoringService, prefix="services.scoring")
