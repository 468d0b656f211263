# bot/services/assignment.py
import logging
from uuid import UUID
from typing import ClassVar, Iterable, Optional, Self

from trove.db.database import DataBase
from trove.db.enums import ScoreStatus
from trove.db.schemas.assignment import (
	AssignedSubmission,
	AssignmentDetail,
	AssignmentRead,
	AssignmentWithJudge,
)
from trove.db.schemas.team import TeamSummary
from trove.bot.services.audit_log import instrument_service_class
from trove.utils.errors import AssignmentNotFound

logger = logging.getLogger(__name__)


class AssignmentService:
	"""
	Which submissions each judge must score in an event, plus progress counters.

	``completed_count`` is a denormalized counter bumped by the score ledger.
	Re-assigning never resets it, so it can drift from the list contents;
	:meth:`reconcile_completed_counts` recomputes it from the score records.
	"""

	_instance: ClassVar[Optional["AssignmentService"]] = None

	def __new__(cls) -> Self:
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __init__(self) -> None:
		if getattr(self, "_initialized", False):
			return

		self._database: DataBase = DataBase()
		self._initialized = True

	async def assign_submissions(
		self,
		event_id: UUID,
		judge_id: UUID,
		submission_ids: Iterable[UUID],
		track_id: Optional[str] = None,
	) -> AssignmentRead:
		ids = list(submission_ids)
		assignment = await self._database.upsert_assignment(event_id, judge_id, ids, track_id)
		if assignment.completed_count > assignment.total_count:
			logger.warning(
				"Assignment %s: completed_count=%d exceeds total_count=%d after re-assignment",
				assignment.id, assignment.completed_count, assignment.total_count,
			)
		return assignment

	async def list_assignments(self, event_id: UUID) -> list[AssignmentWithJudge]:
		return await self._database.list_assignments_by_event(event_id)

	async def get_assignment(self, event_id: UUID, judge_id: UUID) -> AssignmentDetail:
		assignment = await self._database.get_assignment(event_id, judge_id)
		if assignment is None:
			raise AssignmentNotFound()

		submissions = await self._database.get_submissions(assignment.submission_ids)
		teams = await self._database.get_teams(s.team_id for s in submissions.values())
		scores = await self._database.list_scores_by_judge(judge_id, assignment.submission_ids)

		items: list[AssignedSubmission] = []
		for sub_id in assignment.submission_ids:
			submission = submissions.get(sub_id)
			if submission is None:
				# deleted after assignment
				continue
			team = teams.get(submission.team_id)
			score = scores.get(sub_id)
			items.append(
				AssignedSubmission(
					submission=submission,
					team=TeamSummary.model_validate(team) if team is not None else None,
					is_scored=score is not None and score.status == ScoreStatus.COMPLETED,
					score_id=score.id if score is not None else None,
				)
			)

		return AssignmentDetail(**assignment.model_dump(), submissions=items)

	async def reconcile_completed_counts(self, event_id: UUID) -> int:
		"""
		Recompute every assignment's completed_count of the event from completed
		score records over its assigned submissions. Returns how many counters changed.
		"""
		changed = 0
		for assignment in await self._database.list_assignments_by_event(event_id):
			scores = await self._database.list_scores_by_judge(assignment.judge_id, assignment.submission_ids)
			actual = sum(1 for s in scores.values() if s.status == ScoreStatus.COMPLETED)
			if actual == assignment.completed_count:
				continue
			logger.warning(
				"Assignment %s (judge %s) drifted: stored=%d actual=%d",
				assignment.id, assignment.judge_id, assignment.completed_count, actual,
			)
			await self._database.set_assignment_completed_count(assignment.id, actual)
			changed += 1
		return changed


instrument_service_class(AssignmentService, prefix="services.assignment")
