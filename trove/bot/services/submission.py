# bot/services/submission.py
import logging
from uuid import UUID
from typing import ClassVar, Optional, Self

from trove.db.database import DataBase
from trove.db.enums import SubmissionStatus
from trove.db.schemas.submission import SubmissionCreate, SubmissionRead
from trove.db.schemas.team import TeamCreate, TeamRead
from trove.bot.services.audit_log import instrument_service_class
from trove.utils.errors import InvalidSubmissionState, SubmissionIncomplete, SubmissionNotFound, TeamNotFound
from trove.utils.time import utcnow

logger = logging.getLogger(__name__)


def missing_fields(submission: SubmissionRead) -> list[str]:
	"""Names of the fields that must be filled in before a submission can be submitted."""
	missing = []
	for name in ("project_name", "tagline", "problem_statement", "solution"):
		if not getattr(submission, name).strip():
			missing.append(name)
	for name in ("tech_stack", "key_features"):
		if not getattr(submission, name):
			missing.append(name)
	return missing


class SubmissionService:
	_instance: ClassVar[Optional["SubmissionService"]] = None

	def __new__(cls, *args, **kwargs) -> Self:
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __init__(self) -> None:
		if getattr(self, "_initialized", False):
			return

		self._database: DataBase = DataBase()
		self._initialized = True

	async def create_team(self, team: TeamCreate) -> TeamRead:
		return await self._database.create_team(team)

	async def get_team(self, team_id: UUID) -> TeamRead:
		team = await self._database.get_team(team_id)
		if team is None:
			raise TeamNotFound()
		return team

	async def create_submission(self, submission: SubmissionCreate) -> SubmissionRead:
		return await self._database.create_submission(submission)

	async def get_submission(self, sub_id: UUID) -> SubmissionRead:
		submission = await self._database.get_submission_by_id(sub_id)
		if submission is None:
			raise SubmissionNotFound()
		return submission

	async def list_event_submissions(self, event_id: UUID, track_id: Optional[str] = None) -> list[SubmissionRead]:
		return await self._database.list_submissions_by_event(event_id, track_id=track_id)

	async def submit(self, sub_id: UUID) -> SubmissionRead:
		"""draft -> submitted, once every required field is filled in."""
		current = await self.get_submission(sub_id)
		missing = missing_fields(current)
		if missing:
			raise SubmissionIncomplete(f"Please fill in all required fields: {', '.join(missing)}.")

		submission = await self._database.set_submission_status(
			sub_id, SubmissionStatus.SUBMITTED, submitted_at=utcnow()
		)
		await self._database.set_team_submitted(submission.team_id, True)
		await self._database.shift_event_submission_count(submission.event_id, +1)
		logger.info("Submission %s submitted for event %s", sub_id, submission.event_id)
		return submission

	async def unsubmit(self, sub_id: UUID) -> SubmissionRead:
		"""submitted -> draft; judged submissions cannot be pulled back."""
		current = await self.get_submission(sub_id)
		if current.status != SubmissionStatus.SUBMITTED:
			raise InvalidSubmissionState()

		submission = await self._database.set_submission_status(
			sub_id, SubmissionStatus.DRAFT, submitted_at=None
		)
		await self._database.set_team_submitted(submission.team_id, False)
		await self._database.shift_event_submission_count(submission.event_id, -1)
		return submission


instrument_service_class(SubmissionService, prefix="services.submission")
