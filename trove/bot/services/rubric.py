# bot/services/rubric.py
import logging
from uuid import UUID
from typing import ClassVar, Iterable, Optional, Self

from sqlalchemy.exc import IntegrityError

from trove.db.database import DataBase
from trove.db.schemas.rubric import RubricCreate, RubricCriterion, RubricRead
from trove.bot.services.audit_log import instrument_service_class
from trove.utils.errors import RubricAlreadyExists, RubricNotFound

logger = logging.getLogger(__name__)


def compute_total_max_score(criteria: Iterable[RubricCriterion]) -> float:
	"""Σ max_score * weight; no sign or range checks on either factor."""
	return float(sum(c.max_score * c.weight for c in criteria))


class RubricService:
	"""
	Weighted-criteria definitions, one per (event, track).

	A rubric with ``track_id=None`` is event-wide and applies to every track
	that has no rubric of its own.
	"""

	_instance: ClassVar[Optional["RubricService"]] = None

	def __new__(cls) -> Self:
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __init__(self) -> None:
		if getattr(self, "_initialized", False):
			return

		self._database: DataBase = DataBase()
		self._initialized = True

	async def create_rubric(
		self,
		event_id: UUID,
		criteria: list[RubricCriterion],
		track_id: Optional[str] = None,
	) -> RubricRead:
		existing = await self._database.find_rubric(event_id, track_id)
		if existing is not None:
			raise RubricAlreadyExists()

		payload = RubricCreate(event_id=event_id, track_id=track_id, criteria=criteria)
		try:
			rubric = await self._database.create_rubric(payload, compute_total_max_score(criteria))
		except IntegrityError as exc:
			raise RubricAlreadyExists() from exc

		logger.info(
			"Rubric %s created for event=%s track=%s (%d criteria, max=%s)",
			rubric.id, event_id, track_id or "-", len(criteria), rubric.total_max_score,
		)
		return rubric

	async def update_rubric(self, rubric_id: UUID, criteria: list[RubricCriterion]) -> RubricRead:
		# existing scores keep the weights they were computed with
		try:
			return await self._database.update_rubric_criteria(
				rubric_id, criteria, compute_total_max_score(criteria)
			)
		except LookupError as exc:
			raise RubricNotFound() from exc

	async def get_rubric(self, event_id: UUID, track_id: Optional[str] = None) -> Optional[RubricRead]:
		if track_id is not None:
			rubric = await self._database.find_rubric(event_id, track_id)
			if rubric is not None:
				return rubric
		return await self._database.find_rubric(event_id, None)

	async def get_rubric_by_id(self, rubric_id: UUID) -> RubricRead:
		rubric = await self._database.get_rubric_by_id(rubric_id)
		if rubric is None:
			raise RubricNotFound()
		return rubric


instrument_service_class(RubricService, prefix="services.rubric")
