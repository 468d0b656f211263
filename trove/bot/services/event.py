# bot/services/event.py
from uuid import UUID
from typing import ClassVar, Optional, Self

from trove.db.database import DataBase
from trove.db.enums import EventStatus
from trove.db.schemas.event import EventCreate, EventRead
from trove.bot.services.audit_log import instrument_service_class
from trove.utils.errors import EventNotFound


class EventService:
	"""
	Thin facade over event records. The judging core only needs to resolve
	events by id or slug and to move them to ``completed``.
	"""

	_instance: ClassVar[Optional["EventService"]] = None

	def __new__(cls) -> Self:
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __init__(self) -> None:
		if getattr(self, "_initialized", False):
			return

		self._database: DataBase = DataBase()
		self._initialized = True

	async def create_event(self, payload: EventCreate) -> EventRead:
		return await self._database.create_event(payload)

	async def get_event(self, event_id: UUID) -> EventRead:
		event = await self._database.get_event_by_id(event_id)
		if event is None:
			raise EventNotFound()
		return event

	async def get_event_by_slug(self, slug: str) -> EventRead:
		event = await self._database.get_event_by_slug(slug)
		if event is None:
			raise EventNotFound(f"Event '{slug}' not found.")
		return event

	async def update_status(self, event_id: UUID, status: EventStatus) -> EventRead:
		try:
			return await self._database.update_event_status(event_id, status)
		except LookupError as exc:
			raise EventNotFound() from exc


instrument_service_class(EventService, prefix="services.event")
