# bot/services/audit_log.py
from __future__ import annotations

import inspect
import logging
import uuid
from contextvars import ContextVar, Token
from datetime import date, datetime
from enum import Enum
from functools import wraps
from typing import Any, ClassVar, Iterable, Mapping, Optional, Sequence

from trove.db.database import DataBase
from trove.db.schemas.audit_log import AuditLogCreate, AuditLogRead


class AuditLogService:
    """
    Journal of judging actions kept in the ``audit_log`` table.

    Entries are attributed to the actor bound for the current update (see
    :class:`trove.bot.middlewares.user.UserMiddleware`) and echoed to the
    ``trove.audit`` logger.
    """

    _instance: ClassVar[Optional["AuditLogService"]] = None

    def __new__(cls) -> "AuditLogService":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if getattr(self, "_initialized", False):
            return

        self._logger = logging.getLogger("trove.audit")
        self._actor_ctx: ContextVar[Optional[uuid.UUID]] = ContextVar("audit_actor", default=None)
        self._initialized = True

    @property
    def _database(self) -> DataBase:
        # resolved per call so a re-created DataBase singleton is picked up
        return DataBase()

    async def record(
        self,
        action: str,
        payload: Mapping[str, Any] | None = None,
        actor_id: uuid.UUID | None = None,
    ) -> AuditLogRead:
        """
        Persist one entry. ``actor_id`` defaults to the actor bound for the
        current update, if any.
        """
        if actor_id is None:
            actor_id = self.current_actor()

        entry = await self._database.create_audit_log(
            AuditLogCreate(action=action, actor_id=actor_id, payload=to_json(payload or {}))
        )
        self._logger.info("AUDIT action=%s actor=%s entry=%s", action, actor_id or "-", entry.id)
        return entry

    async def list_entries(
        self,
        *,
        limit: int = 100,
        offset: int = 0,
        actor_id: uuid.UUID | None = None,
        action: str | None = None,
    ) -> tuple[list[AuditLogRead], int]:
        return await self._database.list_audit_logs(
            limit=limit,
            offset=offset,
            actor_id=actor_id,
            action=action,
        )

    def bind_actor(self, actor_id: Optional[uuid.UUID]) -> Token:
        return self._actor_ctx.set(actor_id)

    def unbind_actor(self, token: Token) -> None:
        self._actor_ctx.reset(token)

    def current_actor(self) -> Optional[uuid.UUID]:
        return self._actor_ctx.get()


def to_json(value: Any) -> Any:
    """Reduce DTOs, ids, enums and datetimes to JSON-compatible values."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if isinstance(value, Mapping):
        return {str(k): to_json(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted((to_json(v) for v in value), key=str)
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return [to_json(v) for v in value]
    return str(value)


audit_logger = AuditLogService()


def _audited(fn, action: str):
    @wraps(fn)
    async def wrapper(self, *args, **kwargs):
        call = {"args": to_json(args), "kwargs": to_json(kwargs)}
        try:
            result = await fn(self, *args, **kwargs)
        except Exception as exc:
            await audit_logger.record(f"{action}.error", {**call, "error": repr(exc)})
            raise
        await audit_logger.record(action, {**call, "result": to_json(result)})
        return result

    wrapper.__audited__ = True  # type: ignore[attr-defined]
    return wrapper


def instrument_service_class(cls, *, prefix: str | None = None, exclude: Iterable[str] = ()) -> None:
    """Wrap the public async methods of a service class so each call leaves an audit entry."""
    action_prefix = prefix or cls.__name__
    excluded = set(exclude)

    for name, attr in list(cls.__dict__.items()):
        if name.startswith("_") or name in excluded:
            continue
        if inspect.iscoroutinefunction(attr) and not getattr(attr, "__audited__", False):
            setattr(cls, name, _audited(attr, f"{action_prefix}.{name}"))


__all__ = [
    "AuditLogService",
    "audit_logger",
    "instrument_service_class",
    "to_json",
]
