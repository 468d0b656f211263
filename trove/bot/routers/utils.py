# bot/routers/utils.py
import uuid
from typing import Optional

from trove.i18n import Localizer
from trove.db.enums import UserRole
from trove.db.schemas.user import UserRead

STAFF_ROLES = (UserRole.ADMIN, UserRole.ORGANIZER)
JUDGE_ROLES = (UserRole.ADMIN, UserRole.ORGANIZER, UserRole.JUDGE)


def get_localizer() -> Localizer:
	return Localizer()


def is_staff(user: UserRead) -> bool:
	return user.role in STAFF_ROLES


def is_judge(user: UserRead) -> bool:
	return user.role in JUDGE_ROLES


def split_args(args: Optional[str]) -> list[str]:
	return args.split() if args else []


def event_and_track(args: Optional[str]) -> tuple[Optional[str], Optional[str]]:
	"""``<event-slug> [track]`` -> (slug, track); the track may contain spaces."""
	if not args or not args.strip():
		return None, None
	slug, _, track = args.strip().partition(" ")
	return slug, track.strip() or None


def parse_uuid(value: str) -> Optional[uuid.UUID]:
	try:
		return uuid.UUID(value)
	except ValueError:
		return None


def format_score(value: Optional[float]) -> str:
	if value is None:
		return "—"
	text = f"{value:.2f}".rstrip("0").rstrip(".")
	return text or "0"


def track_label(track_id: Optional[str], lz: Localizer) -> str:
	return track_id if track_id else lz.get("common.track_all")
