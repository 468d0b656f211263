# utils/time.py
from datetime import datetime, timezone


def utcnow() -> datetime:
    """All datetimes in the project are naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
