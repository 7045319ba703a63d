import math
import time
from datetime import datetime, timezone
from typing import Optional

from pytz import timezone as pytz_timezone

from settings import TZ


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a datetime read back from the database.

    SQLite drops the offset of timezone aware columns, values stored there
    are UTC so a naive value is tagged as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return as_utc(value).isoformat()


def format_local(value: datetime, tz: str = TZ) -> str:
    """Human readable time in the display timezone, used in emails

    Args:
        value (datetime): UTC or naive-UTC datetime
        tz (str): Timezone string (e.g., "Asia/Kolkata")

    Returns:
        str: e.g. "15 Nov 2026, 07:30 PM IST"
    """
    return as_utc(value).astimezone(pytz_timezone(tz)).strftime("%d %b %Y, %I:%M %p %Z")


def page_count(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if total else 0


def generate_ticket_qr_payload(ticket_id: str) -> str:
    return f"TICKET:{ticket_id}:{int(time.time() * 1000)}"
