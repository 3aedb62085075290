import re
from datetime import datetime, timezone, timedelta
from typing import Optional, Union
import pytz

from app.core.config import settings

# Regex fecha YYYY-mm-dd HH:MM[:SS] (form input without the ISO "T")
DT_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2}) (\d{2}):(\d{2})(?::(\d{2}))?$")


# ---------------------------------------------------------------
# Current time as stored in the database (naive UTC)
# ---------------------------------------------------------------
def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ---------------------------------------------------------------
# Any datetime / string → naive UTC
# ---------------------------------------------------------------
def to_storage_datetime(value: Union[datetime, str, None], tz_str: Optional[str] = None) -> Optional[datetime]:
    """
    Normalize a form or GPS timestamp to naive UTC.

    Naive values are interpreted in the configured ship timezone; GPS
    timestamps arrive as ISO strings with a "Z" suffix.
    """
    if value is None or value == "":
        return None

    tz = pytz.timezone(tz_str or settings.TIMEZONE)

    if isinstance(value, str):
        m = DT_RE.fullmatch(value.strip())
        if m:
            dt = datetime(*(int(g) if g else 0 for g in m.groups()))
        else:
            dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    else:
        dt = value

    if dt.tzinfo is None:
        dt = tz.localize(dt)

    return dt.astimezone(timezone.utc).replace(tzinfo=None)


# ---------------------------------------------------------------
# Deadline helpers for sample timing
# ---------------------------------------------------------------
def add_hours(dt: datetime, hours: int) -> datetime:
    return dt + timedelta(hours=hours)


def hours_remaining(deadline: datetime, now: Optional[datetime] = None) -> float:
    now = now or utcnow()
    return round((deadline - now).total_seconds() / 3600.0, 2)
