from datetime import datetime, timezone
from typing import Optional

def parse_datetime(raw) -> Optional[datetime]:
    """
    Parse an ISO date / datetime string (or pass a datetime through).

    Aware values are converted to UTC and stored naive, like every other
    timestamp in the DB. Raises ValueError on junk.
    """
    if raw is None:
        return None

    if isinstance(raw, datetime):
        dt = raw
    else:
        s = str(raw).strip()
        if not s:
            return None
        # fromisoformat doesn't take a trailing "Z" on older interpreters
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        dt = datetime.fromisoformat(s)

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)

    return dt

def iso_or_none(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt else None
