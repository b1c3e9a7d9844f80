import re
from datetime import datetime, timezone
from typing import Optional

_MINUTES_RE = re.compile(r"^(-?\d+)\s*(?:mn|min)?$")
_HOURS_RE = re.compile(r"^>?\s*(\d+)\s*h\s*(\d+)?\s*(?:mn|min)?$")
_DUE_NOW = {"proche", "imminent", "a quai", "à quai"}


def current_timestamp_iso() -> str:
    """Get current UTC timestamp in ISO-8601 format."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def parse_wait_minutes(raw_wait: Optional[str]) -> Optional[int]:
    """
    Convert a Naolib wait string into whole minutes.

    Examples:
        parse_wait_minutes("Proche") -> 0
        parse_wait_minutes("5mn") -> 5
        parse_wait_minutes("1h05") -> 65
        parse_wait_minutes(">1h") -> 60
        parse_wait_minutes("-2") -> 0

    Returns None when the value is empty or not understood.
    """
    if raw_wait is None:
        return None

    normalized = raw_wait.strip().lower()
    if not normalized:
        return None
    if normalized in _DUE_NOW:
        return 0

    match = _MINUTES_RE.match(normalized)
    if match:
        return max(0, int(match.group(1)))

    match = _HOURS_RE.match(normalized)
    if match:
        hours = int(match.group(1))
        minutes = int(match.group(2) or 0)
        return hours * 60 + minutes

    return None
