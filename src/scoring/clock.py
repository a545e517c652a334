"""
Time sources for the scorers.

Freshness and event timing depend on "now".  Scorers take a ``Clock``
instead of reading the wall clock so a whole feed is scored against a
single instant and tests can pin it.
"""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def as_utc(instant: datetime) -> datetime:
    """Aware UTC datetime; naive values are read as UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def system_clock() -> datetime:
    return datetime.now(timezone.utc)


def fixed_clock(instant: datetime) -> Clock:
    """Clock that always returns ``instant``."""
    pinned = as_utc(instant)

    def _now() -> datetime:
        return pinned

    return _now
