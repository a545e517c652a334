"""
Core Utility Functions.

Coercion helpers for loosely-typed documents from the candidate and
profile sources.  None of these raise on malformed input.
"""

import math
from datetime import datetime, timezone
from typing import Any, List, Optional


def as_list(value: Any) -> List[Any]:
    """
    Coerce a possibly-missing collection field to a list.

    Args:
        value: None, a single scalar, or any iterable that is not a string/dict

    Returns:
        A new list (empty for None)

    Examples:
        >>> as_list(None)
        []
        >>> as_list("hiking")
        ['hiking']
        >>> as_list(("a", "b"))
        ['a', 'b']
    """
    if value is None:
        return []
    if isinstance(value, (str, bytes, dict)):
        return [value]
    try:
        return list(value)
    except TypeError:
        return [value]


def safe_get(obj: Any, *keys: str, default: Any = None) -> Any:
    """
    Safely get nested dictionary values.

    Args:
        obj: Dictionary or object
        *keys: Keys to traverse
        default: Default value if key not found

    Returns:
        Value at the nested key path, or default

    Example:
        >>> safe_get({'a': {'b': 1}}, 'a', 'b')
        1
        >>> safe_get({'a': {}}, 'a', 'b', default=0)
        0
    """
    current = obj
    for key in keys:
        if isinstance(current, dict):
            current = current.get(key)
        elif hasattr(current, key):
            current = getattr(current, key)
        else:
            return default
        if current is None:
            return default
    return current


def to_float(value: Any) -> Optional[float]:
    """Parse a finite float, or return None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    return result


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts datetimes, ISO strings (a trailing ``Z`` is allowed) and
    epoch seconds.  Naive values are assumed to be UTC.  Anything
    unparseable returns None.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        try:
            parsed = datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
