"""
Location parsing and great-circle distance.

Locations reach the scorers in three historical encodings:

1. a structured object exposing ``latitude`` / ``longitude`` (or
   ``lat`` / ``lng``),
2. a picker string such as ``"Location: -33.8688, 151.2093"``,
3. a bare ``"lat,lng"`` string.

``parse_location`` tries them in that order and returns ``None`` for
anything else.  It never raises: a missing location simply contributes
nothing to the location factor.
"""

import math
from typing import Any, NamedTuple, Optional, Tuple

from config.constants import EARTH_RADIUS_KM, LOCATION_PREFIX
from core.utils import safe_get, to_float


class Coordinates(NamedTuple):
    lat: float
    lng: float


_STRUCTURED_KEYS: Tuple[Tuple[str, str], ...] = (
    ("latitude", "longitude"),
    ("lat", "lng"),
)


def _parse_structured(raw: Any) -> Optional[Coordinates]:
    for lat_key, lng_key in _STRUCTURED_KEYS:
        lat = to_float(safe_get(raw, lat_key))
        lng = to_float(safe_get(raw, lng_key))
        if lat is not None and lng is not None:
            return Coordinates(lat, lng)
    return None


def _parse_pair(text: str) -> Optional[Coordinates]:
    parts = text.split(",")
    if len(parts) != 2:
        return None
    lat, lng = to_float(parts[0]), to_float(parts[1])
    if lat is None or lng is None:
        return None
    return Coordinates(lat, lng)


def parse_location(raw: Any) -> Optional[Coordinates]:
    """
    Normalize a location in any supported encoding to ``Coordinates``.

    Args:
        raw: Structured object/dict, picker string, ``"lat,lng"`` string,
             or anything else.

    Returns:
        ``Coordinates`` or ``None`` when the input is not a location.
    """
    if raw is None:
        return None

    if isinstance(raw, Coordinates):
        return raw

    if isinstance(raw, str):
        if LOCATION_PREFIX in raw:
            _, _, rest = raw.partition(LOCATION_PREFIX)
            return _parse_pair(rest)
        return _parse_pair(raw)

    if isinstance(raw, (int, float, bool, bytes)):
        return None

    return _parse_structured(raw)


def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Haversine distance between two points, in kilometers."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2))
        * math.sin(d_lng / 2) ** 2
    )
    # Rounding can push `a` a hair past 1.0 for antipodal points
    a = min(1.0, max(0.0, a))
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_between(a: Coordinates, b: Coordinates) -> float:
    """``distance_km`` for two ``Coordinates``."""
    return distance_km(a.lat, a.lng, b.lat, b.lng)
