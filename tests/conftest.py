"""
Pytest configuration and shared fixtures for the feed relevance tests.
"""
import math
import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), "src"))

# Load environment variables
from dotenv import load_dotenv
load_dotenv(os.path.join(os.path.dirname(os.path.dirname(__file__)), ".env"))

from scoring.clock import fixed_clock  # noqa: E402


# ============================================================================
# Time and place
# ============================================================================

NOW = datetime(2025, 6, 14, 9, 0, tzinfo=timezone.utc)

SYDNEY_LAT = -33.87
SYDNEY_LNG = 151.21

# Kilometers per degree of latitude on the haversine sphere
KM_PER_DEGREE = 6371.0 * math.pi / 180


def north_of(lat: float, lng: float, km: float) -> str:
    """"lat,lng" string exactly ``km`` due north of (lat, lng)."""
    return f"{lat + km / KM_PER_DEGREE},{lng}"


def iso(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


def days_ago(days: float) -> str:
    return iso(NOW - timedelta(days=days))


def hours_ahead(hours: float) -> str:
    return iso(NOW + timedelta(hours=hours))


# ============================================================================
# Fixtures: Test Data Factories
# ============================================================================

@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock():
    return fixed_clock(NOW)


@pytest.fixture
def sample_profile_dict() -> dict:
    """Viewer living in Sydney, into hiking, 20 km radius."""
    return {
        "$id": "user-001",
        "disciplines": ["hiking"],
        "locationCoords": f"{SYDNEY_LAT},{SYDNEY_LNG}",
        "searchRadius": 20,
        "experienceLevels": {},
    }


@pytest.fixture
def sample_activity_dict() -> dict:
    """Activity as returned by the document store."""
    return {
        "$id": "act-001",
        "activityname": "Blue Mountains Walk",
        "types": ["Hiking"],
        "location": "Location: -33.88,151.20",
        "difficulty": "beginner",
        "createdAt": iso(NOW),
        "participantCount": 3,
        "userId": "owner-999",
    }


@pytest.fixture
def sample_event_dict() -> dict:
    """Upcoming event as returned by the document store."""
    return {
        "$id": "evt-001",
        "eventName": "Sunrise Hike",
        "activityId": "act-001",
        "activityTypes": ["Hiking"],
        "meetupPoint": "-33.88,151.20",
        "difficulty": "beginner",
        "createdAt": iso(NOW),
        "date": hours_ahead(12),
        "participants": ["user-002"],
        "maxParticipants": 10,
        "organizerId": "owner-999",
    }
