"""
Application constants and algorithm configuration.

These are values that don't change based on environment but may need
to be tuned or referenced across the codebase.
"""

from dataclasses import dataclass
from typing import Tuple


# =============================================================================
# Geography
# =============================================================================

EARTH_RADIUS_KM: float = 6371.0

LOCATION_PREFIX: str = "Location:"


# =============================================================================
# Relevance Weights
# =============================================================================

@dataclass(frozen=True)
class RelevanceWeights:
    """Caps of the five weighted relevance factors (sum to 100)."""

    TYPE_MATCH: float = 40.0
    LOCATION: float = 30.0
    DIFFICULTY: float = 15.0
    FRESHNESS: float = 5.0
    AVAILABILITY: float = 10.0


DEFAULT_RELEVANCE_WEIGHTS = RelevanceWeights()

# Flat bonuses, additive on top of the weighted factors
SPOTS_AVAILABLE_BONUS: float = 5.0
POPULARITY_BONUS: float = 2.0
POPULARITY_MIN_PARTICIPANTS: int = 5

# Difficulty partial credit
GROWTH_OPPORTUNITY_SCORE: float = 10.0
EASIER_THAN_LEVEL_SCORE: float = 8.0

# Ordered from easiest to hardest; adjacency drives partial credit
DIFFICULTY_LADDER: Tuple[str, ...] = ("beginner", "intermediate", "advanced")


# =============================================================================
# Bands
# =============================================================================

# Distance (km) -> reason text thresholds
VERY_CLOSE_KM: float = 5.0
NEAR_KM: float = 15.0

# Freshness (days since creation)
FRESH_DAYS: int = 7
RECENT_DAYS: int = 30
RECENT_SCORE: float = 3.0

# Event timing (hours until start)
HAPPENING_SOON_HOURS: float = 24.0
THIS_WEEKEND_HOURS: float = 48.0
THIS_WEEK_HOURS: float = 168.0


# =============================================================================
# Feed Assembly
# =============================================================================

DEFAULT_SEARCH_RADIUS_KM: float = 50.0
MIN_SUGGESTION_SCORE: float = 10.0
MAX_RESULTS_PER_TYPE: int = 20
OWN_CONTENT_SCORE: float = 100.0


# =============================================================================
# Reason Strings
# =============================================================================

REASON_VERY_CLOSE = "Very close to you"
REASON_NEAR = "Near your location"
REASON_PERFECT_DIFFICULTY = "Perfect difficulty match"
REASON_GROWTH = "Growth opportunity"
REASON_RECENT = "Recently added"
REASON_HAPPENING_SOON = "Happening soon"
REASON_THIS_WEEKEND = "This weekend"
REASON_THIS_WEEK = "This week"
REASON_SPOTS_AVAILABLE = "Spots available"
REASON_POPULAR = "Popular activity"
REASON_YOUR_ACTIVITY = "Your activity"
REASON_YOUR_EVENT = "Your event"
REASON_JOINED_EVENT = "Joined event"
