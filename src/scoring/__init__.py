"""
Relevance scoring for the activity / event feed.

Pure scoring components: a location parser, a haversine distance, and
two scorers (activities, events) sharing one five-factor model.

Quick start::

    from scoring import Activity, ActivityScorer, UserProfile, fixed_clock

    profile = UserProfile.model_validate(profile_doc)
    scorer = ActivityScorer(clock=fixed_clock(now))

    result = scorer.score(Activity.model_validate(doc), profile)
    result.score, result.match_reasons, result.relevance_factors
"""

from scoring.clock import Clock, fixed_clock, system_clock
from scoring.geo import Coordinates, distance_between, distance_km, parse_location
from scoring.models import (
    Activity,
    Event,
    RelevanceFactors,
    ScoredResult,
    UserProfile,
)
from scoring.scorer import (
    ActivityScorer,
    EventScorer,
    RelevanceScorer,
    RelevanceScoringConfig,
)

__all__ = [
    "Clock",
    "fixed_clock",
    "system_clock",
    "Coordinates",
    "distance_between",
    "distance_km",
    "parse_location",
    "Activity",
    "Event",
    "RelevanceFactors",
    "ScoredResult",
    "UserProfile",
    "ActivityScorer",
    "EventScorer",
    "RelevanceScorer",
    "RelevanceScoringConfig",
]
