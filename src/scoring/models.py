"""
Pydantic models for relevance scoring.

Models cover:
- The viewer's profile (interests, home location, radius, experience)
- Candidate activities and events as delivered by the document store
- Scored results with a per-factor breakdown

The document store permits partial records, so every collection field
accepts ``None`` and is coerced to an empty collection, and timestamps
that cannot be parsed are treated as absent.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from core.utils import as_list, parse_timestamp, safe_get, to_float
from scoring.geo import Coordinates, parse_location


def _string_list(value: Any) -> List[str]:
    """Keep non-blank strings, stripped, in their original order."""
    return [v.strip() for v in as_list(value) if isinstance(v, str) and v.strip()]


def _lower_or_none(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip().lower()


class _Document(BaseModel):
    """Base for loosely-typed store documents: unknown keys are kept."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")


# =============================================================================
# Viewer
# =============================================================================

class UserProfile(_Document):
    """Subset of the viewer's profile that drives scoring."""

    user_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("user_id", "userId", "$id", "id"),
    )
    disciplines: List[str] = Field(default_factory=list)
    location_coords: Any = Field(
        default=None,
        validation_alias=AliasChoices("location_coords", "locationCoords"),
    )
    location: Any = None
    search_radius: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("search_radius", "searchRadius"),
        description="Max relevant distance in km; None means the configured default",
    )
    # activity type (lower-cased) -> beginner | intermediate | advanced
    experience_levels: Dict[str, str] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("experience_levels", "experienceLevels"),
    )

    @field_validator("disciplines", mode="before")
    @classmethod
    def _coerce_disciplines(cls, v):
        return _string_list(v)

    @field_validator("search_radius", mode="before")
    @classmethod
    def _coerce_radius(cls, v):
        radius = to_float(v)
        if radius is None or radius <= 0:
            return None
        return radius

    @field_validator("experience_levels", mode="before")
    @classmethod
    def _coerce_levels(cls, v):
        if not isinstance(v, dict):
            return {}
        levels: Dict[str, str] = {}
        for key, level in v.items():
            key_lower, level_lower = _lower_or_none(key), _lower_or_none(level)
            if key_lower and level_lower:
                levels[key_lower] = level_lower
        return levels

    @field_validator("user_id", mode="before")
    @classmethod
    def _coerce_user_id(cls, v):
        return None if v is None else str(v)

    def home_location(self) -> Optional[Coordinates]:
        """Parsed home location: ``locationCoords`` first, then ``location``."""
        return parse_location(self.location_coords) or parse_location(self.location)


# =============================================================================
# Candidates
# =============================================================================

class _Candidate(_Document):
    id: str = Field(validation_alias=AliasChoices("id", "$id"))
    difficulty: Optional[str] = None
    created_at: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("created_at", "createdAt", "$createdAt"),
    )

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v):
        return v if v is None else str(v)

    @field_validator("difficulty", mode="before")
    @classmethod
    def _coerce_difficulty(cls, v):
        return _lower_or_none(v)

    @field_validator("created_at", mode="before")
    @classmethod
    def _coerce_created_at(cls, v):
        return parse_timestamp(v)


class Activity(_Candidate):
    """A place or pursuit users can join."""

    activity_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("activity_name", "activityname", "activityName"),
    )
    types: List[str] = Field(default_factory=list)
    location: Any = None
    participant_count: int = Field(
        default=0,
        validation_alias=AliasChoices("participant_count", "participantCount"),
    )
    user_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("user_id", "userId", "ownerId"),
    )

    @field_validator("types", mode="before")
    @classmethod
    def _coerce_types(cls, v):
        return _string_list(v)

    @field_validator("participant_count", mode="before")
    @classmethod
    def _coerce_participant_count(cls, v):
        count = to_float(v)
        return int(count) if count is not None and count > 0 else 0

    @property
    def owner_id(self) -> Optional[str]:
        return self.user_id


class Event(_Candidate):
    """A dated occurrence, usually attached to an activity."""

    event_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("event_name", "eventName"),
    )
    activity_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("activity_id", "activityId"),
    )
    activity_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("activity_name", "activityName", "activityname"),
    )
    activity_types: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("activity_types", "activityTypes"),
    )
    location: Any = None
    meetup_point: Any = Field(
        default=None,
        validation_alias=AliasChoices("meetup_point", "meetupPoint"),
    )
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    date: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("date", "startDate"),
    )
    participants: List[str] = Field(default_factory=list)
    max_participants: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("max_participants", "maxParticipants"),
    )
    organizer_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("organizer_id", "organizerId"),
    )

    @field_validator("activity_types", mode="before")
    @classmethod
    def _coerce_activity_types(cls, v):
        return _string_list(v)

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_coordinate(cls, v):
        return to_float(v)

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, v):
        return parse_timestamp(v)

    @field_validator("participants", mode="before")
    @classmethod
    def _coerce_participants(cls, v):
        # Participants arrive either as user ids or as {userId, joinedAt, ...}
        ids: List[str] = []
        for entry in as_list(v):
            if isinstance(entry, bool):
                continue
            user_id = entry if isinstance(entry, (str, int)) else safe_get(entry, "userId")
            if user_id is not None and str(user_id).strip():
                ids.append(str(user_id))
        return ids

    @field_validator("max_participants", mode="before")
    @classmethod
    def _coerce_max_participants(cls, v):
        limit = to_float(v)
        return None if limit is None else int(limit)

    @property
    def owner_id(self) -> Optional[str]:
        return self.organizer_id

    def resolved_location(self) -> Optional[Coordinates]:
        """First parseable of ``location``, ``meetupPoint``, ``{latitude, longitude}``."""
        return (
            parse_location(self.location)
            or parse_location(self.meetup_point)
            or parse_location({"latitude": self.latitude, "longitude": self.longitude})
        )

    def has_open_spots(self) -> bool:
        return self.max_participants is not None and len(self.participants) < self.max_participants


Candidate = Union[Activity, Event]


# =============================================================================
# Scores
# =============================================================================

class RelevanceFactors(BaseModel):
    """Per-factor contributions, each bounded by that factor's weight."""
    type_match: float = Field(default=0.0, ge=0)
    location_score: float = Field(default=0.0, ge=0)
    difficulty_match: float = Field(default=0.0, ge=0)
    availability_match: float = Field(default=0.0, ge=0)
    freshness_score: float = Field(default=0.0, ge=0)

    def weighted_total(self) -> float:
        return (
            self.type_match
            + self.location_score
            + self.difficulty_match
            + self.availability_match
            + self.freshness_score
        )


class ScoredResult(BaseModel):
    """A candidate with its relevance score, reasons and factor breakdown."""
    item: Candidate
    score: float = Field(default=0.0, ge=0)
    match_reasons: List[str] = Field(default_factory=list)
    relevance_factors: RelevanceFactors = Field(default_factory=RelevanceFactors)
