"""
Relevance scorers for feed candidates.

Both scorers share one five-factor weighted model:

  1. Type affinity       (cap 40)  discipline <-> type tag overlap
  2. Location proximity  (cap 30)  linear falloff to the search radius
  3. Difficulty match    (cap 15)  experience level vs. difficulty
  4. Freshness           (cap 5)   days since creation
  5. Availability        (cap 10)  events only, hours until start

plus flat bonuses that sit outside the factors: "spots available" for
events with room left and "popular" for activities with a crowd.  The
five factors alone cap at 100; the total score has no fixed upper bound.

Usage::

    from scoring.scorer import ActivityScorer, EventScorer

    scorer = ActivityScorer()
    result = scorer.score(activity, profile)
    result.score, result.match_reasons, result.relevance_factors

    # Batch: profile fields are prepared once
    results = scorer.score_items(activities, profile)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Sequence, Tuple

from config import constants as C
from scoring.clock import Clock, as_utc, system_clock
from scoring.geo import Coordinates, distance_between, parse_location
from scoring.models import (
    Activity,
    Candidate,
    Event,
    RelevanceFactors,
    ScoredResult,
    UserProfile,
)

if TYPE_CHECKING:
    from config.settings import Settings

_W = C.DEFAULT_RELEVANCE_WEIGHTS

# (points, reason) for a single factor; reason may be None
Contribution = Tuple[float, Optional[str]]

_NO_CONTRIBUTION: Contribution = (0.0, None)


# ── Scoring configuration ────────────────────────────────────────

@dataclass
class RelevanceScoringConfig:
    """
    Weights, bonuses and bands for relevance scoring.

    Weights are the caps of the five factors.  Bonuses are flat and
    added to the total only.
    """

    # Factor caps
    type_match_weight: float = _W.TYPE_MATCH
    location_weight: float = _W.LOCATION
    difficulty_weight: float = _W.DIFFICULTY
    freshness_weight: float = _W.FRESHNESS
    availability_weight: float = _W.AVAILABILITY

    # Difficulty partial credit
    growth_opportunity_score: float = C.GROWTH_OPPORTUNITY_SCORE
    easier_than_level_score: float = C.EASIER_THAN_LEVEL_SCORE
    difficulty_ladder: Tuple[str, ...] = C.DIFFICULTY_LADDER

    # Flat bonuses
    spots_available_bonus: float = C.SPOTS_AVAILABLE_BONUS
    popularity_bonus: float = C.POPULARITY_BONUS
    popularity_min_participants: int = C.POPULARITY_MIN_PARTICIPANTS

    # Location
    default_search_radius_km: float = C.DEFAULT_SEARCH_RADIUS_KM
    very_close_km: float = C.VERY_CLOSE_KM
    near_km: float = C.NEAR_KM

    # Freshness (days)
    fresh_days: float = C.FRESH_DAYS
    recent_days: float = C.RECENT_DAYS
    recent_score: float = C.RECENT_SCORE

    # Event timing (hours)
    happening_soon_hours: float = C.HAPPENING_SOON_HOURS
    this_weekend_hours: float = C.THIS_WEEKEND_HOURS
    this_week_hours: float = C.THIS_WEEK_HOURS

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RelevanceScoringConfig":
        return cls(default_search_radius_km=settings.feed_default_search_radius_km)


# ── Precomputed profile fields ───────────────────────────────────

class _ProfileFields:
    """Profile values normalised once per scoring pass."""

    __slots__ = ("disciplines_lower", "home", "radius_km", "levels")

    def __init__(self, profile: UserProfile, cfg: RelevanceScoringConfig) -> None:
        self.disciplines_lower: List[str] = [d.lower() for d in profile.disciplines]
        self.home: Optional[Coordinates] = profile.home_location()
        self.radius_km: float = profile.search_radius or cfg.default_search_radius_km
        self.levels: Dict[str, str] = profile.experience_levels


@dataclass
class _ScoreCard:
    factors: Dict[str, float] = field(default_factory=dict)
    reasons: List[str] = field(default_factory=list)
    bonus: float = 0.0

    def add_factor(self, name: str, contribution: Contribution) -> None:
        points, reason = contribution
        self.factors[name] = points
        if reason:
            self.reasons.append(reason)

    def add_bonus(self, contribution: Contribution) -> None:
        points, reason = contribution
        self.bonus += points
        if reason:
            self.reasons.append(reason)


# ── Scorers ──────────────────────────────────────────────────────

class RelevanceScorer:
    """
    Shared five-factor model.  Subclasses say which candidate fields
    feed each factor and which extras apply.

    Stateless apart from config and clock -- safe to reuse across feeds.
    """

    def __init__(
        self,
        config: Optional[RelevanceScoringConfig] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.config = config or RelevanceScoringConfig()
        self.clock = clock or system_clock

    # ── Public API ────────────────────────────────────────────────

    def score(
        self,
        candidate: Candidate,
        profile: UserProfile,
        now: Optional[datetime] = None,
    ) -> ScoredResult:
        """
        Score one candidate against the viewer's profile.

        Args:
            candidate: Activity or Event.
            profile: Viewer profile.
            now: Instant to score against; defaults to the scorer's clock.

        Returns:
            ScoredResult wrapping the candidate.
        """
        pf = _ProfileFields(profile, self.config)
        return self._score(candidate, pf, as_utc(now or self.clock()))

    def score_items(
        self,
        candidates: Iterable[Candidate],
        profile: UserProfile,
        now: Optional[datetime] = None,
    ) -> List[ScoredResult]:
        """Score a batch against a single instant, preserving input order."""
        pf = _ProfileFields(profile, self.config)
        instant = as_utc(now or self.clock())
        return [self._score(c, pf, instant) for c in candidates]

    def explain(
        self,
        candidate: Candidate,
        profile: UserProfile,
        now: Optional[datetime] = None,
    ) -> dict:
        """Return a detailed breakdown for debugging / admin UI."""
        result = self.score(candidate, profile, now)
        factors = result.relevance_factors
        breakdown = {name: round(value, 4) for name, value in factors.model_dump().items()}
        breakdown["bonus"] = round(result.score - factors.weighted_total(), 4)
        breakdown["total"] = round(result.score, 4)
        breakdown["reasons"] = list(result.match_reasons)
        return breakdown

    # ── Template ──────────────────────────────────────────────────

    def _score(self, candidate: Candidate, pf: _ProfileFields, now: datetime) -> ScoredResult:
        types = self._candidate_types(candidate)
        card = _ScoreCard()

        card.add_factor("type_match", self._score_types(types, pf))
        card.add_factor("location_score", self._score_location(self._candidate_location(candidate), pf))
        card.add_factor("difficulty_match", self._score_difficulty(types, candidate.difficulty, pf))
        card.add_factor("freshness_score", self._score_freshness(candidate.created_at, now))
        self._score_extras(candidate, now, card)

        factors = RelevanceFactors(**card.factors)
        return ScoredResult(
            item=candidate,
            score=factors.weighted_total() + card.bonus,
            match_reasons=card.reasons,
            relevance_factors=factors,
        )

    def _candidate_types(self, candidate: Candidate) -> Sequence[str]:
        raise NotImplementedError

    def _candidate_location(self, candidate: Candidate) -> Optional[Coordinates]:
        raise NotImplementedError

    def _score_extras(self, candidate: Candidate, now: datetime, card: _ScoreCard) -> None:
        """Hook for variant-specific factors and bonuses."""

    # ── Scoring dimensions (private) ──────────────────────────────

    def _score_types(self, types: Sequence[str], pf: _ProfileFields) -> Contribution:
        """Bidirectional case-insensitive substring match against disciplines.

        Loose on purpose: user disciplines and type tags are free text
        from different vocabularies ("ski" matches "Skiing" and vice versa).
        """
        if not types or not pf.disciplines_lower:
            return _NO_CONTRIBUTION

        matched = [
            t for t in types
            if any(d in t.lower() or t.lower() in d for d in pf.disciplines_lower)
        ]
        if not matched:
            return _NO_CONTRIBUTION

        points = len(matched) / len(types) * self.config.type_match_weight
        return points, f"Matches your interest in {', '.join(matched)}"

    def _score_location(self, location: Optional[Coordinates], pf: _ProfileFields) -> Contribution:
        """Linear falloff from full weight at 0 km to nothing at the radius."""
        cfg = self.config
        if pf.home is None or location is None:
            return _NO_CONTRIBUTION

        distance = distance_between(pf.home, location)
        if distance > pf.radius_km:
            return _NO_CONTRIBUTION

        points = (1 - distance / pf.radius_km) * cfg.location_weight
        if distance <= cfg.very_close_km:
            reason = C.REASON_VERY_CLOSE
        elif distance <= cfg.near_km:
            reason = C.REASON_NEAR
        else:
            reason = f"{distance:.1f}km from you"
        return points, reason

    def _score_difficulty(
        self,
        types: Sequence[str],
        difficulty: Optional[str],
        pf: _ProfileFields,
    ) -> Contribution:
        """First type tag (in order) with a comparable experience level wins."""
        cfg = self.config
        if not difficulty or not pf.levels:
            return _NO_CONTRIBUTION

        ladder = cfg.difficulty_ladder
        target = ladder.index(difficulty) if difficulty in ladder else None

        for t in types:
            level = pf.levels.get(t.lower())
            if not level:
                continue
            if level == difficulty:
                return cfg.difficulty_weight, C.REASON_PERFECT_DIFFICULTY
            if target is None or level not in ladder:
                continue
            current = ladder.index(level)
            if current + 1 == target:
                return min(cfg.growth_opportunity_score, cfg.difficulty_weight), C.REASON_GROWTH
            if current == target + 1:
                return min(cfg.easier_than_level_score, cfg.difficulty_weight), None

        return _NO_CONTRIBUTION

    def _score_freshness(self, created_at: Optional[datetime], now: datetime) -> Contribution:
        cfg = self.config
        if created_at is None:
            return _NO_CONTRIBUTION

        age_days = (now - created_at).total_seconds() / 86400
        if age_days <= cfg.fresh_days:
            return cfg.freshness_weight, C.REASON_RECENT
        if age_days <= cfg.recent_days:
            return min(cfg.recent_score, cfg.freshness_weight), None
        return _NO_CONTRIBUTION


class ActivityScorer(RelevanceScorer):
    """Scores activities; adds the popularity bonus."""

    def _candidate_types(self, candidate: Activity) -> Sequence[str]:
        return candidate.types

    def _candidate_location(self, candidate: Activity) -> Optional[Coordinates]:
        return parse_location(candidate.location)

    def _score_extras(self, candidate: Activity, now: datetime, card: _ScoreCard) -> None:
        card.add_bonus(self._score_popularity(candidate))

    def _score_popularity(self, candidate: Activity) -> Contribution:
        cfg = self.config
        if candidate.participant_count > cfg.popularity_min_participants:
            return cfg.popularity_bonus, C.REASON_POPULAR
        return _NO_CONTRIBUTION


class EventScorer(RelevanceScorer):
    """Scores events; adds the timing factor and the open-spots bonus."""

    def _candidate_types(self, candidate: Event) -> Sequence[str]:
        return candidate.activity_types

    def _candidate_location(self, candidate: Event) -> Optional[Coordinates]:
        return candidate.resolved_location()

    def _score_extras(self, candidate: Event, now: datetime, card: _ScoreCard) -> None:
        card.add_factor("availability_match", self._score_timing(candidate.date, now))
        card.add_bonus(self._score_spots(candidate))

    def _score_timing(self, starts_at: Optional[datetime], now: datetime) -> Contribution:
        cfg = self.config
        if starts_at is None:
            return _NO_CONTRIBUTION

        hours_until = (starts_at - now).total_seconds() / 3600
        if hours_until <= 0 or hours_until > cfg.this_week_hours:
            return _NO_CONTRIBUTION

        if hours_until <= cfg.happening_soon_hours:
            reason = C.REASON_HAPPENING_SOON
        elif hours_until <= cfg.this_weekend_hours:
            reason = C.REASON_THIS_WEEKEND
        else:
            reason = C.REASON_THIS_WEEK
        return cfg.availability_weight, reason

    def _score_spots(self, candidate: Event) -> Contribution:
        if candidate.has_open_spots():
            return self.config.spots_available_bonus, C.REASON_SPOTS_AVAILABLE
        return _NO_CONTRIBUTION

