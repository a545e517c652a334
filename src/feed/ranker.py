"""
Suggestion filter and ranker.

Turns a scored pool of one item type into the admitted, ordered,
size-bounded list that goes into the feed:

1. Exclude the viewer's own items and events that are not upcoming
   (done before scoring, see ``is_excluded``).
2. Admit: ``score > min_score``, and when the viewer's location is known
   also ``location_score > 0``.  Proximity is a hard gate whenever
   location is known, not just a weighted factor.
3. Sort by score, descending.  ``list.sort`` is stable, so ties keep
   input order.
4. Keep at most ``max_results`` (activities and events are capped
   independently).
"""

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Iterable, List, Optional

from config import constants as C
from core.logging import LoggerMixin
from scoring.models import Candidate, Event, ScoredResult

if TYPE_CHECKING:
    from config.settings import Settings


@dataclass(frozen=True)
class RankerConfig:
    """Admission threshold and per-type cap."""

    min_score: float = C.MIN_SUGGESTION_SCORE
    max_results: int = C.MAX_RESULTS_PER_TYPE

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RankerConfig":
        return cls(
            min_score=settings.feed_min_score,
            max_results=settings.feed_max_results_per_type,
        )


DEFAULT_RANKER_CONFIG = RankerConfig()


def is_excluded(candidate: Candidate, viewer_id: Optional[str], now: datetime) -> bool:
    """
    True for items that must never be suggested to this viewer.

    Own items (activity owner / event organizer) are excluded, and so is
    any event whose date is missing or not strictly after ``now``.
    """
    if viewer_id is not None and candidate.owner_id == viewer_id:
        return True
    if isinstance(candidate, Event):
        return candidate.date is None or candidate.date <= now
    return False


def within_radius(result: ScoredResult) -> bool:
    return result.relevance_factors.location_score > 0


class SuggestionRanker(LoggerMixin):
    """Applies the admission rules, ordering and cap to one scored pool."""

    def __init__(self, config: Optional[RankerConfig] = None) -> None:
        self.config = config or DEFAULT_RANKER_CONFIG

    def admits(self, result: ScoredResult, has_user_location: bool) -> bool:
        if has_user_location and not within_radius(result):
            return False
        return result.score > self.config.min_score

    def rank(
        self,
        results: Iterable[ScoredResult],
        has_user_location: bool,
    ) -> List[ScoredResult]:
        """Admitted results, best first, at most ``max_results`` long."""
        scored = list(results)
        admitted = [r for r in scored if self.admits(r, has_user_location)]
        return self._order(admitted, scored_count=len(scored), gate="suggested")

    def rank_nearby(
        self,
        results: Iterable[ScoredResult],
        has_user_location: bool,
    ) -> List[ScoredResult]:
        """
        Proximity-only admission: inside the radius when the viewer's
        location is known, everything otherwise.  No minimum score.
        """
        scored = list(results)
        admitted = [r for r in scored if not has_user_location or within_radius(r)]
        return self._order(admitted, scored_count=len(scored), gate="nearby")

    def _order(
        self,
        admitted: List[ScoredResult],
        scored_count: int,
        gate: str,
    ) -> List[ScoredResult]:
        admitted.sort(key=lambda r: r.score, reverse=True)
        ranked = admitted[: self.config.max_results]
        self.logger.debug(
            "Ranked pool",
            gate=gate,
            scored=scored_count,
            admitted=len(admitted),
            kept=len(ranked),
        )
        return ranked
