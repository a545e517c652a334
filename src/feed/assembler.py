"""
Feed assembly.

``build_feed`` is the single entry point the UI layer calls.  It takes
the viewer's profile and four candidate pools (already fetched) and
returns one ordered list of ``FeedItem`` values:

- ``involved``:  the viewer's own activities and the events they organize
  or joined.  Each gets a fixed score (100) and a fixed reason, bypassing
  the scorers, so own content sorts above suggestions.
- ``suggested``: public, non-own candidates scored by the relevance model,
  gated (minimum score, radius) and capped per type.
- ``nearby``:    public, non-own candidates gated by radius only.

Events first inherit a name, type tags and (when they have none) a
location from their parent activity.  The final merge orders by score
descending, then timestamp descending.

Pure with respect to its inputs: candidates are copied, never mutated,
and "now" is read once per call.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from config import constants as C
from config.settings import Settings, get_settings
from core.logging import LoggerMixin, bound_context, get_logger
from feed.exceptions import UnknownContentFilterError, UnknownFeedModeError
from feed.models import ContentFilter, FeedItem, FeedItemType, FeedMode
from feed.ranker import RankerConfig, SuggestionRanker, is_excluded
from scoring.clock import Clock, as_utc, system_clock
from scoring.models import (
    Activity,
    Candidate,
    Event,
    RelevanceFactors,
    ScoredResult,
    UserProfile,
)
from scoring.scorer import ActivityScorer, EventScorer, RelevanceScorer, RelevanceScoringConfig

ModelT = TypeVar("ModelT", bound=BaseModel)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


# =============================================================================
# Input coercion
# =============================================================================

def _as_model(model: Type[ModelT], value: Union[ModelT, Dict[str, Any]]) -> ModelT:
    if isinstance(value, model):
        return value
    return model.model_validate(value)


def _as_models(model: Type[ModelT], values: Optional[Iterable[Any]]) -> List[ModelT]:
    """Validate each document, skipping the ones that cannot be read."""
    models: List[ModelT] = []
    for value in values or []:
        try:
            models.append(_as_model(model, value))
        except ValidationError as e:
            get_logger(__name__).debug(
                "Skipped invalid document",
                model=model.__name__,
                errors=e.error_count(),
                error=str(e),
            )
    return models


def _unique(candidates: Iterable[Candidate]) -> List[Candidate]:
    """Drop repeated ids, first occurrence wins."""
    seen = set()
    unique: List[Candidate] = []
    for c in candidates:
        if c.id not in seen:
            seen.add(c.id)
            unique.append(c)
    return unique


def _parse_mode(mode: Union[FeedMode, str]) -> FeedMode:
    try:
        return FeedMode(mode)
    except ValueError:
        raise UnknownFeedModeError(mode) from None


def _parse_content_filter(content_filter: Union[ContentFilter, str]) -> ContentFilter:
    try:
        return ContentFilter(content_filter)
    except ValueError:
        raise UnknownContentFilterError(content_filter) from None


# =============================================================================
# Event enrichment
# =============================================================================

def enrich_event(event: Event, activities_by_id: Dict[str, Activity]) -> Event:
    """
    Copy of ``event`` with gaps filled from its parent activity.

    Fills ``activity_name`` and ``activity_types`` when missing, and the
    location when none of the event's own encodings parses.
    """
    parent = activities_by_id.get(event.activity_id) if event.activity_id else None
    if parent is None:
        return event

    update: Dict[str, Any] = {}
    if not event.activity_name and parent.activity_name:
        update["activity_name"] = parent.activity_name
    if not event.activity_types and parent.types:
        update["activity_types"] = list(parent.types)
    if event.resolved_location() is None and parent.location is not None:
        update["location"] = parent.location

    return event.model_copy(update=update) if update else event


# =============================================================================
# Assembler
# =============================================================================

class FeedAssembler(LoggerMixin):
    """
    Builds feeds from candidate pools.

    Holds the scorers, ranker and clock; safe to reuse across requests.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        scoring_config: Optional[RelevanceScoringConfig] = None,
        ranker_config: Optional[RankerConfig] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        settings = settings or get_settings()
        self.clock = clock or system_clock
        self.scoring_config = scoring_config or RelevanceScoringConfig.from_settings(settings)
        self.own_content_score = settings.feed_own_content_score
        self.activity_scorer = ActivityScorer(self.scoring_config, self.clock)
        self.event_scorer = EventScorer(self.scoring_config, self.clock)
        self.ranker = SuggestionRanker(ranker_config or RankerConfig.from_settings(settings))

    def build(
        self,
        mode: Union[FeedMode, str],
        user_profile: Union[UserProfile, Dict[str, Any]],
        owned_activities: Optional[Iterable[Any]] = None,
        owned_events: Optional[Iterable[Any]] = None,
        public_activities: Optional[Iterable[Any]] = None,
        public_events: Optional[Iterable[Any]] = None,
        content_filter: Union[ContentFilter, str] = ContentFilter.ALL,
    ) -> List[FeedItem]:
        """
        Assemble the feed for one viewer.

        Args:
            mode: ``involved``, ``suggested`` or ``nearby``.
            user_profile: UserProfile or raw profile document.
            owned_activities: Activities the viewer owns.
            owned_events: Events the viewer organizes or joined.
            public_activities: Public activity pool.
            public_events: Public event pool.
            content_filter: ``all``, ``activities`` or ``events``.

        Returns:
            FeedItems ordered by score, then timestamp, both descending.

        Raises:
            UnknownFeedModeError: ``mode`` is not a FeedMode.
            UnknownContentFilterError: ``content_filter`` is not a ContentFilter.
            pydantic.ValidationError: ``user_profile`` cannot be validated.

        Candidate documents that fail validation are skipped, not raised.
        """
        feed_mode = _parse_mode(mode)
        wanted = _parse_content_filter(content_filter)
        with bound_context(feed_mode=feed_mode.value, content_filter=wanted.value):
            return self._build(
                feed_mode,
                wanted,
                user_profile,
                owned_activities,
                owned_events,
                public_activities,
                public_events,
            )

    def _build(
        self,
        feed_mode: FeedMode,
        wanted: ContentFilter,
        user_profile: Union[UserProfile, Dict[str, Any]],
        owned_activities: Optional[Iterable[Any]],
        owned_events: Optional[Iterable[Any]],
        public_activities: Optional[Iterable[Any]],
        public_events: Optional[Iterable[Any]],
    ) -> List[FeedItem]:
        profile = _as_model(UserProfile, user_profile)
        now = as_utc(self.clock())

        owned_acts = _as_models(Activity, owned_activities)
        public_acts = _as_models(Activity, public_activities)
        activities_by_id: Dict[str, Activity] = {}
        for activity in owned_acts + public_acts:
            activities_by_id.setdefault(activity.id, activity)

        owned_evts = [enrich_event(e, activities_by_id) for e in _as_models(Event, owned_events)]
        public_evts = [enrich_event(e, activities_by_id) for e in _as_models(Event, public_events)]

        if feed_mode is FeedMode.INVOLVED:
            activity_results, event_results = self._involved(
                profile, owned_acts, owned_evts, public_evts, wanted,
            )
        else:
            activity_results, event_results = self._ranked(
                feed_mode, profile, public_acts, public_evts, wanted, now,
            )

        feed = merge_feed(activity_results, event_results)
        self.logger.debug(
            "Built feed",
            activities=len(activity_results),
            events=len(event_results),
            items=len(feed),
        )
        return feed

    # ── Modes ─────────────────────────────────────────────────────

    def _involved(
        self,
        profile: UserProfile,
        owned_activities: List[Activity],
        owned_events: List[Event],
        public_events: List[Event],
        wanted: ContentFilter,
    ):
        viewer_id = profile.user_id
        activity_results: List[ScoredResult] = []
        event_results: List[ScoredResult] = []

        if wanted.includes(FeedItemType.ACTIVITY):
            for activity in _unique(owned_activities):
                if viewer_id is None or activity.user_id == viewer_id:
                    activity_results.append(self._own(activity, C.REASON_YOUR_ACTIVITY))

        if wanted.includes(FeedItemType.EVENT):
            owned_ids = {e.id for e in owned_events}
            for event in _unique(owned_events + public_events):
                reason = _involvement(event, viewer_id)
                # Without a viewer id the owned list is taken at its word
                if reason is None and viewer_id is None and event.id in owned_ids:
                    reason = C.REASON_YOUR_EVENT
                if reason is not None:
                    event_results.append(self._own(event, reason))

        return activity_results, event_results

    def _ranked(
        self,
        mode: FeedMode,
        profile: UserProfile,
        public_activities: List[Activity],
        public_events: List[Event],
        wanted: ContentFilter,
        now: datetime,
    ):
        activity_results: List[ScoredResult] = []
        event_results: List[ScoredResult] = []

        if wanted.includes(FeedItemType.ACTIVITY):
            activity_results = self._rank_pool(
                mode, self.activity_scorer, public_activities, profile, now,
            )
        if wanted.includes(FeedItemType.EVENT):
            event_results = self._rank_pool(
                mode, self.event_scorer, public_events, profile, now,
            )
        return activity_results, event_results

    def _rank_pool(
        self,
        mode: FeedMode,
        scorer: RelevanceScorer,
        candidates: Sequence[Candidate],
        profile: UserProfile,
        now: datetime,
    ) -> List[ScoredResult]:
        eligible = [
            c for c in _unique(candidates)
            if not is_excluded(c, profile.user_id, now)
        ]
        scored = scorer.score_items(eligible, profile, now)
        has_location = profile.home_location() is not None
        if mode is FeedMode.NEARBY:
            return self.ranker.rank_nearby(scored, has_location)
        return self.ranker.rank(scored, has_location)

    def _own(self, candidate: Candidate, reason: str) -> ScoredResult:
        return ScoredResult(
            item=candidate,
            score=self.own_content_score,
            match_reasons=[reason],
            relevance_factors=RelevanceFactors(),
        )


def _involvement(event: Event, viewer_id: Optional[str]) -> Optional[str]:
    """Reason string for the viewer's role in ``event``, organizer first."""
    if viewer_id is None:
        return None
    if event.organizer_id == viewer_id:
        return C.REASON_YOUR_EVENT
    if viewer_id in event.participants:
        return C.REASON_JOINED_EVENT
    return None


def merge_feed(
    activity_results: Iterable[ScoredResult],
    event_results: Iterable[ScoredResult],
) -> List[FeedItem]:
    """
    Merge both result lists into FeedItems.

    Keys are (type, id) and the first occurrence wins.  Ordered by score
    descending; equal scores fall back to timestamp descending, with
    missing timestamps last.
    """
    items: List[FeedItem] = []
    seen = set()
    for item_type, results in (
        (FeedItemType.ACTIVITY, activity_results),
        (FeedItemType.EVENT, event_results),
    ):
        for result in results:
            item = FeedItem.from_result(item_type, result)
            if item.key in seen:
                continue
            seen.add(item.key)
            items.append(item)

    items.sort(key=lambda i: (i.score, i.timestamp or _OLDEST), reverse=True)
    return items


def build_feed(
    mode: Union[FeedMode, str],
    user_profile: Union[UserProfile, Dict[str, Any]],
    owned_activities: Optional[Iterable[Any]] = None,
    owned_events: Optional[Iterable[Any]] = None,
    public_activities: Optional[Iterable[Any]] = None,
    public_events: Optional[Iterable[Any]] = None,
    content_filter: Union[ContentFilter, str] = ContentFilter.ALL,
    *,
    settings: Optional[Settings] = None,
    clock: Optional[Clock] = None,
) -> List[FeedItem]:
    """Build a feed with a one-off ``FeedAssembler``; see ``FeedAssembler.build``."""
    assembler = FeedAssembler(settings=settings, clock=clock)
    return assembler.build(
        mode,
        user_profile,
        owned_activities,
        owned_events,
        public_activities,
        public_events,
        content_filter,
    )
