"""
Pydantic models for the assembled feed.

A feed is a flat, ordered list of ``FeedItem`` values.  Items are
namespaced by type, so an activity and an event may share an id.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from scoring.models import ScoredResult


class FeedItemType(str, Enum):
    ACTIVITY = "activity"
    EVENT = "event"


class FeedMode(str, Enum):
    """Which feed the viewer asked for."""
    INVOLVED = "involved"     # own activities, organized or joined events
    SUGGESTED = "suggested"   # scored, gated and ranked public items
    NEARBY = "nearby"         # public items inside the search radius


class ContentFilter(str, Enum):
    ALL = "all"
    ACTIVITIES = "activities"
    EVENTS = "events"

    def includes(self, item_type: FeedItemType) -> bool:
        if self is ContentFilter.ALL:
            return True
        if self is ContentFilter.ACTIVITIES:
            return item_type is FeedItemType.ACTIVITY
        return item_type is FeedItemType.EVENT


class FeedItem(BaseModel):
    """One entry of the assembled feed."""
    id: str
    type: FeedItemType
    timestamp: Optional[datetime] = None
    data: ScoredResult
    score: float = 0.0
    match_reasons: List[str] = Field(default_factory=list)

    @property
    def key(self) -> Tuple[FeedItemType, str]:
        return self.type, self.id

    @classmethod
    def from_result(cls, item_type: FeedItemType, result: ScoredResult) -> "FeedItem":
        candidate = result.item
        timestamp = candidate.created_at
        if timestamp is None and item_type is FeedItemType.EVENT:
            timestamp = candidate.date
        return cls(
            id=candidate.id,
            type=item_type,
            timestamp=timestamp,
            data=result,
            score=result.score,
            match_reasons=list(result.match_reasons),
        )
