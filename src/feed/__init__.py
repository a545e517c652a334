"""
Feed assembly for the activity / event feed.

Usage::

    from feed import build_feed

    items = build_feed(
        "suggested",
        profile_doc,
        owned_activities, owned_events,
        public_activities, public_events,
        content_filter="all",
    )
"""

from feed.assembler import FeedAssembler, build_feed, enrich_event, merge_feed
from feed.exceptions import FeedError, UnknownContentFilterError, UnknownFeedModeError
from feed.models import ContentFilter, FeedItem, FeedItemType, FeedMode
from feed.ranker import RankerConfig, SuggestionRanker, is_excluded

__all__ = [
    "FeedAssembler",
    "build_feed",
    "enrich_event",
    "merge_feed",
    "FeedError",
    "UnknownContentFilterError",
    "UnknownFeedModeError",
    "ContentFilter",
    "FeedItem",
    "FeedItemType",
    "FeedMode",
    "RankerConfig",
    "SuggestionRanker",
    "is_excluded",
]
