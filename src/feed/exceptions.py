"""Errors raised at the feed boundary.

Scoring itself never raises on sparse data; these cover caller misuse.
"""


class FeedError(ValueError):
    """Base class for feed assembly errors."""


class UnknownFeedModeError(FeedError):
    """Raised when a feed mode string is not a FeedMode value."""

    def __init__(self, mode: object) -> None:
        super().__init__(f"Unknown feed mode: {mode!r}")
        self.mode = mode


class UnknownContentFilterError(FeedError):
    """Raised when a content filter string is not a ContentFilter value."""

    def __init__(self, content_filter: object) -> None:
        super().__init__(f"Unknown content filter: {content_filter!r}")
        self.content_filter = content_filter
