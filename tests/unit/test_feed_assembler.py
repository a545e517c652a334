"""
Tests for feed assembly: modes, content filter, event enrichment and the
final merge.

Run with: PYTHONPATH=src python -m pytest tests/unit/test_feed_assembler.py -v
"""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from config.settings import get_settings_for_testing
from conftest import NOW, SYDNEY_LAT, SYDNEY_LNG, days_ago, hours_ahead, iso, north_of
from feed import (
    ContentFilter,
    FeedAssembler,
    FeedError,
    FeedItemType,
    FeedMode,
    UnknownContentFilterError,
    UnknownFeedModeError,
    build_feed,
    enrich_event,
    merge_feed,
)
from scoring.clock import fixed_clock
from scoring.models import Activity, Event, ScoredResult


# =============================================================================
# Test helpers
# =============================================================================

HOME = f"{SYDNEY_LAT},{SYDNEY_LNG}"
VIEWER = "user-001"


def _here(km: float) -> str:
    return north_of(SYDNEY_LAT, SYDNEY_LNG, km)


def _profile(**overrides) -> dict:
    profile = {
        "$id": VIEWER,
        "disciplines": ["hiking"],
        "locationCoords": HOME,
        "searchRadius": 20,
    }
    profile.update(overrides)
    return profile


def _activity(item_id: str, km: float = 2.0, **overrides) -> dict:
    doc = {
        "$id": item_id,
        "activityname": f"Activity {item_id}",
        "types": ["Hiking"],
        "location": f"Location: {_here(km)}",
        "createdAt": iso(NOW),
        "participantCount": 0,
        "userId": "owner-999",
    }
    doc.update(overrides)
    return doc


def _event(item_id: str, km: float = 1.0, hours: float = 12, **overrides) -> dict:
    doc = {
        "$id": item_id,
        "activityTypes": ["Hiking"],
        "meetupPoint": _here(km),
        "createdAt": days_ago(365),
        "date": hours_ahead(hours),
        "participants": [],
        "organizerId": "owner-999",
    }
    doc.update(overrides)
    return doc


def _keys(feed):
    return [(item.type.value, item.id) for item in feed]


@pytest.fixture
def assembler() -> FeedAssembler:
    return FeedAssembler(settings=get_settings_for_testing(), clock=fixed_clock(NOW))


# =============================================================================
# Involved mode
# =============================================================================

class TestInvolvedMode:

    def test_own_content_fixed_score_and_reasons(self, assembler):
        feed = assembler.build(
            "involved",
            _profile(),
            owned_activities=[_activity("a1", userId=VIEWER)],
            owned_events=[_event("e1", organizerId=VIEWER)],
        )
        by_key = {(i.type, i.id): i for i in feed}

        activity = by_key[(FeedItemType.ACTIVITY, "a1")]
        assert activity.score == 100.0
        assert activity.match_reasons == ["Your activity"]

        event = by_key[(FeedItemType.EVENT, "e1")]
        assert event.score == 100.0
        assert event.match_reasons == ["Your event"]

    def test_joined_with_numeric_ids(self, assembler):
        feed = assembler.build(
            "involved",
            _profile(**{"$id": 42}),
            public_events=[_event("joined", participants=[7, 42])],
        )
        assert _keys(feed) == [("event", "joined")]
        assert feed[0].match_reasons == ["Joined event"]

    def test_joined_events_found_in_public_pool(self, assembler):
        feed = assembler.build(
            FeedMode.INVOLVED,
            _profile(),
            public_events=[
                _event("joined", participants=["someone", VIEWER]),
                _event("stranger"),
            ],
        )
        assert _keys(feed) == [("event", "joined")]
        assert feed[0].match_reasons == ["Joined event"]

    def test_organizer_wins_over_participant(self, assembler):
        feed = assembler.build(
            "involved",
            _profile(),
            owned_events=[_event("e1", organizerId=VIEWER, participants=[VIEWER])],
        )
        assert feed[0].match_reasons == ["Your event"]

    def test_foreign_activity_in_owned_list_dropped(self, assembler):
        feed = assembler.build(
            "involved",
            _profile(),
            owned_activities=[_activity("mine", userId=VIEWER), _activity("theirs")],
        )
        assert _keys(feed) == [("activity", "mine")]

    def test_owned_lists_trusted_without_viewer_id(self, assembler):
        feed = assembler.build(
            "involved",
            _profile(**{"$id": None}),
            owned_activities=[_activity("a1")],
            owned_events=[_event("e1")],
            public_events=[_event("e2")],
        )
        assert sorted(_keys(feed)) == [("activity", "a1"), ("event", "e1")]

    def test_past_events_still_listed(self, assembler):
        feed = assembler.build(
            "involved",
            _profile(),
            owned_events=[_event("old", hours=-72, organizerId=VIEWER)],
        )
        assert _keys(feed) == [("event", "old")]

    def test_equal_scores_ordered_by_recency(self, assembler):
        feed = assembler.build(
            "involved",
            _profile(),
            owned_activities=[
                _activity("older", userId=VIEWER, createdAt=days_ago(10)),
                _activity("newer", userId=VIEWER, createdAt=days_ago(1)),
            ],
            owned_events=[_event("middle", organizerId=VIEWER, createdAt=days_ago(5))],
        )
        assert [i.id for i in feed] == ["newer", "middle", "older"]

    def test_event_in_both_lists_listed_once(self, assembler):
        event = _event("e1", organizerId=VIEWER)
        feed = assembler.build("involved", _profile(), owned_events=[event], public_events=[event])
        assert _keys(feed) == [("event", "e1")]


# =============================================================================
# Suggested mode
# =============================================================================

class TestSuggestedMode:

    def test_scored_and_ordered(self, assembler):
        feed = assembler.build(
            "suggested",
            _profile(),
            public_activities=[_activity("mid", km=10), _activity("near", km=2)],
            public_events=[_event("soon", km=1, hours=12)],
        )
        # event: 40 + 28.5 + 10; near: 40 + 27 + 5; mid: 40 + 15 + 5
        assert _keys(feed) == [("event", "soon"), ("activity", "near"), ("activity", "mid")]
        assert [i.score for i in feed] == pytest.approx([78.5, 72.0, 60.0])

    def test_own_items_never_suggested(self, assembler):
        feed = assembler.build(
            "suggested",
            _profile(),
            public_activities=[_activity("mine", userId=VIEWER), _activity("theirs")],
            public_events=[_event("my-event", organizerId=VIEWER)],
        )
        assert _keys(feed) == [("activity", "theirs")]

    def test_past_events_never_suggested(self, assembler):
        feed = assembler.build(
            "suggested",
            _profile(),
            public_events=[_event("past", hours=-1), _event("undated", date=None), _event("next", hours=2)],
        )
        assert _keys(feed) == [("event", "next")]

    def test_outside_radius_excluded_despite_type_match(self, assembler):
        feed = assembler.build(
            "suggested",
            _profile(searchRadius=10),
            public_activities=[_activity("far", km=15)],
        )
        assert feed == []

    def test_default_radius_applies(self, assembler):
        feed = assembler.build(
            "suggested",
            _profile(searchRadius=None),
            public_activities=[_activity("a1", km=25)],
        )
        assert len(feed) == 1
        assert feed[0].data.relevance_factors.location_score == pytest.approx(15.0, abs=1e-6)
        assert "25.0km from you" in feed[0].match_reasons

    def test_weak_candidates_not_admitted(self, assembler):
        feed = assembler.build(
            "suggested",
            _profile(),
            public_activities=[
                _activity("unrelated-near", km=19, types=["Chess"], createdAt=days_ago(100)),
            ],
        )
        assert feed == []

    def test_without_viewer_location_no_proximity_gate(self, assembler):
        feed = assembler.build(
            "suggested",
            _profile(locationCoords=None),
            public_activities=[_activity("far", km=500)],
        )
        assert _keys(feed) == [("activity", "far")]
        assert feed[0].score == pytest.approx(45.0)

    def test_each_type_capped_independently(self):
        assembler = FeedAssembler(
            settings=get_settings_for_testing(feed_max_results_per_type=3),
            clock=fixed_clock(NOW),
        )
        feed = assembler.build(
            "suggested",
            _profile(),
            public_activities=[_activity(f"a{i}", km=1 + i) for i in range(6)],
            public_events=[_event(f"e{i}", km=1 + i) for i in range(6)],
        )
        kinds = [i.type for i in feed]
        assert kinds.count(FeedItemType.ACTIVITY) == 3
        assert kinds.count(FeedItemType.EVENT) == 3

    def test_duplicate_candidates_scored_once(self, assembler):
        feed = assembler.build(
            "suggested",
            _profile(),
            public_activities=[_activity("a1"), _activity("a1")],
        )
        assert _keys(feed) == [("activity", "a1")]

    def test_activity_and_event_may_share_an_id(self, assembler):
        feed = assembler.build(
            "suggested",
            _profile(),
            public_activities=[_activity("x")],
            public_events=[_event("x")],
        )
        assert sorted(_keys(feed)) == [("activity", "x"), ("event", "x")]

    def test_accepts_models_and_documents(self, assembler):
        feed = assembler.build(
            "suggested",
            _profile(),
            public_activities=[Activity.model_validate(_activity("model")), _activity("doc", km=3)],
        )
        assert [i.id for i in feed] == ["model", "doc"]

    def test_deterministic(self, assembler):
        kwargs = dict(
            public_activities=[_activity(f"a{i}", km=i % 4 + 1) for i in range(8)],
            public_events=[_event(f"e{i}", km=i % 3 + 1) for i in range(8)],
        )
        first = assembler.build("suggested", _profile(), **kwargs)
        second = assembler.build("suggested", _profile(), **kwargs)
        assert _keys(first) == _keys(second)


# =============================================================================
# Nearby mode
# =============================================================================

class TestNearbyMode:

    def test_radius_only(self, assembler):
        feed = assembler.build(
            "nearby",
            _profile(),
            public_activities=[
                _activity("weak-but-near", km=19, types=["Chess"], createdAt=days_ago(100)),
                _activity("outside", km=25),
            ],
        )
        assert _keys(feed) == [("activity", "weak-but-near")]
        assert feed[0].score == pytest.approx(1.5)

    def test_still_excludes_own_and_past(self, assembler):
        feed = assembler.build(
            "nearby",
            _profile(),
            public_activities=[_activity("mine", userId=VIEWER)],
            public_events=[_event("past", hours=-3)],
        )
        assert feed == []


# =============================================================================
# Content filter
# =============================================================================

class TestContentFilter:

    @pytest.mark.parametrize("content_filter,expected", [
        ("all", {FeedItemType.ACTIVITY, FeedItemType.EVENT}),
        ("activities", {FeedItemType.ACTIVITY}),
        (ContentFilter.EVENTS, {FeedItemType.EVENT}),
    ])
    def test_filters_item_types(self, assembler, content_filter, expected):
        feed = assembler.build(
            "suggested",
            _profile(),
            public_activities=[_activity("a1")],
            public_events=[_event("e1")],
            content_filter=content_filter,
        )
        assert {i.type for i in feed} == expected

    def test_applies_to_involved(self, assembler):
        feed = assembler.build(
            "involved",
            _profile(),
            owned_activities=[_activity("a1", userId=VIEWER)],
            owned_events=[_event("e1", organizerId=VIEWER)],
            content_filter="activities",
        )
        assert _keys(feed) == [("activity", "a1")]


# =============================================================================
# Errors
# =============================================================================

class TestErrors:

    def test_unknown_mode(self, assembler):
        with pytest.raises(UnknownFeedModeError) as exc_info:
            assembler.build("trending", _profile())
        assert exc_info.value.mode == "trending"
        assert isinstance(exc_info.value, FeedError)
        assert isinstance(exc_info.value, ValueError)

    def test_unknown_content_filter(self, assembler):
        with pytest.raises(UnknownContentFilterError):
            assembler.build("suggested", _profile(), content_filter="photos")

    def test_invalid_document_skipped(self, assembler):
        feed = assembler.build(
            "suggested",
            _profile(),
            public_activities=[_activity("a1"), {"types": ["Hiking"], "location": _here(1)}],
            public_events=["not a document", _event("e1")],
        )
        assert sorted(_keys(feed)) == [("activity", "a1"), ("event", "e1")]

    def test_invalid_owned_document_skipped(self, assembler):
        feed = assembler.build(
            "involved",
            _profile(),
            owned_activities=[{"userId": VIEWER}, _activity("mine", userId=VIEWER)],
        )
        assert _keys(feed) == [("activity", "mine")]

    def test_invalid_profile(self, assembler):
        with pytest.raises(ValidationError):
            assembler.build("suggested", "user-001", public_activities=[_activity("a1")])

    def test_sparse_profile_does_not_raise(self, assembler):
        feed = assembler.build(
            "suggested",
            {"disciplines": None, "experienceLevels": None},
            public_activities=[_activity("a1", types=None)],
        )
        assert feed == []


# =============================================================================
# Event enrichment
# =============================================================================

class TestEnrichment:

    def test_inherits_types_name_and_location(self, assembler):
        parent = _activity("act-1", km=3, activityname="Blue Mountains Walk", createdAt=days_ago(400))
        child = _event("evt-1", hours=30, activityId="act-1", activityTypes=None, meetupPoint=None)

        feed = assembler.build("suggested", _profile(), public_activities=[parent], public_events=[child])
        event_item = next(i for i in feed if i.type is FeedItemType.EVENT)

        assert event_item.data.item.activity_name == "Blue Mountains Walk"
        assert event_item.data.item.activity_types == ["Hiking"]
        # 40 type + 25.5 location + 10 timing
        assert event_item.score == pytest.approx(75.5)
        assert "Matches your interest in Hiking" in event_item.match_reasons

    def test_own_location_kept(self):
        parent = Activity.model_validate(_activity("act-1", km=3))
        event = Event.model_validate(_event("evt-1", km=1, activityId="act-1"))
        enriched = enrich_event(event, {"act-1": parent})
        assert enriched.meetup_point == event.meetup_point
        assert enriched.location is None

    def test_input_not_mutated(self):
        parent = Activity.model_validate(_activity("act-1", activityname="Walk"))
        event = Event.model_validate(_event("evt-1", activityId="act-1", activityTypes=[]))
        enriched = enrich_event(event, {"act-1": parent})
        assert enriched is not event
        assert enriched.activity_types == ["Hiking"]
        assert event.activity_types == []
        assert event.activity_name is None

    def test_unknown_parent(self):
        event = Event.model_validate(_event("evt-1", activityId="missing"))
        assert enrich_event(event, {}) is event


# =============================================================================
# Merge
# =============================================================================

class TestMergeFeed:

    def _result(self, model, score):
        return ScoredResult(item=model, score=score)

    def test_score_then_recency(self):
        a_old = Activity.model_validate({"$id": "old", "createdAt": days_ago(3)})
        a_new = Activity.model_validate({"$id": "new", "createdAt": days_ago(1)})
        e_top = Event.model_validate({"$id": "top", "createdAt": days_ago(9)})
        feed = merge_feed(
            [self._result(a_old, 50), self._result(a_new, 50)],
            [self._result(e_top, 51)],
        )
        assert [i.id for i in feed] == ["top", "new", "old"]

    def test_own_content_sorts_above_suggestions(self):
        own = Activity.model_validate({"$id": "own", "createdAt": days_ago(300)})
        best = Activity.model_validate({"$id": "best", "createdAt": iso(NOW)})
        feed = merge_feed([self._result(best, 99.0), self._result(own, 100.0)], [])
        assert [i.id for i in feed] == ["own", "best"]

    def test_missing_timestamp_sorts_last(self):
        dated = Activity.model_validate({"$id": "dated", "createdAt": days_ago(1000)})
        undated = Activity.model_validate({"$id": "undated"})
        feed = merge_feed([self._result(undated, 20), self._result(dated, 20)], [])
        assert [i.id for i in feed] == ["dated", "undated"]

    def test_event_timestamp_falls_back_to_date(self):
        event = Event.model_validate({"$id": "e", "date": NOW + timedelta(days=2)})
        [item] = merge_feed([], [self._result(event, 10)])
        assert item.timestamp == NOW + timedelta(days=2)

    def test_dedupe_keeps_first(self):
        first = Activity.model_validate({"$id": "a", "activityname": "first"})
        again = Activity.model_validate({"$id": "a", "activityname": "again"})
        feed = merge_feed([self._result(first, 10), self._result(again, 90)], [])
        assert len(feed) == 1
        assert feed[0].data.item.activity_name == "first"
        assert feed[0].score == 10


# =============================================================================
# build_feed
# =============================================================================

class TestBuildFeed:

    def test_uses_settings_threshold(self):
        settings = get_settings_for_testing(feed_min_score=65)
        feed = build_feed(
            "suggested",
            _profile(),
            public_activities=[_activity("near", km=2), _activity("mid", km=10)],
            settings=settings,
            clock=fixed_clock(NOW),
        )
        assert [i.id for i in feed] == ["near"]

    def test_uses_settings_own_score(self):
        settings = get_settings_for_testing(feed_own_content_score=500)
        feed = build_feed(
            "involved",
            _profile(),
            owned_activities=[_activity("a1", userId=VIEWER)],
            settings=settings,
            clock=fixed_clock(NOW),
        )
        assert feed[0].score == 500

    def test_uses_settings_default_radius(self):
        settings = get_settings_for_testing(feed_default_search_radius_km=10)
        feed = build_feed(
            "suggested",
            _profile(searchRadius=None),
            public_activities=[_activity("a1", km=15)],
            settings=settings,
            clock=fixed_clock(NOW),
        )
        assert feed == []
