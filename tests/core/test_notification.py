"""Unit tests for notification records and delivery state.

Pure function tests - no mocks needed.
"""

from datetime import datetime, timedelta, timezone

from strike_alerts.core.notification import (
    DeliveryStatus,
    build_notification,
    build_notifications,
    filter_pending,
    mark_sent,
    notification_id,
    sort_newest_first,
)
from strike_alerts.core.proximity import ProximityMatch


NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class TestNotificationId:
    """Tests for notification_id() function."""

    def test_deterministic(self):
        """Same pair always gives the same ID."""
        assert notification_id("user-1", "strike-1") == notification_id("user-1", "strike-1")

    def test_distinct_pairs(self):
        """Different pairs give different IDs."""
        assert notification_id("user-1", "strike-1") != notification_id("user-2", "strike-1")
        assert notification_id("user-1", "strike-1") != notification_id("user-1", "strike-2")

    def test_no_concatenation_collision(self):
        """Splitting the same characters differently gives different IDs."""
        assert notification_id("ab", "c") != notification_id("a", "bc")

    def test_storage_safe(self):
        """IDs are 40 hex characters."""
        nid = notification_id("user/with/slashes", "strike-1")
        assert len(nid) == 40
        assert all(c in "0123456789abcdef" for c in nid)


class TestBuildNotification:
    """Tests for build_notification() and build_notifications()."""

    def test_builds_pending(self):
        """New notifications are pending with no sent time."""
        n = build_notification("strike-1", ProximityMatch("user-1", 2.5), NOW)

        assert n.status == DeliveryStatus.PENDING
        assert n.is_pending is True
        assert n.sent_at is None
        assert n.distance_miles == 2.5
        assert n.key == ("user-1", "strike-1")
        assert n.id == notification_id("user-1", "strike-1")

    def test_one_per_user(self):
        """Duplicate matches for a user collapse to the first one."""
        matches = [
            ProximityMatch("user-1", 1.0),
            ProximityMatch("user-2", 3.0),
            ProximityMatch("user-1", 5.0),
        ]

        result = build_notifications("strike-1", matches, NOW)

        assert [(n.user_id, n.distance_miles) for n in result] == [
            ("user-1", 1.0),
            ("user-2", 3.0),
        ]


class TestMarkSent:
    """Tests for mark_sent() function."""

    def test_pending_becomes_sent(self):
        """A pending notification is marked sent with the given time."""
        n = build_notification("strike-1", ProximityMatch("user-1", 1.0), NOW)
        sent_at = NOW + timedelta(minutes=1)

        sent = mark_sent(n, sent_at)

        assert sent.status == DeliveryStatus.SENT
        assert sent.sent_at == sent_at
        assert n.is_pending is True

    def test_already_sent_keeps_timestamp(self):
        """Marking twice keeps the first delivery time."""
        n = build_notification("strike-1", ProximityMatch("user-1", 1.0), NOW)
        first = mark_sent(n, NOW + timedelta(minutes=1))

        second = mark_sent(first, NOW + timedelta(minutes=5))

        assert second.sent_at == NOW + timedelta(minutes=1)
        assert second is first


class TestOrdering:
    """Tests for filter_pending() and sort_newest_first()."""

    def test_filter_pending_oldest_first(self):
        """Only pending notifications remain, oldest first."""
        older = build_notification("s-1", ProximityMatch("u", 1.0), NOW)
        newer = build_notification("s-2", ProximityMatch("u", 1.0), NOW + timedelta(hours=1))
        sent = mark_sent(build_notification("s-3", ProximityMatch("u", 1.0), NOW), NOW)

        result = filter_pending([newer, sent, older])

        assert [n.strike_id for n in result] == ["s-1", "s-2"]

    def test_sort_newest_first(self):
        """Newest notifications come first."""
        older = build_notification("s-1", ProximityMatch("u", 1.0), NOW)
        newer = build_notification("s-2", ProximityMatch("u", 1.0), NOW + timedelta(hours=1))

        assert [n.strike_id for n in sort_newest_first([older, newer])] == ["s-2", "s-1"]

    def test_status_serializes_as_string(self):
        """Status values are plain strings for storage."""
        assert DeliveryStatus.PENDING.value == "pending"
        assert DeliveryStatus("sent") is DeliveryStatus.SENT
