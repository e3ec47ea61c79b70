"""Unit tests for ActivityService."""

from datetime import datetime, timedelta, timezone
from typing import Any

from src.core.store import InMemoryKeyValueStore
from src.repositories.keys import ACTIVITY_LOG_KEY
from src.services.activity_service import ActivityService


class TestActivityLog:
    """Tests for logging and querying activity."""

    def test_log_appends_entry(self) -> None:
        service = ActivityService()
        entry = service.log("user_1", "LOGIN")

        assert entry["actor_id"] == "user_1"
        assert entry["details"] == {}
        assert service.get_all() == [entry]

    def test_keeps_newest_entries_within_limit(self, override_settings: Any) -> None:
        """Test that the oldest entries are dropped past the limit."""
        override_settings(activity_log_limit=3)
        service = ActivityService()
        for i in range(5):
            service.log("user_1", "ADD_TO_CART", {"n": i})

        assert [e["details"]["n"] for e in service.get_all()] == [2, 3, 4]

    def test_filters_by_actor_and_action(self) -> None:
        service = ActivityService()
        service.log("user_1", "LOGIN")
        service.log("user_2", "LOGIN")
        service.log("user_1", "LOGOUT")

        assert len(service.get_for_actor("user_1")) == 2
        assert len(service.get_by_action("LOGIN")) == 2

    def test_popular_actions(self) -> None:
        service = ActivityService()
        for action in ["ADD_TO_CART", "ADD_TO_CART", "LOGIN"]:
            service.log("user_1", action)

        assert service.popular_actions(limit=1) == [{"action": "ADD_TO_CART", "count": 2}]

    def test_cleanup_older_than(self, store: InMemoryKeyValueStore) -> None:
        """Test that old entries are removed and the cleanup itself is logged."""
        old = (datetime.now(timezone.utc) - timedelta(days=10)).isoformat()
        store.set(
            ACTIVITY_LOG_KEY,
            [{"id": "1", "actor_id": "user_1", "action": "LOGIN", "details": {}, "timestamp": old}],
        )
        service = ActivityService()
        service.log("user_1", "LOGOUT")

        removed = service.cleanup_older_than(days=7)

        assert removed == 1
        assert [e["action"] for e in service.get_all()] == ["LOGOUT", "CLEANUP_LOGS"]

    def test_clear(self) -> None:
        service = ActivityService()
        service.log("user_1", "LOGIN")
        service.clear()
        assert service.get_all() == []


def _entry(actor_id: str, action: str, timestamp: datetime, details: dict | None = None) -> dict:
    return {
        "id": f"{action}-{timestamp.isoformat()}",
        "actor_id": actor_id,
        "action": action,
        "details": details or {},
        "timestamp": timestamp.isoformat(),
    }


class TestAnalytics:
    """Tests for hourly counts, actor analysis and error entries."""

    def test_hourly_activity(self, store: InMemoryKeyValueStore) -> None:
        day = datetime(2024, 5, 1, tzinfo=timezone.utc)
        store.set(
            ACTIVITY_LOG_KEY,
            [
                _entry("user_1", "LOGIN", day.replace(hour=9)),
                _entry("user_1", "ADD_TO_CART", day.replace(hour=9, minute=30)),
                _entry("user_2", "LOGIN", day.replace(hour=23)),
            ],
        )

        hourly = ActivityService().hourly_activity()

        assert len(hourly) == 24
        assert hourly[9] == {"hour": 9, "count": 2}
        assert hourly[23] == {"hour": 23, "count": 1}
        assert sum(h["count"] for h in hourly) == 3

    def test_analyze_actor(self, store: InMemoryKeyValueStore) -> None:
        start = datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
        store.set(
            ACTIVITY_LOG_KEY,
            [
                _entry("user_1", "LOGIN", start),
                _entry("user_1", "ADD_TO_CART", start + timedelta(minutes=5)),
                _entry("user_2", "ADD_TO_CART", start + timedelta(minutes=6)),
                _entry("user_1", "ADD_TO_CART", start + timedelta(minutes=10)),
                _entry("user_1", "CREATE_ORDER", start + timedelta(minutes=42, seconds=50)),
            ],
        )

        analysis = ActivityService().analyze_actor("user_1")

        assert analysis["total_actions"] == 4
        assert analysis["last_activity"] == (start + timedelta(minutes=42, seconds=50)).isoformat()
        assert analysis["favorite_actions"][0] == {"action": "ADD_TO_CART", "count": 2}
        assert analysis["session_minutes"] == 42
        assert analysis["purchase_rate"] == 50.0

    def test_analyze_actor_without_entries(self) -> None:
        analysis = ActivityService().analyze_actor("user_9")

        assert analysis["total_actions"] == 0
        assert analysis["last_activity"] is None
        assert analysis["favorite_actions"] == []
        assert analysis["purchase_rate"] == 0.0

    def test_error_entries(self) -> None:
        service = ActivityService()
        service.log("user_1", "LOGIN")
        service.log("user_1", "POINTS_DEBIT_ERROR", {"order_id": "o1", "error": "Not enough points"})
        service.log("system", "SYNC", {"failed": True})
        service.log("system", "SYNC", {"failed": False})

        errors = service.error_entries()

        assert [e["action"] for e in errors] == ["POINTS_DEBIT_ERROR", "SYNC"]
        assert errors[1]["details"] == {"failed": True}
