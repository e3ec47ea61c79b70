"""Activity log of actor actions, capped to the most recent entries."""

import logging
import uuid
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any

from src.core.config import get_settings
from src.core.store import get_store
from src.models.activity import ActivityEntry
from src.repositories.keys import ACTIVITY_LOG_KEY

logger = logging.getLogger(__name__)


class ActivityService:
    """Service recording what actors do (cart additions, orders, logins...)."""

    def __init__(self) -> None:
        self.store = get_store()
        self.limit = get_settings().activity_log_limit

    def log(self, actor_id: str, action: str, details: dict[str, Any] | None = None) -> ActivityEntry:
        """Append an entry, dropping the oldest beyond the configured limit.

        Args:
            actor_id: Actor performing the action ("admin" and "system" are allowed).
            action: Upper-case action name such as ADD_TO_CART.
            details: Optional JSON-compatible payload.

        Returns:
            ActivityEntry: The recorded entry.
        """
        entry: ActivityEntry = {
            "id": uuid.uuid4().hex,
            "actor_id": actor_id,
            "action": action,
            "details": details or {},
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        entries = self.get_all()
        entries.append(entry)
        self.store.set(ACTIVITY_LOG_KEY, entries[-self.limit:])
        logger.debug("Activity %s by %s", action, actor_id)
        return entry

    def get_all(self) -> list[ActivityEntry]:
        return self.store.get(ACTIVITY_LOG_KEY, [])

    def get_for_actor(self, actor_id: str) -> list[ActivityEntry]:
        return [entry for entry in self.get_all() if entry["actor_id"] == actor_id]

    def get_by_action(self, action: str) -> list[ActivityEntry]:
        return [entry for entry in self.get_all() if entry["action"] == action]

    def popular_actions(self, limit: int = 10) -> list[dict[str, Any]]:
        """Most frequent actions, most frequent first."""
        counts = Counter(entry["action"] for entry in self.get_all())
        return [{"action": action, "count": count} for action, count in counts.most_common(limit)]

    def hourly_activity(self) -> list[dict[str, int]]:
        """Entry counts per UTC hour of day, all 24 hours included."""
        counts = [0] * 24
        for entry in self.get_all():
            counts[datetime.fromisoformat(entry["timestamp"]).astimezone(timezone.utc).hour] += 1
        return [{"hour": hour, "count": count} for hour, count in enumerate(counts)]

    def analyze_actor(self, actor_id: str) -> dict[str, Any]:
        """Summarize one actor's behavior from their entries.

        session_minutes spans the first to the last retained entry, and
        purchase_rate is CREATE_ORDER entries per ADD_TO_CART entry as a
        percentage (0 when the actor never added to a cart).

        Returns:
            dict: total_actions, last_activity, favorite_actions,
            session_minutes and purchase_rate.
        """
        entries = self.get_for_actor(actor_id)
        if not entries:
            return {
                "total_actions": 0,
                "last_activity": None,
                "favorite_actions": [],
                "session_minutes": 0,
                "purchase_rate": 0.0,
            }

        counts = Counter(entry["action"] for entry in entries)
        first = datetime.fromisoformat(entries[0]["timestamp"])
        last = datetime.fromisoformat(entries[-1]["timestamp"])
        cart_additions = counts["ADD_TO_CART"]
        purchase_rate = counts["CREATE_ORDER"] / cart_additions * 100 if cart_additions else 0.0

        return {
            "total_actions": len(entries),
            "last_activity": entries[-1]["timestamp"],
            "favorite_actions": [{"action": a, "count": c} for a, c in counts.most_common(5)],
            "session_minutes": int((last - first).total_seconds() // 60),
            "purchase_rate": purchase_rate,
        }

    def error_entries(self) -> list[ActivityEntry]:
        """Entries whose action names an error or whose details flag a failure."""
        return [
            entry
            for entry in self.get_all()
            if "ERROR" in entry["action"] or entry["details"].get("error") or entry["details"].get("failed")
        ]

    def cleanup_older_than(self, days: int = 7) -> int:
        """Drop entries older than the given number of days.

        Returns:
            int: Number of entries removed.
        """
        cutoff = datetime.now(timezone.utc) - timedelta(days=days)
        entries = self.get_all()
        kept = [e for e in entries if datetime.fromisoformat(e["timestamp"]) > cutoff]
        self.store.set(ACTIVITY_LOG_KEY, kept)

        removed = len(entries) - len(kept)
        self.log("system", "CLEANUP_LOGS", {"removed": removed, "remaining": len(kept)})
        return removed

    def clear(self) -> None:
        self.store.remove(ACTIVITY_LOG_KEY)
