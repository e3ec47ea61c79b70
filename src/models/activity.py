"""Activity log type definitions."""

from typing import Any, TypedDict


class ActivityEntry(TypedDict):
    """One recorded actor action."""

    id: str
    actor_id: str
    action: str
    details: dict[str, Any]
    timestamp: str
