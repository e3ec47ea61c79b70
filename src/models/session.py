"""Session model type definitions."""

from typing import TypedDict


class Session(TypedDict):
    """Browser session record keyed by its token.

    ``actor_id`` is set while a member is logged in; anonymous sessions act
    as their own guest actor.
    """

    id: str
    actor_id: str | None
    created_at: str
    expires_at: str
