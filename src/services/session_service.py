"""Session business logic: anonymous sessions and the logged-in actor."""

import secrets
import uuid
from datetime import datetime, timedelta, timezone

from src.core.config import get_settings
from src.core.store import get_store
from src.models.session import Session
from src.repositories.session_repository import SessionRepository

GUEST_ACTOR_ID = "guest"


def guest_actor_id(session_id: str) -> str:
    """Guest actor owned by one anonymous session."""
    return f"{GUEST_ACTOR_ID}:{session_id}"


def is_guest_actor(actor_id: str | None) -> bool:
    """True for the shared guest actor and for per-session guest actors."""
    if not actor_id:
        return True
    return actor_id == GUEST_ACTOR_ID or actor_id.startswith(f"{GUEST_ACTOR_ID}:")


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class SessionService:
    """Service for managing browser sessions and the actor bound to them."""

    TOKEN_LENGTH = 64  # Length of session token in characters

    def __init__(self) -> None:
        """Initialize session service with the key-value store."""
        self.sessions = SessionRepository(get_store())
        self.settings = get_settings()

    def _generate_token(self) -> str:
        """Generate a cryptographically secure session token.

        Returns:
            str: A 64-character hex token.
        """
        return secrets.token_hex(self.TOKEN_LENGTH // 2)

    async def create_session(self) -> tuple[Session, str]:
        """Create a new anonymous session with a unique token.

        Returns:
            tuple: (session_data, session_token)
        """
        token = self._generate_token()
        now = datetime.now(timezone.utc)
        session: Session = {
            "id": uuid.uuid4().hex,
            "actor_id": None,
            "created_at": now.isoformat(),
            "expires_at": (now + timedelta(days=self.settings.session_expiry_days)).isoformat(),
        }
        self.sessions.save(token, session)
        return session, token

    async def get_session(self, token: str) -> Session | None:
        """Get a live session by its token.

        Args:
            token: The session token from header or cookie.

        Returns:
            Session | None: The session, or None if unknown or expired.
        """
        session = self.sessions.get(token)
        if not session:
            return None
        if _parse_timestamp(session["expires_at"]) < datetime.now(timezone.utc):
            return None
        return session

    async def resolve_actor(self, token: str | None) -> str | None:
        """Return the logged-in member for a session, or None for guests."""
        if not token:
            return None
        session = await self.get_session(token)
        return session["actor_id"] if session else None

    @staticmethod
    def guest_actor(session: Session) -> str:
        """Guest actor owned by this session, whoever is logged in."""
        return guest_actor_id(session["id"])

    @staticmethod
    def current_actor(session: Session) -> str:
        """Actor that owns cart and orders for this session right now."""
        return session["actor_id"] or guest_actor_id(session["id"])

    async def bind_actor(self, token: str, actor_id: str) -> Session | None:
        """Mark a member as logged in on this session.

        Returns:
            Session | None: The updated session or None if not found.
        """
        session = await self.get_session(token)
        if not session:
            return None
        session["actor_id"] = actor_id
        self.sessions.save(token, session)
        return session

    async def clear_actor(self, token: str) -> str | None:
        """Log out the member bound to this session.

        Returns:
            str | None: The actor that was logged out, if any.
        """
        session = await self.get_session(token)
        if not session:
            return None
        actor_id = session["actor_id"]
        session["actor_id"] = None
        self.sessions.save(token, session)
        return actor_id

    async def clear_actor_everywhere(self, actor_id: str) -> int:
        """Detach an actor from every session (account deletion).

        Returns:
            int: Number of sessions updated.
        """
        updated = 0
        for token, session in self.sessions.list_all().items():
            if session and session.get("actor_id") == actor_id:
                session["actor_id"] = None
                self.sessions.save(token, session)
                updated += 1
        return updated

    async def cleanup_expired_sessions(self) -> int:
        """Delete expired sessions.

        Returns:
            int: Number of sessions deleted.
        """
        now = datetime.now(timezone.utc)
        removed = 0
        for token, session in self.sessions.list_all().items():
            if not session or _parse_timestamp(session["expires_at"]) < now:
                self.sessions.delete(token)
                removed += 1
        return removed

    async def delete_all(self) -> int:
        return self.sessions.delete_all()
