"""Persistence for browser sessions."""

from src.core.store import KeyValueStore
from src.models.session import Session
from src.repositories.keys import SESSION_PREFIX, session_key


class SessionRepository:
    """Reads and writes sessions keyed by their token."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def get(self, token: str) -> Session | None:
        return self.store.get(session_key(token))

    def save(self, token: str, session: Session) -> None:
        self.store.set(session_key(token), session)

    def delete(self, token: str) -> None:
        self.store.remove(session_key(token))

    def list_all(self) -> dict[str, Session]:
        return {
            key[len(SESSION_PREFIX):]: session
            for key, session in self.store.scan_prefix(SESSION_PREFIX).items()
        }

    def delete_all(self) -> int:
        return self.store.remove_prefix(SESSION_PREFIX)
