"""Persistence for member profiles."""

from src.core.store import KeyValueStore
from src.models.user import UserProfile
from src.repositories.keys import USER_PREFIX, user_key


class UserRepository:
    """Reads and writes member profiles keyed by actor id."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def get(self, actor_id: str) -> UserProfile | None:
        return self.store.get(user_key(actor_id))

    def save(self, user: UserProfile) -> None:
        self.store.set(user_key(user["id"]), user)

    def delete(self, actor_id: str) -> None:
        self.store.remove(user_key(actor_id))

    def list_all(self) -> list[UserProfile]:
        return [user for user in self.store.scan_prefix(USER_PREFIX).values() if user]

    def find_by_email(self, email: str) -> UserProfile | None:
        wanted = email.strip().lower()
        for user in self.list_all():
            if user["email"].lower() == wanted:
                return user
        return None

    def delete_all(self) -> int:
        return self.store.remove_prefix(USER_PREFIX)
