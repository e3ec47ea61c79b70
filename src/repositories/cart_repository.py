"""Actor-scoped persistence for carts."""

from src.core.store import KeyValueStore
from src.models.cart import Cart
from src.repositories.keys import CART_PREFIX, cart_key


class CartRepository:
    """Reads and writes one cart per actor."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def get(self, actor_id: str) -> Cart | None:
        return self.store.get(cart_key(actor_id))

    def save(self, actor_id: str, cart: Cart) -> None:
        self.store.set(cart_key(actor_id), cart)

    def delete(self, actor_id: str) -> None:
        self.store.remove(cart_key(actor_id))

    def delete_all(self) -> int:
        return self.store.remove_prefix(CART_PREFIX)
