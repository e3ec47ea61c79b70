"""Actor-scoped persistence for order history."""

from src.core.store import KeyValueStore
from src.models.order import Order
from src.repositories.keys import ORDERS_PREFIX, orders_key


class OrderRepository:
    """Stores each actor's orders as one list in insertion order."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def list_for_actor(self, actor_id: str) -> list[Order]:
        return self.store.get(orders_key(actor_id), [])

    def save_for_actor(self, actor_id: str, orders: list[Order]) -> None:
        self.store.set(orders_key(actor_id), orders)

    def append(self, actor_id: str, order: Order) -> None:
        orders = self.list_for_actor(actor_id)
        orders.append(order)
        self.save_for_actor(actor_id, orders)

    def delete_for_actor(self, actor_id: str) -> None:
        self.store.remove(orders_key(actor_id))

    def all_by_actor(self) -> dict[str, list[Order]]:
        """Full scan of every actor's orders, keyed by actor id."""
        return {
            key[len(ORDERS_PREFIX):]: orders or []
            for key, orders in self.store.scan_prefix(ORDERS_PREFIX).items()
        }

    def delete_all(self) -> int:
        return self.store.remove_prefix(ORDERS_PREFIX)
