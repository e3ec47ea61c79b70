"""Key layout of the key-value store."""

USER_PREFIX = "user:"
CART_PREFIX = "cart:"
ORDERS_PREFIX = "orders:"
SESSION_PREFIX = "session:"

STOCK_LEDGER_KEY = "stock:shared"
ACTIVITY_LOG_KEY = "activity:log"
DEMO_CONFIG_KEY = "demo:config"


def user_key(actor_id: str) -> str:
    return f"{USER_PREFIX}{actor_id}"


def cart_key(actor_id: str) -> str:
    return f"{CART_PREFIX}{actor_id}"


def orders_key(actor_id: str) -> str:
    return f"{ORDERS_PREFIX}{actor_id}"


def session_key(token: str) -> str:
    return f"{SESSION_PREFIX}{token}"
