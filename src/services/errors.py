"""Domain errors raised by the shop services.

Every error derives from ``ShopError`` (a ``ValueError``) and carries an
``error_type`` slug that the API layer forwards to clients.
"""


class ShopError(ValueError):
    """Base class for expected business-rule failures."""

    error_type = "shop_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ProductNotFoundError(ShopError):
    error_type = "product_not_found"

    def __init__(self, product_id: int) -> None:
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")


class OrderNotFoundError(ShopError):
    error_type = "order_not_found"

    def __init__(self, order_id: str) -> None:
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class UserNotFoundError(ShopError):
    error_type = "user_not_found"

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class InsufficientStockError(ShopError):
    """Requested quantity exceeds what the stock ledger holds."""

    error_type = "insufficient_stock"

    def __init__(self, product_id: int, requested: int, available: int) -> None:
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product {product_id}: requested {requested}, available {available}"
        )


class UnknownCouponError(ShopError):
    error_type = "unknown_coupon"

    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"Coupon code '{code}' is not valid")


class InsufficientPointsError(ShopError):
    error_type = "insufficient_points"

    def __init__(self, requested: int, available: int) -> None:
        self.requested = requested
        self.available = available
        super().__init__(f"Insufficient points: requested {requested}, available {available}")


class EmptyCartError(ShopError):
    error_type = "empty_cart"

    def __init__(self) -> None:
        super().__init__("Cart is empty")


class ActorRequiredError(ShopError):
    """Operation needs a logged-in member rather than a guest."""

    error_type = "login_required"

    def __init__(self, message: str = "Login is required for this operation") -> None:
        super().__init__(message)


class InvalidStatusTransitionError(ShopError):
    error_type = "invalid_status_transition"

    def __init__(self, current: str, requested: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change order status from '{current}' to '{requested}'")


class DuplicateEmailError(ShopError):
    error_type = "duplicate_email"

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"Email {email} is already registered")


class InvalidCredentialsError(ShopError):
    error_type = "invalid_credentials"

    def __init__(self) -> None:
        super().__init__("Email or password is incorrect")


class StockConflictError(ShopError):
    """The stock ledger kept changing underneath a write."""

    error_type = "stock_conflict"

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"Stock ledger write conflicted {attempts} times; please retry")


class InvalidQuantityError(ShopError):
    error_type = "invalid_quantity"

    def __init__(self, quantity: int) -> None:
        self.quantity = quantity
        super().__init__(f"Quantity must be a positive integer, got {quantity}")


class CartItemNotFoundError(ShopError):
    error_type = "cart_item_not_found"

    def __init__(self, product_id: int) -> None:
        self.product_id = product_id
        super().__init__(f"Product {product_id} with these options is not in the cart")
