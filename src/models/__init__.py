"""Persisted record type definitions."""

from src.models.activity import ActivityEntry
from src.models.cart import Cart, CartItem
from src.models.order import Order, OrderItem, OrderStatus, PaymentMethod, ShippingAddress
from src.models.product import Category, Product
from src.models.session import Session
from src.models.stock import StockLedger, StockLine, StockShortfall
from src.models.user import UserProfile

__all__ = [
    "ActivityEntry",
    "Cart",
    "CartItem",
    "Category",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentMethod",
    "Product",
    "Session",
    "ShippingAddress",
    "StockLedger",
    "StockLine",
    "StockShortfall",
    "UserProfile",
]
