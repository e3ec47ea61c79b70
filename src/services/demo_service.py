"""Demo administration: reset, usage statistics and export."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from src.core.store import get_store
from src.repositories.keys import DEMO_CONFIG_KEY
from src.services.activity_service import ActivityService
from src.services.order_service import OrderService
from src.services.session_service import SessionService

logger = logging.getLogger(__name__)

ACTIVE_USER_WINDOW = timedelta(hours=24)


class DemoService:
    """Service resetting demo data and summarizing demo usage."""

    def __init__(
        self,
        order_service: OrderService | None = None,
        session_service: SessionService | None = None,
        activity_service: ActivityService | None = None,
    ) -> None:
        """Initialize demo service.

        Args:
            order_service: Optional order service (brings cart, user and stock services).
            session_service: Optional session service for testing.
            activity_service: Optional activity log for testing.
        """
        self.store = get_store()
        self.activity_service = activity_service or ActivityService()
        self.order_service = order_service or OrderService(activity_service=self.activity_service)
        self.session_service = session_service or SessionService()

    async def reset(self) -> dict[str, Any]:
        """Clear users, carts, orders and sessions, then re-seed stock.

        Returns:
            dict: The new demo configuration.
        """
        removed = {
            "users": await self.order_service.user_service.delete_all(),
            "carts": await self.order_service.cart_service.delete_all(),
            "orders": await self.order_service.delete_all(),
            "sessions": await self.session_service.delete_all(),
        }
        await self.order_service.stock_service.initialize()

        now = datetime.now(timezone.utc).isoformat()
        config = {"reset_time": now, "is_active": True, "start_time": now}
        self.store.set(DEMO_CONFIG_KEY, config)

        self.activity_service.log("admin", "RESET_DEMO", removed)
        logger.info("Demo data reset: %s", removed)
        return config

    async def get_config(self) -> dict[str, Any]:
        return self.store.get(DEMO_CONFIG_KEY, {"reset_time": "", "is_active": False, "start_time": ""})

    async def get_stats(self) -> dict[str, Any]:
        """Registrations, activity and conversion figures for the demo."""
        logs = self.activity_service.get_all()
        users = await self.order_service.user_service.list_users()
        orders = await self.order_service.get_all_orders()

        cutoff = datetime.now(timezone.utc) - ACTIVE_USER_WINDOW
        active_users = sum(1 for u in users if datetime.fromisoformat(u["last_login"]) > cutoff)
        cart_additions = sum(1 for entry in logs if entry["action"] == "ADD_TO_CART")
        conversion_rate = f"{len(orders) / cart_additions * 100:.2f}%" if cart_additions else "0%"

        return {
            "registrations": sum(1 for entry in logs if entry["action"] == "REGISTER"),
            "active_users": active_users,
            "total_orders": len(orders),
            "total_sales": sum(o["total_amount"] for o in orders if o["status"] != "cancelled"),
            "cart_additions": cart_additions,
            "conversion_rate": conversion_rate,
            "popular_actions": self.activity_service.popular_actions(),
        }

    async def export(self) -> dict[str, Any]:
        """Snapshot of members, orders, activity and config for backup.

        Members are exported as public profiles; password hashes never leave the store.
        """
        return {
            "users": await self.order_service.user_service.list_users(),
            "orders": await self.order_service.get_all_orders(),
            "logs": self.activity_service.get_all(),
            "config": await self.get_config(),
            "export_date": datetime.now(timezone.utc).isoformat(),
        }
