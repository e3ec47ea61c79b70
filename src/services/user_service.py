"""Member accounts, profiles and the points balance."""

import hashlib
import hmac
import logging
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Any

from src.core.config import get_settings
from src.core.store import get_store
from src.models.user import UserProfile
from src.repositories.cart_repository import CartRepository
from src.repositories.order_repository import OrderRepository
from src.repositories.user_repository import UserRepository
from src.services.activity_service import ActivityService
from src.services.errors import (
    DuplicateEmailError,
    InsufficientPointsError,
    InvalidCredentialsError,
    InvalidQuantityError,
    UserNotFoundError,
)
from src.services.session_service import is_guest_actor

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 120_000
BASE36_ALPHABET = string.digits + string.ascii_lowercase
GENERATED_PASSWORD_LENGTH = 12

# Fields a member may change through update_profile
MUTABLE_PROFILE_FIELDS = ("name", "phone", "address", "preferences")


def hash_password(password: str, salt: str | None = None) -> str:
    """Hash a password as ``salt$hexdigest`` using PBKDF2-SHA256."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return f"{salt}${digest.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    salt, _, _ = password_hash.partition("$")
    return hmac.compare_digest(hash_password(password, salt), password_hash)


def generate_user_id() -> str:
    """Generate ``user_<ms>_<9 base36 chars>``."""
    suffix = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(9))
    return f"user_{int(time.time() * 1000)}_{suffix}"


def public_profile(user: UserProfile) -> dict[str, Any]:
    """Profile without the password hash."""
    return {k: v for k, v in user.items() if k != "password_hash"}


class UserService:
    """Service for member registration, login, profiles and points."""

    def __init__(self, activity_service: ActivityService | None = None) -> None:
        """Initialize user service.

        Args:
            activity_service: Optional activity log for testing.
        """
        store = get_store()
        self.users = UserRepository(store)
        self.carts = CartRepository(store)
        self.orders = OrderRepository(store)
        self.settings = get_settings()
        self.activity_service = activity_service or ActivityService()

    async def register(
        self,
        email: str,
        password: str,
        name: str,
        phone: str | None = None,
        address: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Register a new member and grant the signup bonus.

        Args:
            email: Unique email (compared case-insensitively).
            password: Plain password; only its hash is stored.
            name: Display name.
            phone: Optional phone number.
            address: Optional postal address.

        Returns:
            dict: The public profile of the new member.

        Raises:
            DuplicateEmailError: If the email is already registered.
        """
        if self.users.find_by_email(email):
            raise DuplicateEmailError(email)

        now = datetime.now(timezone.utc).isoformat()
        user: UserProfile = {
            "id": generate_user_id(),
            "email": email.strip(),
            "name": name,
            "password_hash": hash_password(password),
            "phone": phone,
            "address": address,
            "registration_date": now,
            "last_login": now,
            "points": self.settings.signup_bonus_points,
            "preferences": {"favorite_categories": [], "notifications": True},
        }
        self.users.save(user)
        self.activity_service.log(user["id"], "REGISTER", {})
        logger.info("Registered user %s", user["id"])
        return public_profile(user)

    async def authenticate(self, email: str, password: str) -> dict[str, Any]:
        """Check credentials and stamp last_login.

        Raises:
            InvalidCredentialsError: If the email is unknown or the password is wrong.
        """
        user = self.users.find_by_email(email)
        if not user or not verify_password(password, user["password_hash"]):
            raise InvalidCredentialsError()

        user["last_login"] = datetime.now(timezone.utc).isoformat()
        self.users.save(user)
        self.activity_service.log(user["id"], "LOGIN", {})
        return public_profile(user)

    async def reset_password(self, email: str, new_password: str | None = None) -> str | None:
        """Replace a member's password without the old one.

        Demo-only flow with no email step: the caller either supplies the
        new password or gets a generated one back.

        Args:
            email: Registered email (case-insensitive).
            new_password: Password to set; generated when omitted.

        Returns:
            str | None: The generated password, or None if one was supplied.

        Raises:
            UserNotFoundError: If no member has this email.
        """
        user = self.users.find_by_email(email)
        if not user:
            raise UserNotFoundError(email)

        generated = None
        if not new_password:
            generated = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(GENERATED_PASSWORD_LENGTH))
        user["password_hash"] = hash_password(new_password or generated)
        self.users.save(user)
        self.activity_service.log(user["id"], "PASSWORD_RESET", {"email": user["email"]})
        logger.info("Password reset for %s", user["id"])
        return generated

    async def logout(self, actor_id: str) -> None:
        self.activity_service.log(actor_id, "LOGOUT", {})

    async def get_user(self, actor_id: str | None) -> dict[str, Any] | None:
        """Public profile for an actor; None for guests and unknown ids."""
        if is_guest_actor(actor_id):
            return None
        user = self.users.get(actor_id)
        return public_profile(user) if user else None

    async def is_member(self, actor_id: str | None) -> bool:
        """Any registered actor is a member."""
        if is_guest_actor(actor_id):
            return False
        return self.users.get(actor_id) is not None

    async def update_profile(self, actor_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        """Update mutable profile fields; id, email and points are fixed.

        Raises:
            UserNotFoundError: If the actor has no profile.
        """
        user = self.users.get(actor_id)
        if not user:
            raise UserNotFoundError(actor_id)

        applied = {k: v for k, v in changes.items() if k in MUTABLE_PROFILE_FIELDS}
        user.update(applied)
        self.users.save(user)
        self.activity_service.log(actor_id, "UPDATE_PROFILE", applied)
        return public_profile(user)

    async def delete_user(self, actor_id: str) -> None:
        """Delete a member together with their cart and order history.

        Raises:
            UserNotFoundError: If the actor has no profile.
        """
        if not self.users.get(actor_id):
            raise UserNotFoundError(actor_id)

        self.users.delete(actor_id)
        self.carts.delete(actor_id)
        self.orders.delete_for_actor(actor_id)
        self.activity_service.log(actor_id, "DELETE_ACCOUNT", {})
        logger.info("Deleted user %s", actor_id)

    async def list_users(self) -> list[dict[str, Any]]:
        users = sorted(self.users.list_all(), key=lambda u: u["registration_date"])
        return [public_profile(user) for user in users]

    async def available_points(self, actor_id: str | None) -> int:
        """Points balance; guests have none."""
        if is_guest_actor(actor_id):
            return 0
        user = self.users.get(actor_id)
        return user["points"] if user else 0

    async def add_points(self, actor_id: str, points: int, reason: str) -> int:
        """Credit points.

        Returns:
            int: New balance.

        Raises:
            UserNotFoundError: If the actor has no profile.
        """
        if points <= 0:
            raise InvalidQuantityError(points)
        user = self.users.get(actor_id)
        if not user:
            raise UserNotFoundError(actor_id)

        user["points"] += points
        self.users.save(user)
        self.activity_service.log(
            actor_id, "POINTS_ADDED", {"points": points, "reason": reason, "new_total": user["points"]}
        )
        return user["points"]

    async def use_points(self, actor_id: str, points: int, reason: str) -> int:
        """Debit points; never drives the balance below zero.

        Returns:
            int: New balance.

        Raises:
            UserNotFoundError: If the actor has no profile.
            InsufficientPointsError: If the balance is smaller than points.
        """
        if points <= 0:
            raise InvalidQuantityError(points)
        user = self.users.get(actor_id)
        if not user:
            raise UserNotFoundError(actor_id)
        if user["points"] < points:
            raise InsufficientPointsError(points, user["points"])

        user["points"] -= points
        self.users.save(user)
        self.activity_service.log(
            actor_id, "POINTS_USED", {"points": points, "reason": reason, "new_total": user["points"]}
        )
        return user["points"]

    async def delete_all(self) -> int:
        return self.users.delete_all()
