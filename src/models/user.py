"""User profile type definitions."""

from typing import TypedDict


class UserAddress(TypedDict, total=False):
    """Optional postal address on a profile."""

    postal_code: str
    prefecture: str
    city: str
    address1: str
    address2: str


class UserPreferences(TypedDict):
    """Profile preferences."""

    favorite_categories: list[str]
    notifications: bool


class UserProfile(TypedDict):
    """Registered member record.

    ``password_hash`` never leaves the user service.
    """

    id: str
    email: str
    name: str
    password_hash: str
    phone: str | None
    address: UserAddress | None
    registration_date: str
    last_login: str
    points: int
    preferences: UserPreferences
