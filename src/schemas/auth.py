"""Registration, login and profile schemas."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class AddressSchema(BaseModel):
    """Optional postal address on a member profile."""

    postal_code: str | None = Field(default=None, description="Postal code")
    prefecture: str | None = Field(default=None, description="Prefecture")
    city: str | None = Field(default=None, description="City")
    address1: str | None = Field(default=None, description="Street address")
    address2: str | None = Field(default=None, description="Building, room")


class PreferencesSchema(BaseModel):
    favorite_categories: list[str] = Field(default_factory=list, description="Favorite category slugs")
    notifications: bool = Field(default=True, description="Whether to receive notifications")


class RegisterRequest(BaseModel):
    """Schema for POST /auth/register."""

    email: EmailStr = Field(description="Email address, unique per member")
    password: str = Field(min_length=8, max_length=128, description="Account password")
    name: str = Field(min_length=1, max_length=100, description="Display name")
    phone: str | None = Field(default=None, max_length=20, description="Phone number")
    address: AddressSchema | None = Field(default=None, description="Postal address")


class LoginRequest(BaseModel):
    """Schema for POST /auth/login."""

    email: EmailStr = Field(description="Registered email address")
    password: str = Field(min_length=1, description="Account password")


class PasswordResetRequest(BaseModel):
    """Schema for POST /auth/password-reset."""

    email: EmailStr = Field(description="Registered email address")
    new_password: str | None = Field(
        default=None, min_length=8, max_length=128, description="New password; generated when omitted"
    )


class PasswordResetResponse(BaseModel):
    success: bool = Field(default=True, description="Whether the operation succeeded")
    message: str = Field(description="Outcome")
    new_password: str | None = Field(default=None, description="Generated password, only when none was given")


class UserProfileResponse(BaseModel):
    """Public member profile."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Member actor id")
    email: str = Field(description="Email address")
    name: str = Field(description="Display name")
    phone: str | None = Field(default=None, description="Phone number")
    address: AddressSchema | None = Field(default=None, description="Postal address")
    registration_date: str = Field(description="Registration timestamp (ISO 8601)")
    last_login: str = Field(description="Last login timestamp (ISO 8601)")
    points: int = Field(description="Points balance")
    preferences: PreferencesSchema = Field(description="Preferences")


class AuthResponse(BaseModel):
    """Result of register or login."""

    success: bool = Field(default=True, description="Whether the operation succeeded")
    user: UserProfileResponse = Field(description="Logged-in member")
    session_token: str = Field(description="Session token now bound to the member")
    migrated_cart_items: int = Field(default=0, description="Guest cart lines merged into the member cart")


class ProfileUpdate(BaseModel):
    """Schema for PATCH /users/me. Email and points cannot be changed."""

    name: str | None = Field(default=None, min_length=1, max_length=100, description="Display name")
    phone: str | None = Field(default=None, max_length=20, description="Phone number")
    address: AddressSchema | None = Field(default=None, description="Postal address")
    preferences: PreferencesSchema | None = Field(default=None, description="Preferences")


class PointsResponse(BaseModel):
    actor_id: str = Field(description="Member actor id")
    points: int = Field(description="Points balance")
