"""Session Pydantic schemas for API request/response models."""

from pydantic import BaseModel, ConfigDict, Field


class SessionResponse(BaseModel):
    """Schema for session API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Session unique identifier")
    actor_id: str = Field(description="Actor owning cart and orders for this session")
    is_authenticated: bool = Field(description="Whether a member is logged in")
    created_at: str = Field(description="Session creation timestamp")
    expires_at: str = Field(description="Session expiration timestamp")
    session_token: str | None = Field(default=None, description="Token, returned only on creation")
