"""Authentication API routes: register, login, logout and password reset."""

import logging

from fastapi import APIRouter, status

from src.api.deps import ActorContext, CurrentActor
from src.schemas.auth import (
    AuthResponse,
    LoginRequest,
    PasswordResetRequest,
    PasswordResetResponse,
    RegisterRequest,
    UserProfileResponse,
)
from src.schemas.common import MessageResponse
from src.services.cart_service import CartService
from src.services.session_service import SessionService
from src.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


async def _log_in(actor: ActorContext, user: dict) -> AuthResponse:
    """Bind the member to the session and merge the session's guest cart."""
    await SessionService().bind_actor(actor.session_token, user["id"])
    cart_service = CartService()
    guest_cart = await cart_service.get_cart(actor.guest_actor_id)
    merged = len(guest_cart["items"])
    await cart_service.migrate_guest_cart(user["id"], actor.guest_actor_id)
    return AuthResponse(
        user=UserProfileResponse(**user),
        session_token=actor.session_token,
        migrated_cart_items=merged,
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new member",
    description="Create a member account with the signup bonus and log it in on this session.",
)
async def register(data: RegisterRequest, actor: CurrentActor) -> AuthResponse:
    """Register a new member and log them in.

    Any items the session collected as a guest move into the new member's cart.

    Raises:
        DuplicateEmailError: 400 if the email is already registered.
    """
    user = await UserService().register(
        email=data.email,
        password=data.password,
        name=data.name,
        phone=data.phone,
        address=data.address.model_dump() if data.address else None,
    )
    return await _log_in(actor, user)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Log in",
    description="Check credentials and bind the member to the current session.",
)
async def login(data: LoginRequest, actor: CurrentActor) -> AuthResponse:
    """Log in with email and password.

    Raises:
        InvalidCredentialsError: 400 if the email or password is wrong.
    """
    user = await UserService().authenticate(data.email, data.password)
    return await _log_in(actor, user)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Log out",
    description="Detach the member from the current session; the session continues as a guest.",
)
async def logout(actor: CurrentActor) -> MessageResponse:
    actor_id = await SessionService().clear_actor(actor.session_token)
    if actor_id:
        await UserService().logout(actor_id)
        logger.info("Logged out %s", actor_id)
    return MessageResponse(message="Logged out")


@router.post(
    "/password-reset",
    response_model=PasswordResetResponse,
    summary="Reset password",
    description="Set a new password for a registered email, or generate one. No email is sent.",
)
async def reset_password(data: PasswordResetRequest) -> PasswordResetResponse:
    """Reset a member's password.

    The current session is left as it is; the member logs in again with the new password.

    Raises:
        UserNotFoundError: 404 if the email is not registered.
    """
    generated = await UserService().reset_password(data.email, data.new_password)
    return PasswordResetResponse(message="Password has been reset", new_password=generated)
