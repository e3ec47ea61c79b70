"""FastAPI dependency injection functions."""

import hmac
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, Request, Response

from src.api.middleware.error_handler import AuthenticationError, AuthorizationError
from src.core.config import get_settings
from src.models.session import Session
from src.services.session_service import SessionService, is_guest_actor
from src.services.user_service import UserService


def get_session_cookie_config() -> dict:
    """Get session cookie configuration from settings."""
    settings = get_settings()
    # SameSite=None requires Secure=True, so plain HTTP development uses Lax
    samesite = "none" if settings.session_cookie_secure else "lax"
    return {
        "key": settings.session_cookie_name,
        "max_age": settings.session_cookie_max_age,
        "httponly": True,
        "secure": settings.session_cookie_secure,
        "samesite": samesite,
        "path": "/",
    }


@dataclass
class ActorContext:
    """The session behind a request and the actor it currently acts as."""

    session: Session
    session_token: str
    actor_id: str
    is_member: bool

    @property
    def is_authenticated(self) -> bool:
        return not is_guest_actor(self.actor_id)

    @property
    def guest_actor_id(self) -> str:
        return SessionService.guest_actor(self.session)


def get_session_token(request: Request) -> str | None:
    """Extract session token from X-Session-Token header or cookie.

    The header wins so clients that block cookies still work.

    Args:
        request: FastAPI request object.

    Returns:
        str | None: The session token or None if not present.
    """
    header_token = request.headers.get("x-session-token")
    if header_token:
        return header_token

    config = get_session_cookie_config()
    return request.cookies.get(config["key"])


def set_session_cookie(response: Response, token: str) -> None:
    """Set session cookie on response and mirror the token in a header.

    Args:
        response: FastAPI response object.
        token: The session token to set.
    """
    config = get_session_cookie_config()
    response.set_cookie(
        key=config["key"],
        value=token,
        max_age=config["max_age"],
        httponly=config["httponly"],
        secure=config["secure"],
        samesite=config["samesite"],
        path=config["path"],
    )
    response.headers["x-session-token"] = token


def clear_session_cookie(response: Response) -> None:
    """Clear session cookie from response.

    Args:
        response: FastAPI response object.
    """
    config = get_session_cookie_config()
    response.delete_cookie(key=config["key"], path=config["path"])


async def get_actor_context(request: Request, response: Response) -> ActorContext:
    """Resolve the current actor, creating an anonymous session when needed.

    A missing, unknown or expired token yields a fresh session whose token
    is returned in the cookie and the ``x-session-token`` header.

    Args:
        request: FastAPI request object.
        response: FastAPI response object.

    Returns:
        ActorContext: Session, token and acting actor.
    """
    session_service = SessionService()
    token = get_session_token(request)
    session = await session_service.get_session(token) if token else None

    if session is None:
        session, token = await session_service.create_session()
        set_session_cookie(response, token)

    actor_id = SessionService.current_actor(session)
    is_member = await UserService().is_member(actor_id)
    if not is_member and not is_guest_actor(actor_id):
        # Session still points at a deleted account
        actor_id = SessionService.guest_actor(session)

    return ActorContext(session=session, session_token=token, actor_id=actor_id, is_member=is_member)


async def get_member_context(actor: Annotated[ActorContext, Depends(get_actor_context)]) -> ActorContext:
    """Require a logged-in member.

    Raises:
        AuthenticationError: 401 if the session is anonymous.
    """
    if not actor.is_member:
        raise AuthenticationError("Login is required for this operation")
    return actor


async def require_admin(
    x_admin_token: Annotated[str | None, Header(description="Administrative token")] = None,
) -> None:
    """Guard for the administrative console.

    Raises:
        AuthorizationError: 403 if the token is missing, wrong, or not configured.
    """
    expected = get_settings().admin_token
    if not expected or not x_admin_token or not hmac.compare_digest(x_admin_token, expected):
        raise AuthorizationError("Valid X-Admin-Token header required")


# Type aliases for cleaner dependency injection
CurrentActor = Annotated[ActorContext, Depends(get_actor_context)]
CurrentMember = Annotated[ActorContext, Depends(get_member_context)]
AdminAccess = Depends(require_admin)
