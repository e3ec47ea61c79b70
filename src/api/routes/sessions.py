"""Session API routes for anonymous browser sessions."""

from fastapi import APIRouter, Response, status

from src.api.deps import CurrentActor, set_session_cookie
from src.schemas.session import SessionResponse
from src.services.session_service import SessionService

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post(
    "",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new session",
    description="Creates a new anonymous session and sets the session cookie.",
)
async def create_session(response: Response) -> SessionResponse:
    """Create a new anonymous session.

    This endpoint creates a fresh session, even if one already exists.
    The token is returned in the body, the cookie and the x-session-token header.
    """
    service = SessionService()
    session, token = await service.create_session()

    set_session_cookie(response, token)

    return SessionResponse(
        id=session["id"],
        actor_id=SessionService.current_actor(session),
        is_authenticated=False,
        created_at=session["created_at"],
        expires_at=session["expires_at"],
        session_token=token,
    )


@router.get(
    "/me",
    response_model=SessionResponse,
    summary="Get current session",
    description="Returns the current session and its actor. Creates a new session if none exists.",
)
async def get_my_session(actor: CurrentActor) -> SessionResponse:
    return SessionResponse(
        id=actor.session["id"],
        actor_id=actor.actor_id,
        is_authenticated=actor.is_authenticated,
        created_at=actor.session["created_at"],
        expires_at=actor.session["expires_at"],
    )
