"""Member profile API routes."""

from fastapi import APIRouter

from src.api.deps import CurrentMember
from src.api.middleware.error_handler import NotFoundError
from src.schemas.auth import PointsResponse, ProfileUpdate, UserProfileResponse
from src.schemas.common import MessageResponse
from src.services.session_service import SessionService
from src.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "/me",
    response_model=UserProfileResponse,
    summary="Get my profile",
)
async def get_my_profile(member: CurrentMember) -> UserProfileResponse:
    user = await UserService().get_user(member.actor_id)
    if user is None:
        raise NotFoundError("User not found")
    return UserProfileResponse(**user)


@router.patch(
    "/me",
    response_model=UserProfileResponse,
    summary="Update my profile",
    description="Update name, phone, address or preferences. Email and points cannot be changed here.",
)
async def update_my_profile(data: ProfileUpdate, member: CurrentMember) -> UserProfileResponse:
    changes = data.model_dump(exclude_unset=True)
    user = await UserService().update_profile(member.actor_id, changes)
    return UserProfileResponse(**user)


@router.delete(
    "/me",
    response_model=MessageResponse,
    summary="Delete my account",
    description="Delete the profile with its cart and order history, and log out everywhere.",
)
async def delete_my_account(member: CurrentMember) -> MessageResponse:
    await UserService().delete_user(member.actor_id)
    await SessionService().clear_actor_everywhere(member.actor_id)
    return MessageResponse(message="Account deleted")


@router.get(
    "/me/points",
    response_model=PointsResponse,
    summary="Get my points balance",
)
async def get_my_points(member: CurrentMember) -> PointsResponse:
    points = await UserService().available_points(member.actor_id)
    return PointsResponse(actor_id=member.actor_id, points=points)
