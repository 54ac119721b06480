from fastapi import APIRouter, Depends, Query

from ..dependencies import get_follow_service, ledger_http_error
from ..exceptions import LedgerError
from ..models import User
from ..schemas import (
    FollowRequest,
    FollowStatusResponse,
    FollowUserResponse,
    MessageResponse,
    PaginatedFollowUsers,
)
from ..services.follow_service import FollowService
from ..services.jwt_service import JWTService

router = APIRouter(
    tags=["follow"],
    responses={
        400: {"description": "Cannot follow yourself"},
        404: {"description": "User not found"},
        409: {"description": "Already following / not following"},
        503: {"description": "Storage failure"},
    }
)


def _to_items(rows) -> list[FollowUserResponse]:
    return [
        FollowUserResponse(
            id=u.id,
            username=u.username,
            profile_picture=u.profile_picture,
            followers_count=u.followers_count,
            following_count=u.following_count,
            followed_at=followed_at,
        )
        for (u, followed_at) in rows
    ]


@router.get("/follow/{user_id}/status", response_model=FollowStatusResponse)
async def check_follow_status(
    user_id: int,
    current_user: User = Depends(JWTService.get_current_user),
    service: FollowService = Depends(get_follow_service),
):
    """Whether the current user follows `user_id`."""
    try:
        return await service.status(current_user.id, user_id)
    except LedgerError as exc:
        raise ledger_http_error(exc)


@router.post("/follow", response_model=MessageResponse)
async def follow_user(
    payload: FollowRequest,
    current_user: User = Depends(JWTService.get_current_user),
    service: FollowService = Depends(get_follow_service),
):
    """
    Follow a user.

    **Authentication Required:** Yes

    **Errors:**
    - 400: following yourself
    - 404: target user does not exist
    - 409: already following
    """
    try:
        await service.follow(current_user.id, payload.user_id)
    except LedgerError as exc:
        raise ledger_http_error(exc)
    return {"message": "Successfully followed the user"}


@router.post("/unfollow", response_model=MessageResponse)
async def unfollow_user(
    payload: FollowRequest,
    current_user: User = Depends(JWTService.get_current_user),
    service: FollowService = Depends(get_follow_service),
):
    """
    Unfollow a user.

    **Errors:**
    - 409: not following this user
    """
    try:
        await service.unfollow(current_user.id, payload.user_id)
    except LedgerError as exc:
        raise ledger_http_error(exc)
    return {"message": "Successfully unfollowed the user"}


@router.get("/follow/{user_id}/followers", response_model=PaginatedFollowUsers)
async def list_followers(
    user_id: int,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(JWTService.get_current_user),
    service: FollowService = Depends(get_follow_service),
):
    try:
        rows, total = await service.followers(user_id, limit, offset)
    except LedgerError as exc:
        raise ledger_http_error(exc)
    return PaginatedFollowUsers(items=_to_items(rows), total=total, limit=limit, offset=offset)


@router.get("/follow/{user_id}/following", response_model=PaginatedFollowUsers)
async def list_following(
    user_id: int,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(JWTService.get_current_user),
    service: FollowService = Depends(get_follow_service),
):
    try:
        rows, total = await service.following(user_id, limit, offset)
    except LedgerError as exc:
        raise ledger_http_error(exc)
    return PaginatedFollowUsers(items=_to_items(rows), total=total, limit=limit, offset=offset)
