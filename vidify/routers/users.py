import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..config import settings
from ..database import get_db
from ..dependencies import get_follow_service
from ..exceptions import UploadValidationError, FileTooLargeError
from ..models import Content, Series, User
from ..schemas import (
    ContentResponse,
    MessageResponse,
    PublicUserResponse,
    SeriesResponse,
    UserContentResponse,
    UserResponse,
)
from ..services.follow_service import FollowService
from ..services.jwt_service import JWTService
from ..services.storage_service import storage_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_my_profile(current_user: User = Depends(JWTService.get_current_user)):
    """
    Get current authenticated user's profile.

    **Authentication Required:** Yes
    """
    return current_user


@router.put("/me", response_model=UserResponse)
async def update_profile(
    username: str = Form(..., min_length=1, max_length=50),
    about: str = Form(..., min_length=1),
    profile_picture: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(JWTService.get_current_user),
):
    """
    Update username and about text, optionally replacing the profile picture.

    A replaced picture is removed from disk once the new one is saved.
    """
    old_picture = None
    try:
        if profile_picture is not None and profile_picture.filename:
            new_url = await storage_service.save_upload(
                "profile", profile_picture, settings.image_max_mb)
            old_picture = current_user.profile_picture
            current_user.profile_picture = new_url

        current_user.username = username
        current_user.about = about
        await db.commit()
        await db.refresh(current_user)
    except FileTooLargeError as exc:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(exc)) from exc
    except UploadValidationError as exc:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    if old_picture:
        storage_service.delete_file(old_picture)
    return current_user


@router.delete("/me/picture", response_model=MessageResponse)
async def delete_profile_picture(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(JWTService.get_current_user),
):
    if not current_user.profile_picture:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No profile image to delete"
        )

    picture = current_user.profile_picture
    current_user.profile_picture = None
    await db.commit()
    storage_service.delete_file(picture)
    return {"message": "Profile image deleted successfully"}


@router.get("/{user_id}", response_model=PublicUserResponse)
async def get_profile(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(JWTService.get_current_user),
    follow_service: FollowService = Depends(get_follow_service),
):
    res = await db.execute(select(User).where(User.id == user_id))
    user = res.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    is_following = None
    if user.id != current_user.id:
        is_following = await follow_service.is_following(current_user.id, user.id)

    return PublicUserResponse(
        id=user.id,
        username=user.username,
        about=user.about,
        profile_picture=user.profile_picture,
        followers_count=user.followers_count,
        following_count=user.following_count,
        is_following=is_following,
        created_at=user.created_at,
    )


@router.get("/{user_id}/content", response_model=UserContentResponse)
async def get_user_content(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(JWTService.get_current_user),
):
    """Everything a user uploaded: videos, shorts, movies, episodes and series."""
    contents = await db.execute(
        select(Content)
        .options(selectinload(Content.creator))
        .where(Content.creator_id == user_id)
        .order_by(desc(Content.created_at), desc(Content.id))
    )
    series = await db.execute(
        select(Series)
        .options(selectinload(Series.creator))
        .where(Series.creator_id == user_id)
        .order_by(desc(Series.created_at), desc(Series.id))
    )
    return UserContentResponse(
        contents=[ContentResponse.model_validate(c)
                  for c in contents.scalars().all()],
        series=[SeriesResponse.model_validate(s)
                for s in series.scalars().all()],
    )
