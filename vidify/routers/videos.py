import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..config import settings
from ..database import get_db
from ..dependencies import get_interaction_service, ledger_http_error
from ..exceptions import LedgerError
from ..models import Content, Series, User
from ..schemas import (
    CarouselItem,
    ContentDetailResponse,
    ContentPage,
    ContentResponse,
    GroupedVideosResponse,
    ReactionResponse,
    SeriesResponse,
)
from ..services.interaction_service import InteractionService
from ..services.jwt_service import JWTService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["videos"])

CONTENT_TYPES = ("normal", "short", "movie", "series")


def _with_creator(stmt):
    return stmt.options(selectinload(Content.creator))


def _newest_first(stmt):
    return stmt.order_by(desc(Content.created_at), desc(Content.id))


async def _content_list(db: AsyncSession, stmt) -> list[ContentResponse]:
    res = await db.execute(_with_creator(stmt))
    return [ContentResponse.model_validate(c) for c in res.scalars().all()]


@router.get("/videos", response_model=GroupedVideosResponse)
async def fetch_videos(
    page: int = Query(1, ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(JWTService.get_current_user),
):
    """
    One page of the newest content for every type.

    Each type reports its `total_count` and whether more pages follow.
    """
    limit = settings.videos_page_size
    skip = (page - 1) * limit
    grouped = {}
    for kind in CONTENT_TYPES:
        total = await db.scalar(
            select(func.count(Content.id)).where(Content.type == kind)) or 0
        videos = await _content_list(
            db,
            _newest_first(select(Content).where(Content.type == kind))
            .offset(skip).limit(limit),
        )
        grouped[kind] = ContentPage(
            videos=videos,
            total_count=total,
            has_more=total > skip + len(videos),
        )
    return GroupedVideosResponse(**grouped)


@router.get("/videos/normal", response_model=List[ContentResponse])
async def get_normal_videos(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(JWTService.get_current_user),
):
    return await _content_list(db, _newest_first(select(Content).where(Content.type == "normal")))


@router.get("/videos/{video_id}", response_model=ContentDetailResponse)
async def get_video_by_id(
    video_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(JWTService.get_current_user),
    interactions: InteractionService = Depends(get_interaction_service),
):
    """
    Video details with creator, like/dislike totals and the caller's reaction.

    Each call counts as a view.
    """
    result = await db.execute(
        update(Content)
        .where(Content.id == video_id)
        .values(view_count=Content.view_count + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise HTTPException(status_code=404, detail="Video not found")
    await db.commit()

    res = await db.execute(
        _with_creator(select(Content).where(Content.id == video_id))
        .execution_options(populate_existing=True)
    )
    video = res.scalar_one()
    summary = await interactions.summary(video_id, current_user.id)
    return ContentDetailResponse(
        **ContentResponse.model_validate(video).model_dump(), **summary)


async def _react(video_id: int, user: User, kind: str, interactions: InteractionService) -> dict:
    try:
        return await interactions.react(video_id, user.id, kind)
    except LedgerError as exc:
        raise ledger_http_error(exc)


@router.post("/videos/{video_id}/like", response_model=ReactionResponse)
async def like_video(
    video_id: int,
    current_user: User = Depends(JWTService.get_current_user),
    interactions: InteractionService = Depends(get_interaction_service),
):
    """Like a video; liking it again removes the like."""
    return await _react(video_id, current_user, "like", interactions)


@router.post("/videos/{video_id}/dislike", response_model=ReactionResponse)
async def dislike_video(
    video_id: int,
    current_user: User = Depends(JWTService.get_current_user),
    interactions: InteractionService = Depends(get_interaction_service),
):
    """Dislike a video; disliking it again removes the dislike."""
    return await _react(video_id, current_user, "dislike", interactions)


@router.get("/movies", response_model=List[ContentResponse])
async def get_movies(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(JWTService.get_current_user),
):
    return await _content_list(db, _newest_first(select(Content).where(Content.type == "movie")))


@router.get("/movies/{movie_id}", response_model=ContentResponse)
async def get_movie_by_id(
    movie_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(JWTService.get_current_user),
):
    res = await db.execute(
        _with_creator(select(Content).where(
            Content.id == movie_id, Content.type == "movie"))
    )
    movie = res.scalar_one_or_none()
    if not movie:
        raise HTTPException(status_code=404, detail="Movie not found")
    return ContentResponse.model_validate(movie)


@router.get("/shorts", response_model=List[ContentResponse])
async def get_shorts(
    page: int = Query(1, ge=1),
    limit: int = Query(3, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(JWTService.get_current_user),
):
    """Shorts, newest first, with the creator's follower count."""
    return await _content_list(
        db,
        _newest_first(select(Content).where(Content.type == "short"))
        .offset((page - 1) * limit).limit(limit),
    )


@router.get("/categories/{category_name}/videos", response_model=List[ContentResponse])
async def get_category_by_name(
    category_name: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(JWTService.get_current_user),
):
    """Content whose category contains `category_name`, ignoring case."""
    pattern = f"%{category_name.lower()}%"
    return await _content_list(
        db, _newest_first(select(Content).where(
            func.lower(Content.category).like(pattern)))
    )


@router.get("/series", response_model=List[SeriesResponse])
async def get_series(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(JWTService.get_current_user),
):
    res = await db.execute(
        select(Series)
        .options(selectinload(Series.creator))
        .order_by(desc(Series.created_at), desc(Series.id))
    )
    return [SeriesResponse.model_validate(s) for s in res.scalars().all()]


@router.get("/series/{series_id}/episodes", response_model=List[ContentResponse])
async def get_series_episodes(
    series_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(JWTService.get_current_user),
):
    episodes = await _content_list(
        db,
        select(Content)
        .where(Content.series_id == series_id, Content.content_type == "episode")
        .order_by(Content.season_number, Content.episode_number, Content.id),
    )
    if not episodes:
        raise HTTPException(
            status_code=404, detail="No episodes found for this series")
    return episodes


@router.get("/carousel", response_model=List[CarouselItem])
async def random_carousel(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(JWTService.get_current_user),
):
    """A random sample of movies for the home carousel."""
    res = await db.execute(
        select(Content.id, Content.title, Content.thumbnail_url)
        .where(Content.type == "movie")
        .order_by(func.random())
        .limit(settings.carousel_size)
    )
    return [CarouselItem(id=r.id, title=r.title, thumbnail_url=r.thumbnail_url) for r in res.all()]
