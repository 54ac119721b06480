import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy import case, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..database import get_db
from ..exceptions import FileTooLargeError, UploadValidationError
from ..models import Content, Language, Series, User
from ..schemas import UploadResponse
from ..services.jwt_service import JWTService
from ..services.storage_service import storage_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/uploads",
    tags=["uploads"],
    responses={
        400: {"description": "Invalid form data or empty file"},
        404: {"description": "Series not found"},
        413: {"description": "File too large"},
    }
)


def _split_tags(tags: Optional[str]) -> list[str]:
    return [t.strip() for t in (tags or "").split(",") if t.strip()]


class _StoredFiles:
    """Tracks files written for one request so they can be removed if the insert fails"""

    def __init__(self):
        self.urls: list[str] = []

    async def put(self, kind: str, upload: UploadFile) -> str:
        max_mb = settings.image_max_mb if kind == "thumbnail" else settings.video_max_mb
        try:
            url = await storage_service.save_upload(kind, upload, max_mb)
        except FileTooLargeError as exc:
            self.discard()
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(exc)) from exc
        except UploadValidationError as exc:
            self.discard()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
        self.urls.append(url)
        return url

    def discard(self) -> None:
        for url in self.urls:
            storage_service.delete_file(url)
        self.urls.clear()


async def _require_language(db: AsyncSession, language_id: int) -> None:
    if await db.scalar(select(Language.id).where(Language.id == language_id)) is None:
        raise HTTPException(status_code=400, detail="Unknown language")


async def _save_record(db: AsyncSession, record, files: _StoredFiles, label: str) -> int:
    try:
        db.add(record)
        await db.commit()
        await db.refresh(record)
    except SQLAlchemyError as exc:
        await db.rollback()
        files.discard()
        logger.error(f"Saving {label} failed: {exc}")
        raise HTTPException(
            status_code=500, detail=f"Error uploading {label}") from exc
    logger.info(f"{label.capitalize()} {record.id} uploaded by user {record.creator_id}")
    return record.id


async def _add_video_content(
    content_type_label: str,
    kind: str,
    title: str,
    description: str,
    category_name: str,
    language_id: int,
    duration: str,
    file: UploadFile,
    thumbnail: UploadFile,
    db: AsyncSession,
    current_user: User,
) -> dict:
    await _require_language(db, language_id)
    files = _StoredFiles()
    url = await files.put("video", file)
    thumbnail_url = await files.put("thumbnail", thumbnail)

    record = Content(
        type=kind,
        content_type="video",
        title=title,
        description=description,
        category=category_name,
        language_id=language_id,
        duration=duration,
        url=url,
        thumbnail_url=thumbnail_url,
        creator_id=current_user.id,
    )
    content_id = await _save_record(db, record, files, content_type_label)
    return {"message": f"{content_type_label.capitalize()} added successfully", "id": content_id}


@router.post("/video", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def add_video(
    title: str = Form(...),
    description: str = Form(...),
    category_name: str = Form(...),
    language_id: int = Form(...),
    duration: str = Form(...),
    file: UploadFile = File(...),
    thumbnail: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(JWTService.get_current_user),
):
    """Upload a normal video with its thumbnail."""
    return await _add_video_content(
        "video", "normal", title, description, category_name, language_id,
        duration, file, thumbnail, db, current_user)


@router.post("/shorts", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def add_shorts(
    title: str = Form(...),
    description: str = Form(...),
    category_name: str = Form(...),
    language_id: int = Form(...),
    duration: str = Form(...),
    file: UploadFile = File(...),
    thumbnail: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(JWTService.get_current_user),
):
    """Upload a short with its thumbnail."""
    return await _add_video_content(
        "shorts", "short", title, description, category_name, language_id,
        duration, file, thumbnail, db, current_user)


@router.post("/movie", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def add_movie(
    name: str = Form(...),
    description: str = Form(...),
    category_name: str = Form(...),
    language_id: int = Form(...),
    release_date: date = Form(...),
    duration: str = Form(...),
    file: UploadFile = File(...),
    thumbnail: UploadFile = File(...),
    trailer: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(JWTService.get_current_user),
):
    """
    Upload a movie with thumbnail and trailer.

    `release_year` is taken from `release_date`.
    """
    await _require_language(db, language_id)
    files = _StoredFiles()
    url = await files.put("video", file)
    thumbnail_url = await files.put("thumbnail", thumbnail)
    trailer_url = await files.put("trailer", trailer)

    record = Content(
        type="movie",
        content_type="movie",
        title=name,
        description=description,
        category=category_name,
        language_id=language_id,
        duration=duration,
        url=url,
        thumbnail_url=thumbnail_url,
        trailer_url=trailer_url,
        release_year=release_date.year,
        creator_id=current_user.id,
    )
    movie_id = await _save_record(db, record, files, "movie")
    return {"message": "Movie added successfully", "id": movie_id}


@router.post("/series", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def add_series(
    title: str = Form(...),
    description: str = Form(...),
    language_id: int = Form(...),
    release_date: date = Form(...),
    category: str = Form(...),
    tags: Optional[str] = Form(None),
    is_subscription: bool = Form(False),
    thumbnail: UploadFile = File(...),
    trailer: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(JWTService.get_current_user),
):
    """Create a series; episodes are added separately."""
    await _require_language(db, language_id)
    files = _StoredFiles()
    thumbnail_url = await files.put("thumbnail", thumbnail)
    trailer_url = await files.put("trailer", trailer)

    record = Series(
        title=title,
        description=description,
        creator_id=current_user.id,
        tags=_split_tags(tags),
        language_id=language_id,
        category=category,
        thumbnail_url=thumbnail_url,
        trailer_url=trailer_url,
        release_year=release_date.year,
        is_subscription=is_subscription,
        total_seasons=0,
        total_episodes=0,
    )
    series_id = await _save_record(db, record, files, "series")
    return {"message": "Series uploaded successfully", "id": series_id}


@router.post("/series/{series_id}/episodes", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def add_episode(
    series_id: int,
    title: str = Form(...),
    language_id: int = Form(...),
    category: str = Form(...),
    description: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    release_year: Optional[int] = Form(None),
    season_number: Optional[int] = Form(None, ge=1),
    episode_number: Optional[int] = Form(None, ge=1),
    file: UploadFile = File(...),
    thumbnail: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(JWTService.get_current_user),
):
    """
    Add an episode to a series.

    The series' `total_episodes` is incremented in the same transaction and
    `total_seasons` grows to the highest season number seen.
    """
    if await db.scalar(select(Series.id).where(Series.id == series_id)) is None:
        raise HTTPException(status_code=404, detail="Series not found")
    await _require_language(db, language_id)

    files = _StoredFiles()
    url = await files.put("episode", file)
    thumbnail_url = await files.put("thumbnail", thumbnail)

    record = Content(
        type="series",
        content_type="episode",
        title=title,
        description=description,
        creator_id=current_user.id,
        url=url,
        thumbnail_url=thumbnail_url,
        tags=_split_tags(tags),
        language_id=language_id,
        category=category,
        series_id=series_id,
        release_year=release_year,
        season_number=season_number,
        episode_number=episode_number,
        is_subscription=False,
    )

    values = {"total_episodes": Series.total_episodes + 1}
    if season_number is not None:
        values["total_seasons"] = case(
            (Series.total_seasons < season_number, season_number),
            else_=Series.total_seasons,
        )

    try:
        db.add(record)
        await db.flush()
        await db.execute(
            update(Series).where(Series.id == series_id).values(values)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        files.discard()
        logger.error(f"Saving episode for series {series_id} failed: {exc}")
        raise HTTPException(
            status_code=500, detail="Error uploading episode") from exc

    logger.info(f"Episode {record.id} added to series {series_id}")
    return {"message": "Episode added successfully", "id": record.id}
