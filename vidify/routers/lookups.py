"""
Lookup endpoints for the upload form dropdowns (languages, categories).
"""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from ..database import get_db
from ..models import Category, Language, User
from ..schemas import CategoryResponse, LanguageResponse
from ..services.jwt_service import JWTService

router = APIRouter(tags=["lookups"])


@router.get("/languages", response_model=List[LanguageResponse])
async def get_languages(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(JWTService.get_current_user),
):
    res = await db.execute(select(Language).order_by(Language.name))
    return res.scalars().all()


@router.get("/categories", response_model=List[CategoryResponse])
async def get_categories(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(JWTService.get_current_user),
):
    res = await db.execute(select(Category).order_by(Category.name))
    return res.scalars().all()
