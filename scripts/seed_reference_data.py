#!/usr/bin/env python3
"""
Seed the languages and categories offered in the upload dropdowns.
Existing rows are left untouched, so the script can be re-run.
"""
import asyncio
from sqlalchemy import select
from vidify.database import AsyncSessionLocal, create_tables
from vidify.models import Category, Language

LANGUAGES = [
    ("English", "en"),
    ("Hindi", "hi"),
    ("Spanish", "es"),
    ("French", "fr"),
    ("Arabic", "ar"),
    ("Tamil", "ta"),
    ("Malayalam", "ml"),
]

CATEGORIES = [
    "Action",
    "Comedy",
    "Drama",
    "Documentary",
    "Education",
    "Music",
    "Gaming",
    "Sports",
    "Travel",
]


async def seed() -> tuple[int, int]:
    await create_tables()
    async with AsyncSessionLocal() as session:
        known_codes = set((await session.execute(select(Language.code))).scalars().all())
        known_categories = set((await session.execute(select(Category.name))).scalars().all())

        new_languages = [Language(name=name, code=code)
                         for name, code in LANGUAGES if code not in known_codes]
        new_categories = [Category(name=name)
                          for name in CATEGORIES if name not in known_categories]
        session.add_all(new_languages + new_categories)
        await session.commit()
    return len(new_languages), len(new_categories)


async def main():
    languages, categories = await seed()
    print(f"✅ Added {languages} languages and {categories} categories")


if __name__ == "__main__":
    asyncio.run(main())
