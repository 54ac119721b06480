import os
import shutil
import sys
import tempfile
from pathlib import Path
from typing import Optional

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import text

# Ensure pytest-asyncio plugin is active for async tests
pytest_plugins = ("pytest_asyncio",)

# Run tests inside the asyncio event loop by default
pytestmark = pytest.mark.asyncio
# Ensure project root on path before importing vidify modules
project_root = Path(__file__).resolve().parents[1]
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

# Configure the app to use a local SQLite database and a scratch media root
_test_db_path = project_root / "test.db"
_media_root = Path(tempfile.mkdtemp(prefix="vidify-media-"))
os.environ["APP_DATABASE_URL"] = f"sqlite+aiosqlite:///{_test_db_path.as_posix()}"
os.environ["APP_DEBUG"] = "false"
os.environ["APP_MEDIA_ROOT"] = str(_media_root)
os.environ.pop("APP_RESEND_API_KEY", None)

# Start each test session from a clean database file
if _test_db_path.exists():
    _test_db_path.unlink()


async def _clear_database(session) -> None:
    """Remove all data from the database between tests."""
    from vidify.models import Base

    await session.execute(text("PRAGMA foreign_keys=OFF"))
    for table in reversed(Base.metadata.sorted_tables):
        await session.execute(table.delete())
    await session.commit()
    await session.execute(text("PRAGMA foreign_keys=ON"))


@pytest_asyncio.fixture(scope="session", autouse=True)
async def setup_database():
    """Create all tables for the duration of the test session."""
    from vidify.database import create_tables, drop_tables

    await create_tables()
    yield
    await drop_tables()
    if _test_db_path.exists():
        _test_db_path.unlink()
    shutil.rmtree(_media_root, ignore_errors=True)


@pytest_asyncio.fixture
async def test_session(setup_database):
    """Provide an async database session to tests that need direct access."""
    from vidify.database import AsyncSessionLocal

    async with AsyncSessionLocal() as session:
        yield session
        await _clear_database(session)


@pytest_asyncio.fixture(autouse=True)
async def clean_database_after_test(setup_database):
    """Clean up any data created via API calls after each test."""
    yield
    from vidify.database import AsyncSessionLocal

    async with AsyncSessionLocal() as session:
        await _clear_database(session)


@pytest_asyncio.fixture
async def client():
    from vidify.main import app

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_user(test_session):
    """Factory for users written straight to the database."""
    from vidify.models import User

    async def _make(username: str, email: Optional[str] = None, verified: bool = True):
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            is_verified=verified,
        )
        test_session.add(user)
        await test_session.commit()
        await test_session.refresh(user)
        # Detach so rollbacks inside services do not expire the test's copy
        test_session.expunge(user)
        return user

    return _make


@pytest.fixture
def auth_headers():
    from vidify.services.jwt_service import JWTService

    def _headers(user) -> dict:
        return {"Authorization": f"Bearer {JWTService.create_token(user)}"}

    return _headers


@pytest_asyncio.fixture
async def language(test_session):
    from vidify.models import Language

    lang = Language(name="English", code="en")
    test_session.add(lang)
    await test_session.commit()
    await test_session.refresh(lang)
    test_session.expunge(lang)
    return lang
