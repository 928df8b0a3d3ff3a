"""Pytest configuration and shared fixtures."""

import os

# Settings are read once; point them at throwaway backends before any import.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["CACHE_BACKEND"] = "memory"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SPOONACULAR_API_KEY"] = "test-key"

from datetime import date  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from recipehub.auth import create_tokens, hash_password  # noqa: E402
from recipehub.database import Base, get_db  # noqa: E402
from recipehub.main import app  # noqa: E402
from recipehub.models import Recipe, User  # noqa: E402
from recipehub.normalize import slugify  # noqa: E402

# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (require external services)"
    )


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite engine with all tables; one shared connection per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client for the app, with every request using the test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# =============================================================================
# Data Factories
# =============================================================================


@pytest.fixture
def auth_headers():
    """Build a bearer header carrying a fresh access token for a user."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_tokens(user).access_token}"}

    return _headers


@pytest_asyncio.fixture
async def create_user(session_factory):
    """Factory inserting a user whose password is ``password123``."""

    async def _create(
        email: str = "cook@example.com",
        name: str = "Home Cook",
        role: str = "user",
    ) -> User:
        async with session_factory() as session:
            user = User(
                email=email,
                name=name,
                username=email.split("@")[0].replace(".", ""),
                role=role,
                hashed_password=hash_password("password123"),
            )
            session.add(user)
            await session.commit()
            return user

    return _create


@pytest.fixture
def recipe_payload():
    """A valid recipe submission as sent by a client."""
    return {
        "title": "Pad Thai",
        "description": "Classic stir-fried rice noodles.",
        "category": "main-course",
        "cuisine": "thai",
        "difficulty": "medium",
        "dietary": ["dairy-free"],
        "prepTime": 20,
        "cookTime": 15,
        "servings": 4,
        "ingredients": [
            {"item": "Rice noodles", "quantity": 200, "unit": "g"},
            {"item": "Eggs", "quantity": 2, "unit": ""},
            {"item": "Peanuts", "quantity": 50, "unit": "g"},
        ],
        "instructions": [
            {"step": 1, "text": "Soak the noodles."},
            {"step": 2, "text": "Stir-fry everything."},
        ],
    }


@pytest_asyncio.fixture
async def create_recipe(session_factory):
    """Factory inserting a published recipe directly, bypassing the service layer."""

    async def _create(author: User, title: str = "Tomato Soup", **overrides) -> Recipe:
        fields = {
            "author_id": author.id,
            "title": title,
            "slug": slugify(title),
            "description": f"{title} for testing.",
            "category": "soup",
            "cuisine": "italian",
            "servings": 2,
            "prep_time": 10,
            "cook_time": 20,
            "total_time": 30,
            "ingredients": [
                {"item": "Tomatoes", "quantity": 4, "unit": ""},
                {"item": "Olive oil", "quantity": 2, "unit": "tbsp"},
            ],
            "instructions": [{"step": 1, "text": "Simmer."}],
        }
        fields.update(overrides)
        async with session_factory() as session:
            recipe = Recipe(**fields)
            session.add(recipe)
            await session.commit()
            return recipe

    return _create


@pytest.fixture
def plan_dates():
    """A three-day range used by meal plan tests."""
    return {"startDate": date(2024, 5, 1).isoformat(), "endDate": date(2024, 5, 3).isoformat()}
