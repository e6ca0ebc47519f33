import os
import tempfile
from pathlib import Path

# Settings are read when cityguess is first imported
_TMP_DIR = Path(tempfile.mkdtemp(prefix="cityguess-tests-"))
TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["JWT_SECRET"] = TEST_SECRET
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR / 'test.db'}"
os.environ["GOOGLE_KEY"] = "test-google-key"
os.environ["LOG_LEVEL"] = "DEBUG"

import pytest
from fastapi import HTTPException, status
from httpx import ASGITransport, AsyncClient

from cityguess.database import models  # noqa: F401
from cityguess.database.models import User, UserRank
from cityguess.database.session import AsyncSessionLocal, Base, engine
from cityguess.dependencies import get_map_client, get_rank_store
from cityguess.main import app
from cityguess.services.auth import CredentialVerifier, Keys
from cityguess.services.cities import CityCatalogue
from cityguess.services.rank_store import RankStore


class FakeMapClient:
    """Stands in for the Google Static Maps client."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    def interactive_map_url(self) -> str:
        return "https://maps.example/js"

    async def get_city_image(self, city) -> str:
        self.calls.append(("city", city.rank))
        return "data:image/png;base64,Y2l0eQ=="

    async def get_guess_map(self, city, guess_lat, guess_lng) -> str:
        self.calls.append(("guess", city.rank, guess_lat, guess_lng))
        if self.fail:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="boom")
        return "data:image/png;base64,Z3Vlc3M="


@pytest.fixture
async def db():
    """Fresh, empty tables for every test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield AsyncSessionLocal


@pytest.fixture
def rank_store(db):
    return RankStore(db, read_timeout_seconds=5.0)


@pytest.fixture
def verifier():
    return CredentialVerifier(Keys(TEST_SECRET), token_lifetime_seconds=3600)


@pytest.fixture
def cities():
    return CityCatalogue.from_file()


@pytest.fixture
def make_user(db):
    """Insert an account with an empty rank row, return its id."""
    async def _make_user(email: str, total_score: int = 0, num_guesses: int = 0, rank: int = 0) -> int:
        async with db() as session:
            user = User(email=email, hashed_password="not-a-real-hash")
            user.rank_row = UserRank(total_score=total_score, num_guesses=num_guesses, rank=rank)
            session.add(user)
            await session.commit()
            return user.id
    return _make_user


@pytest.fixture
def fake_maps():
    return FakeMapClient()


@pytest.fixture
async def client(db, rank_store, fake_maps):
    app.dependency_overrides[get_rank_store] = lambda: rank_store
    app.dependency_overrides[get_map_client] = lambda: fake_maps
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
