"""Shared fixtures: an isolated SQLite file per test."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from config import Settings
from database import Database
from main import create_app


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        environment="test",
    )


@pytest.fixture
def client(settings: Settings):
    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture
async def db(settings: Settings):
    database = Database(settings.database_url)
    await database.init()
    async with database.sessionmaker() as session:
        yield session
    await database.close()


@pytest.fixture
def book_data():
    """Factory for a valid book payload keyed by wire names."""

    def make(**overrides):
        data = {
            "title": "the hobbit",
            "author": "j tolkien",
            "price": 15,
            "publishedDate": "1937-09-21",
            "genre": "Fiction",
        }
        data.update(overrides)
        return data

    return make
