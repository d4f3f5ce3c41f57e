"""Shared fixtures: a file-backed SQLite database reached through aiosqlite."""

import pytest
from sqlalchemy import text

from src.infrastructure.database import ConnectionProvider

_SCHEMA = (
    """
    CREATE TABLE Person (
        Id INTEGER PRIMARY KEY AUTOINCREMENT,
        Name TEXT NOT NULL,
        Age INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE,
        description TEXT,
        created_date TEXT NOT NULL,
        updated_date TEXT,
        is_active INTEGER NOT NULL DEFAULT 1
    )
    """,
    """
    CREATE TABLE orders (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL REFERENCES users (id),
        total REAL
    )
    """,
)


@pytest.fixture
def sqlite_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
async def provider(sqlite_url):
    """ConnectionProvider over a fresh database holding the Person, users and orders tables."""
    provider = ConnectionProvider(sqlite_url)
    async with provider.create_connection() as conn:
        async with conn.begin():
            for ddl in _SCHEMA:
                await conn.execute(text(ddl))
    yield provider
    await provider.dispose()


@pytest.fixture
async def unreachable_provider(tmp_path):
    """Provider whose database file lives in a directory that does not exist."""
    provider = ConnectionProvider(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'x.db'}")
    yield provider
    await provider.dispose()
