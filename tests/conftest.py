#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pytest fixtures for WikiView tests.
Uses an in-memory SQLite database so no external services are needed.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from wikiview.core.database import Base, get_db
from wikiview.core.security import create_access_token
from wikiview.main import create_app
from wikiview.models import Page, Revision, User
from wikiview.services.namespaces import ensure_namespace
from wikiview.services.pages import create_page, save_revision
from wikiview.services.users import create_user


# -----------------------------------------------------------------------------

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


# -----------------------------------------------------------------------------

@pytest_asyncio.fixture(scope="function")
async def db_engine():
    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session_factory(db_engine):
    """Shared sessionmaker; both client and db_session use this."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(db_session_factory):
    """Direct DB session for test setup (seeding pages, users, etc)."""
    async with db_session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_engine, db_session_factory):
    """HTTP test client wired to an isolated in-memory DB."""
    async def override_get_db():
        async with db_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# -----------------------------------------------------------------------------
# Helper functions for tests
# -----------------------------------------------------------------------------

async def seed_page(
    db: AsyncSession,
    title: str = "Foo",
    contents: tuple[str, ...] = ("first", "second", "third"),
    namespace: str = "Main",
    author: User | None = None,
) -> tuple[Page, list[Revision]]:
    """Create *title* with one revision per entry of *contents*, oldest first."""
    await ensure_namespace(db, namespace)
    page, first = await create_page(
        db, namespace, title, contents[0], author_id=author.id if author else None,
    )
    revisions = [first]
    for text in contents[1:]:
        revisions.append(await save_revision(
            db, page, text, author_id=author.id if author else None,
        ))
    return page, revisions


async def seed_user(
    db: AsyncSession,
    username: str = "testuser",
    is_admin: bool = False,
    can_suppress: bool = False,
) -> User:
    return await create_user(db, username, is_admin=is_admin, can_suppress=can_suppress)


def token_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


# -----------------------------------------------------------------------------
