"""Shared pytest fixtures for database-backed service tests."""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from careerkit.config import AppSettings
from careerkit.db.base import Base
from careerkit.db.models.core import User
from careerkit.services.plans import PlanCatalog


class _AsyncSessionWrapper:
    def __init__(self, sync_session) -> None:
        self._sync = sync_session

    async def execute(self, *args, **kwargs):
        return self._sync.execute(*args, **kwargs)

    async def get(self, *args, **kwargs):
        return self._sync.get(*args, **kwargs)

    def add(self, obj) -> None:
        self._sync.add(obj)

    def add_all(self, objs) -> None:
        self._sync.add_all(objs)

    async def flush(self) -> None:
        self._sync.flush()

    async def commit(self) -> None:
        self._sync.commit()

    async def rollback(self) -> None:
        self._sync.rollback()

    async def close(self) -> None:
        self._sync.close()


@pytest_asyncio.fixture
async def session():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    sync_session = SessionLocal()
    try:
        yield _AsyncSessionWrapper(sync_session)
    finally:
        sync_session.close()
        engine.dispose()


@pytest.fixture
def catalog() -> PlanCatalog:
    return PlanCatalog.from_settings(AppSettings())


@pytest.fixture
def make_user(session):
    counter = {"n": 0}

    async def _make(plan: str = "free", ai_generations_used: int = 0, exports_used: int = 0) -> User:
        counter["n"] += 1
        user = User(
            email=f"user{counter['n']}@example.com",
            username=f"user{counter['n']}",
            subscription_status=plan,
            ai_generations_used=ai_generations_used,
            exports_used=exports_used,
        )
        session.add(user)
        await session.flush()
        return user

    return _make
