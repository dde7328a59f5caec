from __future__ import annotations

import os
import tempfile

# Settings are read at import time
os.environ.setdefault("DATA_PATH", tempfile.mkdtemp(prefix="vigil-test-"))
os.environ.setdefault("CRON_SECRET", "test-cron-secret")
os.environ.setdefault("ADMIN_TOKEN", "test-admin-token")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

import pytest
import pytest_asyncio
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from vigil.database import Base, configure_sqlite
from vigil.models import (
    HttpMethod,
    Monitor,
    Plan,
    StatusPage,
    StatusPageMonitor,
    User,
)


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'vigil.db'}")
    configure_sqlite(engine.sync_engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


class Fixtures:
    """Small helpers for seeding rows."""

    def __init__(self, factory: async_sessionmaker):
        self.factory = factory

    async def add(self, *objects):
        async with self.factory() as session:
            session.add_all(objects)
            await session.commit()
        return objects[0] if len(objects) == 1 else objects

    async def user(self, email: str = "owner@example.com", plan: Plan = Plan.FREE) -> User:
        return await self.add(User(email=email, name="Owner", plan=plan))

    async def monitor(self, user: User, name: str = "API", **kwargs) -> Monitor:
        fields = {
            "url": "https://api.example.com/health",
            "method": HttpMethod.GET,
            "expected_status": 200,
            "timeout_ms": 5000,
            "enabled": True,
        }
        fields.update(kwargs)
        return await self.add(Monitor(user_id=user.id, name=name, **fields))

    async def status_page(self, user: User, slug: str = "acme", *monitors: Monitor) -> StatusPage:
        page = await self.add(StatusPage(user_id=user.id, name=slug.title(), slug=slug, is_public=True))
        async with self.factory() as session:
            for order, monitor in enumerate(monitors):
                await session.execute(
                    insert(StatusPageMonitor).values(
                        status_page_id=page.id,
                        monitor_id=monitor.id,
                        display_order=order,
                    )
                )
            await session.commit()
        return page


@pytest.fixture
def db(session_factory) -> Fixtures:
    return Fixtures(session_factory)
