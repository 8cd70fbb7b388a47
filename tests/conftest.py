"""Shared test fixtures.

Persistence and API tests run against a throwaway SQLite file per test
(aiosqlite), with the schema created from the ORM metadata.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from trailkit.blocks.repository import BlockRepository
from trailkit.blocks.service import BlockService
from trailkit.blocks.state_repository import BlockStateRepository
from trailkit.blocks.validation import ValidationDispatcher
from trailkit.config import get_settings
from trailkit.database import build_engine, close_db, get_engine, get_session_factory, init_db
from trailkit.db.base import Base
from trailkit.db.models import Instance, Location
from trailkit.kinds.base import Block, BlockState, Context
from trailkit.kinds.registry import BlockRegistry, build_default_registry

ADMIN_ID = "admin-1"
OTHER_ADMIN_ID = "admin-2"


def _sqlite_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'trailkit.db'}"


# ---------------------------------------------------------------------------
# Kinds
# ---------------------------------------------------------------------------


@pytest.fixture
def registry() -> BlockRegistry:
    return build_default_registry()


@pytest.fixture
def make_block(registry: BlockRegistry) -> Callable[..., Block]:
    """Build a typed block for a kind straight from a config payload."""

    def _make(
        block_type: str,
        data: dict[str, Any] | None = None,
        points: int = 0,
        context: Context | None = None,
        block_id: str = "block-1",
    ) -> Block:
        kind = registry.get(block_type)
        ctx = context or sorted(kind.valid_contexts, key=lambda c: c.value)[0]
        return registry.build(
            id=block_id,
            owner_id="location-1",
            type=block_type,
            context=ctx,
            data=data or {},
            points=points,
        )

    return _make


@pytest.fixture
def fresh_state() -> BlockState:
    return BlockState(block_id="block-1", team_id="team-a")


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def session_factory(tmp_path: Path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    engine = build_engine(_sqlite_url(tmp_path))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def block_repo(session_factory: async_sessionmaker[AsyncSession]) -> BlockRepository:
    return BlockRepository(session_factory, timeout=5.0)


@pytest.fixture
def state_repo(session_factory: async_sessionmaker[AsyncSession]) -> BlockStateRepository:
    return BlockStateRepository(session_factory, timeout=5.0)


@pytest.fixture
def dispatcher(block_repo: BlockRepository, state_repo: BlockStateRepository) -> ValidationDispatcher:
    return ValidationDispatcher(block_repo, state_repo)


@pytest.fixture
def block_service(
    session_factory: async_sessionmaker[AsyncSession],
    block_repo: BlockRepository,
    state_repo: BlockStateRepository,
) -> BlockService:
    return BlockService(session_factory, block_repo, state_repo)


async def seed_owners(sessions: async_sessionmaker[AsyncSession]) -> dict[str, str]:
    """One instance with one location for ADMIN_ID, and one foreign instance."""
    async with sessions() as session, session.begin():
        session.add_all([
            Instance(id="instance-1", user_id=ADMIN_ID, name="Harbour Hunt"),
            Instance(id="instance-2", user_id=OTHER_ADMIN_ID, name="Someone Else's Game"),
        ])
        await session.flush()
        session.add_all([
            Location(id="location-1", instance_id="instance-1", name="Lighthouse"),
            Location(id="location-2", instance_id="instance-1", name="Boathouse"),
            Location(id="location-x", instance_id="instance-2", name="Elsewhere"),
        ])
    return {
        "instance": "instance-1",
        "location": "location-1",
        "second_location": "location-2",
        "foreign_location": "location-x",
    }


@pytest_asyncio.fixture
async def owners(session_factory: async_sessionmaker[AsyncSession]) -> dict[str, str]:
    return await seed_owners(session_factory)


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> AsyncGenerator[AsyncClient, None]:
    """An async HTTP client over the full app, backed by a fresh SQLite file."""
    url = _sqlite_url(tmp_path)
    monkeypatch.setenv("TRAILKIT_DATABASE_URL", url)
    monkeypatch.setenv("TRAILKIT_LOG_FORMAT", "console")
    get_settings.cache_clear()

    from trailkit.main import create_app

    app = create_app()
    await init_db(url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await close_db()
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def api_owners(client: AsyncClient) -> dict[str, str]:
    """Owners seeded into the database behind ``client``."""
    return await seed_owners(get_session_factory())


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-User-Id": ADMIN_ID}
