# tests/integration/conftest.py
# Pytest fixtures to start PostgreSQL via TestContainers and migrate it with Alembic.
# Tests in this package skip when Docker is not available.

import pathlib
from typing import AsyncIterator, Iterator

import pytest
from sqlalchemy import delete

from burnlink.db.base import create_engine_for, create_session_factory
from burnlink.models.message_table import messages

postgres = pytest.importorskip("testcontainers.postgres", reason="testcontainers is not installed")

REPO_ROOT = pathlib.Path(__file__).resolve().parents[2]


@pytest.fixture(scope="session")
def postgres_url() -> Iterator[str]:
    # start test containers (PostgreSQL)
    container = postgres.PostgresContainer("postgres:16-alpine")
    try:
        container.start()
    except Exception as e:
        pytest.skip(f"Docker is not available: {e}")
    try:
        url = container.get_connection_url()
        _migrate(url)
        yield url
    finally:
        container.stop()


def _migrate(url: str) -> None:
    """Run Alembic migrations to head against the container."""
    from alembic import command
    from alembic.config import Config

    cfg = Config(str(REPO_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(REPO_ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", url)
    command.upgrade(cfg, "head")


@pytest.fixture
async def session_factory(postgres_url: str) -> AsyncIterator:
    """Fresh engine per test so connections never cross event loops."""
    engine = create_engine_for(postgres_url)
    factory = create_session_factory(engine)
    async with factory() as session:
        await session.execute(delete(messages))
        await session.commit()
    yield factory
    await engine.dispose()
