from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import text

from reward_ledger.core.integration_db_safety import assert_safe_integration_db
from reward_ledger.db.session import engine

REPO_ROOT = Path(__file__).resolve().parents[2]
TRUNCATE_TABLES = (
    "credit_transactions",
    "reward_events",
    "user_credits",
    "reward_settings",
    "tutorial_steps",
    "users",
)

TRUNCATE_SQL = f"TRUNCATE TABLE {', '.join(TRUNCATE_TABLES)} RESTART IDENTITY CASCADE"
_schema_ready = False


def _upgrade_schema() -> None:
    config = Config(str(REPO_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(REPO_ROOT / "alembic"))
    command.upgrade(config, "head")


@pytest.fixture(autouse=True)
async def cleanup_db() -> None:
    global _schema_ready

    # Dispose pooled connections between tests to avoid cross-event-loop asyncpg reuse.
    await engine.dispose()

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:  # pragma: no cover - environment-dependent
        pytest.skip(f"Postgres is required for integration tests: {exc}")

    assert_safe_integration_db(str(engine.url))

    if not _schema_ready:
        # env.py drives its own event loop.
        await asyncio.to_thread(_upgrade_schema)
        _schema_ready = True

    async with engine.begin() as conn:
        await conn.execute(text(TRUNCATE_SQL))

    yield

    await engine.dispose()
