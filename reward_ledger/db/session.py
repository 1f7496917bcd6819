from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from reward_ledger.core.config import get_settings


def _build_engine() -> AsyncEngine:
    settings = get_settings()
    # Lock/statement timeouts bound every grant transaction; hitting one aborts it whole.
    return create_async_engine(
        settings.database_url,
        pool_pre_ping=True,
        connect_args={
            "server_settings": {
                "lock_timeout": str(settings.database_lock_timeout_ms),
                "statement_timeout": str(settings.database_statement_timeout_ms),
            }
        },
    )


engine = _build_engine()
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


async def dispose_engine() -> None:
    await engine.dispose()
