from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy import text

from reward_ledger.core.config import get_settings
from reward_ledger.db.session import SessionLocal
from reward_ledger.workers.celery_app import celery_app

router = APIRouter(tags=["health"])

Probe = Callable[[], Awaitable[dict[str, Any]]]

# Granting and reading credits only touch Postgres; redis and celery serve the backfill.
READINESS_PROBES: tuple[str, ...] = ("database",)
HEALTH_PROBES: tuple[str, ...] = ("database", "redis", "celery")


def _probe_result(error: str | None = None, **details: Any) -> dict[str, Any]:
    if error is not None:
        return {"status": "failed", "error": error}
    return {"status": "ok", **details}


async def _check_database() -> dict[str, Any]:
    try:
        async with SessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception:
        # Driver messages can carry DSNs; only a stable code leaves the process.
        return _probe_result("database_unavailable")
    return _probe_result()


async def _check_redis() -> dict[str, Any]:
    client: Redis | None = None
    try:
        client = Redis.from_url(get_settings().redis_url)
        pong = await client.ping()
    except Exception:
        return _probe_result("redis_unavailable")
    finally:
        if client is not None:
            await client.aclose()
    return _probe_result() if pong is True else _probe_result("redis_unexpected_ping")


def _check_celery_worker_sync() -> dict[str, Any]:
    try:
        inspector = celery_app.control.inspect(timeout=1.0)
        if inspector is None:
            return _probe_result("celery_unavailable")
        replies = inspector.ping() or {}
    except Exception:
        return _probe_result("celery_unavailable")
    if not replies:
        return _probe_result("celery_no_workers")
    return _probe_result(workers=len(replies))


async def _check_celery_worker() -> dict[str, Any]:
    return await asyncio.to_thread(_check_celery_worker_sync)


def _probes() -> dict[str, Probe]:
    return {
        "database": _check_database,
        "redis": _check_redis,
        "celery": _check_celery_worker,
    }


async def _run_probes(names: tuple[str, ...]) -> tuple[bool, dict[str, dict[str, Any]]]:
    probes = _probes()
    results = await asyncio.gather(*(probes[name]() for name in names))
    checks = dict(zip(names, results))
    return all(check.get("status") == "ok" for check in checks.values()), checks


def _probe_response(
    passed: bool,
    checks: dict[str, dict[str, Any]],
    *,
    ok: str,
    failed: str,
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_200_OK if passed else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": ok if passed else failed, "checks": checks},
    )


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "live"}


@router.get("/health")
async def health() -> JSONResponse:
    passed, checks = await _run_probes(HEALTH_PROBES)
    return _probe_response(passed, checks, ok="ok", failed="degraded")


@router.get("/ready")
async def ready() -> JSONResponse:
    passed, checks = await _run_probes(READINESS_PROBES)
    return _probe_response(passed, checks, ok="ready", failed="not_ready")
