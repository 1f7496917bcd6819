from __future__ import annotations

import structlog

from reward_ledger.economy.referrals.codes import backfill_missing_referral_codes
from reward_ledger.economy.referrals.constants import BACKFILL_DEFAULT_BATCH_SIZE
from reward_ledger.workers.asyncio_runner import run_async_job
from reward_ledger.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)


async def backfill_referral_codes_async(
    *,
    batch_size: int = BACKFILL_DEFAULT_BATCH_SIZE,
) -> dict[str, int]:
    result = (await backfill_missing_referral_codes(batch_size=batch_size)).as_dict()
    if result["failed"] > 0:
        logger.warning("referral_code_backfill_incomplete", **result)
    return result


@celery_app.task(name="reward_ledger.workers.tasks.referral_codes.backfill_referral_codes")
def backfill_referral_codes(batch_size: int = BACKFILL_DEFAULT_BATCH_SIZE) -> dict[str, int]:
    return run_async_job(backfill_referral_codes_async(batch_size=batch_size))
