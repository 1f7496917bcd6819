from __future__ import annotations

import structlog
from sqlalchemy.exc import DBAPIError, IntegrityError

from reward_ledger.core.referral_codes import generate_referral_code
from reward_ledger.db.repo.users_repo import UsersRepo
from reward_ledger.db.session import SessionLocal
from reward_ledger.economy.referrals.constants import (
    BACKFILL_DEFAULT_BATCH_SIZE,
    REFERRAL_CODE_MAX_ATTEMPTS,
)
from reward_ledger.economy.referrals.errors import (
    ReferralCodeExhaustedError,
    ReferralUserNotFoundError,
)
from reward_ledger.economy.referrals.types import ReferralCodeBackfillResult

logger = structlog.get_logger(__name__)


async def ensure_referral_code(*, user_id: int) -> str:
    """Returns the user's referral code, assigning a fresh one when missing.

    Each candidate is written in its own short transaction, conditioned on the
    code still being NULL, so a code assigned concurrently is never overwritten
    and a unique-index collision only aborts that attempt.
    """
    async with SessionLocal() as session:
        user_exists, referral_code = await UsersRepo.get_referral_code(session, user_id)
    if not user_exists:
        raise ReferralUserNotFoundError(user_id)
    if referral_code is not None:
        return referral_code

    for attempt in range(1, REFERRAL_CODE_MAX_ATTEMPTS + 1):
        candidate = generate_referral_code()
        existing_code: str | None = None
        try:
            async with SessionLocal.begin() as session:
                assigned_code = await UsersRepo.try_assign_referral_code(
                    session,
                    user_id=user_id,
                    referral_code=candidate,
                )
                if assigned_code is None:
                    user_exists, existing_code = await UsersRepo.get_referral_code(
                        session, user_id
                    )
        except IntegrityError:
            logger.warning("referral_code_collision", user_id=user_id, attempt=attempt)
            continue

        if assigned_code is not None:
            logger.info("referral_code_assigned", user_id=user_id, attempt=attempt)
            return assigned_code
        if existing_code is not None:
            return existing_code
        raise ReferralUserNotFoundError(user_id)

    logger.error(
        "referral_code_exhausted",
        user_id=user_id,
        attempts=REFERRAL_CODE_MAX_ATTEMPTS,
    )
    raise ReferralCodeExhaustedError(user_id=user_id, attempts=REFERRAL_CODE_MAX_ATTEMPTS)


async def backfill_missing_referral_codes(
    *,
    batch_size: int = BACKFILL_DEFAULT_BATCH_SIZE,
) -> ReferralCodeBackfillResult:
    examined = 0
    assigned = 0
    failed = 0
    after_user_id: int | None = None

    while True:
        async with SessionLocal() as session:
            user_ids = await UsersRepo.list_ids_missing_referral_code(
                session,
                after_user_id=after_user_id,
                limit=batch_size,
            )
        if not user_ids:
            break

        for user_id in user_ids:
            examined += 1
            try:
                await ensure_referral_code(user_id=user_id)
            except (ReferralCodeExhaustedError, ReferralUserNotFoundError):
                failed += 1
                continue
            except DBAPIError:
                logger.exception("referral_code_backfill_user_failed", user_id=user_id)
                failed += 1
                continue
            assigned += 1
        after_user_id = user_ids[-1]

    result = ReferralCodeBackfillResult(examined=examined, assigned=assigned, failed=failed)
    logger.info("referral_code_backfill_finished", **result.as_dict())
    return result
