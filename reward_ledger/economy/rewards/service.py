from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from reward_ledger.db.repo.reward_events_repo import RewardEventsRepo
from reward_ledger.db.session import SessionLocal
from reward_ledger.economy.credits.constants import TRANSACTION_TYPE_REFERRAL_REWARD
from reward_ledger.economy.credits.service import CreditLedgerService

logger = structlog.get_logger(__name__)


async def grant_reward_in_session(
    session: AsyncSession,
    *,
    user_id: int,
    reward_type: str,
    credits: int,
    related_user_id: int,
    description: str,
    now_utc: datetime,
) -> bool:
    if credits <= 0:
        return False

    inserted = await RewardEventsRepo.try_create(
        session,
        user_id=user_id,
        reward_type=reward_type,
        credits_awarded=credits,
        related_user_id=related_user_id,
        now_utc=now_utc,
    )
    if not inserted:
        return False

    await CreditLedgerService.apply_credit(
        session,
        user_id=user_id,
        credits=credits,
        transaction_type=TRANSACTION_TYPE_REFERRAL_REWARD,
        description=description,
        metadata={
            "source": "referral",
            "reward_type": reward_type,
            "related_user_id": related_user_id,
        },
        now_utc=now_utc,
    )
    return True


class RewardGrantService:
    @staticmethod
    async def grant_reward(
        *,
        user_id: int,
        reward_type: str,
        credits: int,
        related_user_id: int,
        description: str,
    ) -> bool:
        """Pays ``credits`` to ``user_id`` at most once per
        ``(user_id, reward_type, related_user_id)``.

        Runs in its own transaction. Returns ``False`` for a non-positive amount
        (storage untouched) or when the reward was already paid. Storage errors
        propagate after a full rollback; retrying is safe.
        """
        if credits <= 0:
            return False

        now_utc = datetime.now(timezone.utc)
        async with SessionLocal.begin() as session:
            granted = await grant_reward_in_session(
                session,
                user_id=user_id,
                reward_type=reward_type,
                credits=credits,
                related_user_id=related_user_id,
                description=description,
                now_utc=now_utc,
            )

        if granted:
            logger.info(
                "reward_granted",
                user_id=user_id,
                reward_type=reward_type,
                credits=credits,
                related_user_id=related_user_id,
            )
        else:
            logger.info(
                "reward_already_granted",
                user_id=user_id,
                reward_type=reward_type,
                related_user_id=related_user_id,
            )
        return granted
