"""Entry points for the registration flow and the tutorial tracker.

Both hooks run the reward work to completion but never raise: a failed grant
is logged and left for a retry, which the reward idempotency keys make safe.
"""

from __future__ import annotations

import structlog

from reward_ledger.economy.referrals.codes import ensure_referral_code
from reward_ledger.economy.referrals.service import ReferralRewardService

logger = structlog.get_logger(__name__)


async def handle_user_registered(*, user_id: int, referrer_user_id: int | None) -> None:
    try:
        await ensure_referral_code(user_id=user_id)
    except Exception:
        logger.exception("referral_code_provisioning_failed", user_id=user_id)

    if referrer_user_id is None:
        return

    try:
        result = await ReferralRewardService.grant_signup_reward(
            referrer_user_id=referrer_user_id,
            referred_user_id=user_id,
        )
    except Exception:
        logger.exception(
            "referral_signup_reward_failed",
            user_id=user_id,
            referrer_user_id=referrer_user_id,
        )
        return

    logger.info(
        "referral_signup_reward_processed",
        user_id=user_id,
        referrer_user_id=referrer_user_id,
        referrer_granted=result.referrer_granted,
        referred_granted=result.referred_granted,
    )


async def handle_tutorial_step_completed(*, user_id: int) -> None:
    try:
        granted = await ReferralRewardService.grant_onboarding_reward(referred_user_id=user_id)
    except Exception:
        logger.exception("referral_onboarding_reward_failed", user_id=user_id)
        return

    if granted:
        logger.info("referral_onboarding_reward_processed", user_id=user_id)
