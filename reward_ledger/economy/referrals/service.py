from __future__ import annotations

from reward_ledger.db.repo.tutorial_steps_repo import TutorialStepsRepo
from reward_ledger.db.repo.users_repo import UsersRepo
from reward_ledger.db.session import SessionLocal
from reward_ledger.economy.referrals.constants import (
    ONBOARDING_REFERRER_DESCRIPTION,
    ONBOARDING_REQUIRED_STEPS,
    SIGNUP_REFERRED_DESCRIPTION,
    SIGNUP_REFERRER_DESCRIPTION,
)
from reward_ledger.economy.referrals.types import ReferralSignupRewardResult
from reward_ledger.economy.rewards.constants import (
    REWARD_KEY_ONBOARDING_REFERRER,
    REWARD_KEY_SIGNUP_REFERRED,
    REWARD_KEY_SIGNUP_REFERRER,
    REWARD_TYPE_REFERRAL_ONBOARDING,
    REWARD_TYPE_REFERRAL_SIGNUP,
    REWARD_TYPE_REFERRAL_SIGNUP_BONUS,
)
from reward_ledger.economy.rewards.service import RewardGrantService
from reward_ledger.economy.rewards.settings import RewardSettingsService


class ReferralRewardService:
    @staticmethod
    async def grant_signup_reward(
        *,
        referrer_user_id: int,
        referred_user_id: int,
    ) -> ReferralSignupRewardResult:
        async with SessionLocal() as session:
            referrer_credits = await RewardSettingsService.get_value(
                session, REWARD_KEY_SIGNUP_REFERRER
            )
            referred_credits = await RewardSettingsService.get_value(
                session, REWARD_KEY_SIGNUP_REFERRED
            )

        # Independent idempotency keys: a retry after a partial failure pays only the missing side.
        referrer_granted = await RewardGrantService.grant_reward(
            user_id=referrer_user_id,
            reward_type=REWARD_TYPE_REFERRAL_SIGNUP,
            credits=referrer_credits,
            related_user_id=referred_user_id,
            description=SIGNUP_REFERRER_DESCRIPTION,
        )
        referred_granted = await RewardGrantService.grant_reward(
            user_id=referred_user_id,
            reward_type=REWARD_TYPE_REFERRAL_SIGNUP_BONUS,
            credits=referred_credits,
            related_user_id=referrer_user_id,
            description=SIGNUP_REFERRED_DESCRIPTION,
        )
        return ReferralSignupRewardResult(
            referrer_granted=referrer_granted,
            referred_granted=referred_granted,
        )

    @staticmethod
    async def grant_onboarding_reward(*, referred_user_id: int) -> bool:
        """Pays the referrer once the referred user has completed onboarding.

        Called after every tutorial step. The not-referred and below-threshold
        paths only read and never open a write transaction.
        """
        async with SessionLocal() as session:
            referrer_user_id = await UsersRepo.get_referred_by_user_id(session, referred_user_id)
            if referrer_user_id is None:
                return False

            completed_steps = await TutorialStepsRepo.count_completed(
                session,
                user_id=referred_user_id,
            )
            if completed_steps < ONBOARDING_REQUIRED_STEPS:
                return False

            credits = await RewardSettingsService.get_value(
                session, REWARD_KEY_ONBOARDING_REFERRER
            )

        return await RewardGrantService.grant_reward(
            user_id=referrer_user_id,
            reward_type=REWARD_TYPE_REFERRAL_ONBOARDING,
            credits=credits,
            related_user_id=referred_user_id,
            description=ONBOARDING_REFERRER_DESCRIPTION,
        )
