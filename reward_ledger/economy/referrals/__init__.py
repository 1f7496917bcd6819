from reward_ledger.economy.referrals.codes import (
    backfill_missing_referral_codes,
    ensure_referral_code,
)
from reward_ledger.economy.referrals.errors import (
    ReferralCodeExhaustedError,
    ReferralError,
    ReferralUserNotFoundError,
)
from reward_ledger.economy.referrals.service import ReferralRewardService
from reward_ledger.economy.referrals.types import (
    ReferralCodeBackfillResult,
    ReferralSignupRewardResult,
)

__all__ = [
    "ReferralCodeBackfillResult",
    "ReferralCodeExhaustedError",
    "ReferralError",
    "ReferralRewardService",
    "ReferralSignupRewardResult",
    "ReferralUserNotFoundError",
    "backfill_missing_referral_codes",
    "ensure_referral_code",
]
