from reward_ledger.economy.rewards.service import RewardGrantService
from reward_ledger.economy.rewards.settings import RewardSettingsService

__all__ = ["RewardGrantService", "RewardSettingsService"]
