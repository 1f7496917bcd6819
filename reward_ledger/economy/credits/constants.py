TRANSACTION_TYPE_REFERRAL_REWARD = "referral_reward"
DEFAULT_HISTORY_LIMIT = 100
