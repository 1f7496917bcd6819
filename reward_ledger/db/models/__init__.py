from reward_ledger.db.models.credit_transactions import CreditTransaction
from reward_ledger.db.models.reward_events import RewardEvent
from reward_ledger.db.models.reward_settings import RewardSetting
from reward_ledger.db.models.tutorial_steps import TutorialStep
from reward_ledger.db.models.user_credits import UserCredits
from reward_ledger.db.models.users import User

__all__ = [
    "CreditTransaction",
    "RewardEvent",
    "RewardSetting",
    "TutorialStep",
    "User",
    "UserCredits",
]
