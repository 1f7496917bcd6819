REWARD_KEY_SIGNUP_REFERRER = "referral_signup_referrer"
REWARD_KEY_SIGNUP_REFERRED = "referral_signup_referred"
REWARD_KEY_ONBOARDING_REFERRER = "referral_onboarding_referrer"

# Used when no reward_settings row exists for the key.
DEFAULT_REWARD_VALUES: dict[str, int] = {
    REWARD_KEY_SIGNUP_REFERRER: 50,
    REWARD_KEY_SIGNUP_REFERRED: 30,
    REWARD_KEY_ONBOARDING_REFERRER: 100,
}
FALLBACK_REWARD_VALUE = 0

REWARD_TYPE_REFERRAL_SIGNUP = "referral_signup"
REWARD_TYPE_REFERRAL_SIGNUP_BONUS = "referral_signup_bonus"
REWARD_TYPE_REFERRAL_ONBOARDING = "referral_onboarding"
