ONBOARDING_REQUIRED_STEPS = 8
REFERRAL_CODE_MAX_ATTEMPTS = 3
BACKFILL_DEFAULT_BATCH_SIZE = 500

SIGNUP_REFERRER_DESCRIPTION = "Referral signup bonus"
SIGNUP_REFERRED_DESCRIPTION = "Welcome referral bonus"
ONBOARDING_REFERRER_DESCRIPTION = "Referral onboarding bonus"
