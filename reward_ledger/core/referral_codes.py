from __future__ import annotations

import secrets

# 32 symbols: no 0/O, no 1/I/l.
ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
REFERRAL_CODE_LENGTH = 8


def generate_referral_code(length: int = REFERRAL_CODE_LENGTH) -> str:
    """Generates an uppercase referral code with low typo ambiguity.

    Uses the OS CSPRNG via ``secrets``; codes are shared publicly and must not be
    predictable from earlier ones.
    """
    if length <= 0:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(ALPHABET) for _ in range(length))
