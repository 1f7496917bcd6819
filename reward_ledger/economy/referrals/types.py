from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ReferralSignupRewardResult:
    referrer_granted: bool
    referred_granted: bool


@dataclass(frozen=True, slots=True)
class ReferralCodeBackfillResult:
    examined: int
    assigned: int
    failed: int

    def as_dict(self) -> dict[str, int]:
        return {"examined": self.examined, "assigned": self.assigned, "failed": self.failed}
