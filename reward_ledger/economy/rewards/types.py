from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class RewardSettingView:
    key: str
    value: int
    is_default: bool
    updated_at: datetime | None = None
