from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class CreditBalance:
    messages_remaining: int
    total_granted: int
    total_used: int


@dataclass(frozen=True, slots=True)
class CreditTransactionView:
    id: int
    type: str
    messages_change: int
    balance_before: int
    balance_after: int
    description: str | None
    metadata: dict[str, object]
    created_at: datetime


@dataclass(frozen=True, slots=True)
class CreditApplyResult:
    balance_before: int
    balance_after: int
    created_credits_row: bool
