from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from reward_ledger.core.config import get_settings
from reward_ledger.db.models.credit_transactions import CreditTransaction
from reward_ledger.db.repo.credit_transactions_repo import CreditTransactionsRepo
from reward_ledger.db.repo.user_credits_repo import UserCreditsRepo
from reward_ledger.economy.credits.constants import DEFAULT_HISTORY_LIMIT
from reward_ledger.economy.credits.types import (
    CreditApplyResult,
    CreditBalance,
    CreditTransactionView,
)


def verify_ledger_chain(transactions: Sequence[CreditTransaction | CreditTransactionView]) -> bool:
    """Checks a creation-ordered history: every row is internally balanced and
    starts from the previous row's ``balance_after``."""
    previous_after: int | None = None
    for transaction in transactions:
        if transaction.balance_after != transaction.balance_before + transaction.messages_change:
            return False
        if previous_after is not None and transaction.balance_before != previous_after:
            return False
        previous_after = transaction.balance_after
    return True


class CreditLedgerService:
    @staticmethod
    def initial_allotment() -> int:
        return get_settings().credits_initial_allotment

    @staticmethod
    async def get_balance(session: AsyncSession, *, user_id: int) -> CreditBalance | None:
        credits = await UserCreditsRepo.get_by_user_id(session, user_id)
        if credits is None:
            return None
        return CreditBalance(
            messages_remaining=credits.messages_remaining,
            total_granted=credits.total_granted,
            total_used=credits.total_used,
        )

    @staticmethod
    async def list_transactions(
        session: AsyncSession,
        *,
        user_id: int,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> list[CreditTransactionView]:
        transactions = await CreditTransactionsRepo.list_for_user(
            session,
            user_id=user_id,
            limit=limit,
        )
        return [
            CreditTransactionView(
                id=transaction.id,
                type=transaction.type,
                messages_change=transaction.messages_change,
                balance_before=transaction.balance_before,
                balance_after=transaction.balance_after,
                description=transaction.description,
                metadata=dict(transaction.metadata_ or {}),
                created_at=transaction.created_at,
            )
            for transaction in transactions
        ]

    @staticmethod
    async def apply_credit(
        session: AsyncSession,
        *,
        user_id: int,
        credits: int,
        transaction_type: str,
        description: str,
        metadata: dict[str, object],
        now_utc: datetime,
    ) -> CreditApplyResult:
        """Adds ``credits`` to the user's balance under a row lock and appends the
        matching ledger row. Must run inside the caller's transaction."""
        if credits <= 0:
            raise ValueError("credits must be positive")

        state = await UserCreditsRepo.get_by_user_id_for_update(session, user_id)
        created_credits_row = False
        if state is None:
            # A concurrent first grant may have inserted the row; lock whichever one exists.
            allotment = CreditLedgerService.initial_allotment()
            created_credits_row = await UserCreditsRepo.try_create(
                session,
                user_id=user_id,
                messages_remaining=allotment,
                total_granted=allotment,
                now_utc=now_utc,
            )
            state = await UserCreditsRepo.get_by_user_id_for_update(session, user_id)
            if state is None:
                raise RuntimeError(f"user_credits row missing for user {user_id}")

        balance_before = state.messages_remaining
        balance_after = balance_before + credits
        state.messages_remaining = balance_after
        state.total_granted = state.total_granted + credits
        state.updated_at = now_utc

        await CreditTransactionsRepo.create(
            session,
            transaction=CreditTransaction(
                user_id=user_id,
                type=transaction_type,
                messages_change=credits,
                balance_before=balance_before,
                balance_after=balance_after,
                description=description,
                metadata_=metadata,
            ),
        )
        return CreditApplyResult(
            balance_before=balance_before,
            balance_after=balance_after,
            created_credits_row=created_credits_row,
        )
