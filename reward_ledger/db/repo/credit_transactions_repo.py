from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reward_ledger.db.models.credit_transactions import CreditTransaction


class CreditTransactionsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, transaction: CreditTransaction) -> CreditTransaction:
        session.add(transaction)
        await session.flush()
        return transaction

    @staticmethod
    async def list_for_user(
        session: AsyncSession,
        *,
        user_id: int,
        limit: int | None = None,
    ) -> list[CreditTransaction]:
        """Returns the newest ``limit`` rows (all rows when ``limit`` is None) in
        creation order, oldest first."""
        stmt = (
            select(CreditTransaction)
            .where(CreditTransaction.user_id == user_id)
            .order_by(CreditTransaction.created_at.desc(), CreditTransaction.id.desc())
        )
        if limit is not None:
            stmt = stmt.limit(max(1, int(limit)))
        result = await session.execute(stmt)
        return list(reversed(result.scalars().all()))
