from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from reward_ledger.db.models.tutorial_steps import TutorialStep


class TutorialStepsRepo:
    @staticmethod
    async def count_completed(session: AsyncSession, *, user_id: int) -> int:
        stmt = select(func.count(TutorialStep.id)).where(TutorialStep.user_id == user_id)
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)
