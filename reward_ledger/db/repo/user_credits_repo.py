from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.ext.asyncio import AsyncSession

from reward_ledger.db.models.user_credits import UserCredits


class UserCreditsRepo:
    @staticmethod
    async def get_by_user_id(session: AsyncSession, user_id: int) -> UserCredits | None:
        return await session.get(UserCredits, user_id)

    @staticmethod
    async def get_by_user_id_for_update(session: AsyncSession, user_id: int) -> UserCredits | None:
        stmt = (
            select(UserCredits)
            .where(UserCredits.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def try_create(
        session: AsyncSession,
        *,
        user_id: int,
        messages_remaining: int,
        total_granted: int,
        now_utc: datetime,
    ) -> bool:
        stmt = (
            postgresql_insert(UserCredits)
            .values(
                user_id=user_id,
                messages_remaining=messages_remaining,
                total_granted=total_granted,
                total_used=0,
                created_at=now_utc,
                updated_at=now_utc,
            )
            .on_conflict_do_nothing(index_elements=[UserCredits.user_id])
            .returning(UserCredits.user_id)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None
