from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.ext.asyncio import AsyncSession

from reward_ledger.db.models.reward_events import RewardEvent


class RewardEventsRepo:
    @staticmethod
    async def try_create(
        session: AsyncSession,
        *,
        user_id: int,
        reward_type: str,
        credits_awarded: int,
        related_user_id: int,
        now_utc: datetime,
    ) -> bool:
        stmt = (
            postgresql_insert(RewardEvent)
            .values(
                user_id=user_id,
                type=reward_type,
                credits_awarded=credits_awarded,
                related_user_id=related_user_id,
                created_at=now_utc,
            )
            .on_conflict_do_nothing(
                index_elements=[
                    RewardEvent.user_id,
                    RewardEvent.type,
                    RewardEvent.related_user_id,
                ]
            )
            .returning(RewardEvent.id)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def list_for_user(session: AsyncSession, *, user_id: int) -> list[RewardEvent]:
        stmt = (
            select(RewardEvent)
            .where(RewardEvent.user_id == user_id)
            .order_by(RewardEvent.created_at.asc(), RewardEvent.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
