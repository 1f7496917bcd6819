from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.ext.asyncio import AsyncSession

from reward_ledger.db.models.reward_settings import RewardSetting


class RewardSettingsRepo:
    @staticmethod
    async def get_by_key(session: AsyncSession, key: str) -> RewardSetting | None:
        return await session.get(RewardSetting, key)

    @staticmethod
    async def list_all(session: AsyncSession) -> list[RewardSetting]:
        stmt = select(RewardSetting).order_by(RewardSetting.key.asc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def upsert(
        session: AsyncSession,
        *,
        key: str,
        value: int,
        now_utc: datetime,
    ) -> RewardSetting:
        stmt = (
            postgresql_insert(RewardSetting)
            .values(key=key, value=value, updated_at=now_utc)
            .on_conflict_do_update(
                index_elements=[RewardSetting.key],
                set_={"value": value, "updated_at": now_utc},
            )
            .returning(RewardSetting)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one()
