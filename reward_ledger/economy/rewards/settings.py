from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from reward_ledger.db.repo.reward_settings_repo import RewardSettingsRepo
from reward_ledger.economy.rewards.constants import DEFAULT_REWARD_VALUES, FALLBACK_REWARD_VALUE
from reward_ledger.economy.rewards.errors import RewardSettingValueError
from reward_ledger.economy.rewards.types import RewardSettingView

logger = structlog.get_logger(__name__)


def default_reward_value(key: str) -> int:
    return DEFAULT_REWARD_VALUES.get(key, FALLBACK_REWARD_VALUE)


class RewardSettingsService:
    @staticmethod
    async def get_value(session: AsyncSession, key: str) -> int:
        setting = await RewardSettingsRepo.get_by_key(session, key)
        if setting is None:
            return default_reward_value(key)
        return setting.value

    @staticmethod
    async def get_all(session: AsyncSession) -> list[RewardSettingView]:
        persisted = {
            setting.key: setting for setting in await RewardSettingsRepo.list_all(session)
        }
        views: list[RewardSettingView] = []
        for key in sorted(set(DEFAULT_REWARD_VALUES) | set(persisted)):
            setting = persisted.get(key)
            if setting is None:
                views.append(
                    RewardSettingView(key=key, value=default_reward_value(key), is_default=True)
                )
                continue
            views.append(
                RewardSettingView(
                    key=key,
                    value=setting.value,
                    is_default=False,
                    updated_at=setting.updated_at,
                )
            )
        return views

    @staticmethod
    async def set_value(
        session: AsyncSession,
        *,
        key: str,
        value: int,
        now_utc: datetime | None = None,
    ) -> RewardSettingView:
        normalized_key = key.strip()
        if not normalized_key:
            raise RewardSettingValueError("key must not be empty")
        if value < 0:
            raise RewardSettingValueError("value must be non-negative")

        setting = await RewardSettingsRepo.upsert(
            session,
            key=normalized_key,
            value=value,
            now_utc=now_utc or datetime.now(timezone.utc),
        )
        logger.info("reward_setting_updated", key=setting.key, value=setting.value)
        return RewardSettingView(
            key=setting.key,
            value=setting.value,
            is_default=False,
            updated_at=setting.updated_at,
        )
