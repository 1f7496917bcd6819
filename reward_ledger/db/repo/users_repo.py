from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from reward_ledger.db.models.users import User


class UsersRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, user_id: int) -> User | None:
        return await session.get(User, user_id)

    @staticmethod
    async def get_by_referral_code(session: AsyncSession, referral_code: str) -> User | None:
        stmt = select(User).where(User.referral_code == referral_code)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_referral_code(session: AsyncSession, user_id: int) -> tuple[bool, str | None]:
        """Returns ``(user_exists, referral_code)`` without loading the full row."""
        stmt = select(User.referral_code).where(User.id == user_id)
        result = await session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            return False, None
        return True, row[0]

    @staticmethod
    async def get_referred_by_user_id(session: AsyncSession, user_id: int) -> int | None:
        stmt = select(User.referred_by_user_id).where(User.id == user_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def try_assign_referral_code(
        session: AsyncSession,
        *,
        user_id: int,
        referral_code: str,
    ) -> str | None:
        stmt = (
            update(User)
            .where(User.id == user_id, User.referral_code.is_(None))
            .values(referral_code=referral_code)
            .returning(User.referral_code)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_ids_missing_referral_code(
        session: AsyncSession,
        *,
        after_user_id: int | None,
        limit: int,
    ) -> list[int]:
        resolved_limit = max(1, min(1000, int(limit)))
        stmt = (
            select(User.id)
            .where(User.referral_code.is_(None))
            .order_by(User.id.asc())
            .limit(resolved_limit)
        )
        if after_user_id is not None:
            stmt = stmt.where(User.id > after_user_id)
        result = await session.execute(stmt)
        return [int(user_id) for user_id in result.scalars().all()]

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        referral_code: str | None = None,
        referred_by_user_id: int | None = None,
    ) -> User:
        user = User(
            referral_code=referral_code,
            referred_by_user_id=referred_by_user_id,
        )
        session.add(user)
        await session.flush()
        return user
