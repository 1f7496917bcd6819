from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from reward_ledger.economy.referrals import codes as referral_codes
from reward_ledger.economy.referrals.errors import (
    ReferralCodeExhaustedError,
    ReferralUserNotFoundError,
)
from reward_ledger.economy.referrals.types import ReferralCodeBackfillResult


class _FakeSessionContext:
    def __init__(self, session: object) -> None:
        self._session = session

    async def __aenter__(self) -> object:
        return self._session

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


class _FakeSessionLocal:
    def __init__(self) -> None:
        self.session = object()
        self.read_calls = 0
        self.begin_calls = 0

    def __call__(self) -> _FakeSessionContext:
        self.read_calls += 1
        return _FakeSessionContext(self.session)

    def begin(self) -> _FakeSessionContext:
        self.begin_calls += 1
        return _FakeSessionContext(self.session)


def _collision() -> IntegrityError:
    return IntegrityError(
        "UPDATE users SET referral_code=...",
        {},
        Exception('duplicate key value violates unique constraint "uq_users_referral_code"'),
    )


def _patch_generator(monkeypatch, codes: list[str]) -> None:
    monkeypatch.setattr(referral_codes, "generate_referral_code", lambda: codes.pop(0))


def _patch_lookup(monkeypatch, results: list[tuple[bool, str | None]]) -> None:
    async def _fake_get_referral_code(session, user_id: int):
        return results.pop(0)

    monkeypatch.setattr(referral_codes.UsersRepo, "get_referral_code", _fake_get_referral_code)


@pytest.mark.asyncio
async def test_ensure_referral_code_returns_existing_code_without_write(monkeypatch) -> None:
    session_local = _FakeSessionLocal()
    monkeypatch.setattr(referral_codes, "SessionLocal", session_local)
    _patch_lookup(monkeypatch, [(True, "ABCD2345")])

    async def _unexpected_assign(session, **kwargs):
        raise AssertionError("existing codes must not be rewritten")

    monkeypatch.setattr(referral_codes.UsersRepo, "try_assign_referral_code", _unexpected_assign)

    assert await referral_codes.ensure_referral_code(user_id=4) == "ABCD2345"
    assert session_local.begin_calls == 0


@pytest.mark.asyncio
async def test_ensure_referral_code_raises_for_missing_user(monkeypatch) -> None:
    monkeypatch.setattr(referral_codes, "SessionLocal", _FakeSessionLocal())
    _patch_lookup(monkeypatch, [(False, None)])

    with pytest.raises(ReferralUserNotFoundError):
        await referral_codes.ensure_referral_code(user_id=404)


@pytest.mark.asyncio
async def test_ensure_referral_code_retries_after_collision(monkeypatch) -> None:
    session_local = _FakeSessionLocal()
    monkeypatch.setattr(referral_codes, "SessionLocal", session_local)
    _patch_lookup(monkeypatch, [(True, None)])
    _patch_generator(monkeypatch, ["TAKEN222", "FRESH333"])
    attempted: list[str] = []

    async def _fake_assign(session, *, user_id: int, referral_code: str):
        attempted.append(referral_code)
        if referral_code == "TAKEN222":
            raise _collision()
        return referral_code

    monkeypatch.setattr(referral_codes.UsersRepo, "try_assign_referral_code", _fake_assign)

    assert await referral_codes.ensure_referral_code(user_id=4) == "FRESH333"
    assert attempted == ["TAKEN222", "FRESH333"]
    assert session_local.begin_calls == 2


@pytest.mark.asyncio
async def test_ensure_referral_code_fails_loudly_after_three_collisions(monkeypatch) -> None:
    monkeypatch.setattr(referral_codes, "SessionLocal", _FakeSessionLocal())
    _patch_lookup(monkeypatch, [(True, None)])
    _patch_generator(monkeypatch, ["AAAA2222", "BBBB3333", "CCCC4444", "DDDD5555"])
    attempted: list[str] = []

    async def _always_collide(session, *, user_id: int, referral_code: str):
        attempted.append(referral_code)
        raise _collision()

    monkeypatch.setattr(referral_codes.UsersRepo, "try_assign_referral_code", _always_collide)

    with pytest.raises(ReferralCodeExhaustedError) as exc_info:
        await referral_codes.ensure_referral_code(user_id=4)

    assert exc_info.value.user_id == 4
    assert exc_info.value.attempts == 3
    assert attempted == ["AAAA2222", "BBBB3333", "CCCC4444"]


@pytest.mark.asyncio
async def test_ensure_referral_code_keeps_concurrently_assigned_code(monkeypatch) -> None:
    monkeypatch.setattr(referral_codes, "SessionLocal", _FakeSessionLocal())
    _patch_lookup(monkeypatch, [(True, None), (True, "WINNER22")])
    _patch_generator(monkeypatch, ["LOSER333"])

    async def _lost_race(session, *, user_id: int, referral_code: str):
        return None

    monkeypatch.setattr(referral_codes.UsersRepo, "try_assign_referral_code", _lost_race)

    assert await referral_codes.ensure_referral_code(user_id=4) == "WINNER22"


@pytest.mark.asyncio
async def test_backfill_continues_past_exhausted_user(monkeypatch) -> None:
    monkeypatch.setattr(referral_codes, "SessionLocal", _FakeSessionLocal())
    pages = [[1, 2, 3], [5], []]
    cursors: list[int | None] = []
    ensured: list[int] = []

    async def _fake_list_ids(session, *, after_user_id: int | None, limit: int) -> list[int]:
        assert limit == 3
        cursors.append(after_user_id)
        return pages.pop(0)

    async def _fake_ensure(*, user_id: int) -> str:
        ensured.append(user_id)
        if user_id == 2:
            raise ReferralCodeExhaustedError(user_id=user_id, attempts=3)
        return f"CODE{user_id:04d}"

    monkeypatch.setattr(
        referral_codes.UsersRepo, "list_ids_missing_referral_code", _fake_list_ids
    )
    monkeypatch.setattr(referral_codes, "ensure_referral_code", _fake_ensure)

    result = await referral_codes.backfill_missing_referral_codes(batch_size=3)

    assert result == ReferralCodeBackfillResult(examined=4, assigned=3, failed=1)
    assert ensured == [1, 2, 3, 5]
    assert cursors == [None, 3, 5]


@pytest.mark.asyncio
async def test_backfill_counts_database_error_as_failed_and_continues(monkeypatch) -> None:
    monkeypatch.setattr(referral_codes, "SessionLocal", _FakeSessionLocal())
    pages = [[10, 11], []]
    ensured: list[int] = []

    async def _fake_list_ids(session, *, after_user_id: int | None, limit: int) -> list[int]:
        return pages.pop(0)

    async def _fake_ensure(*, user_id: int) -> str:
        ensured.append(user_id)
        if user_id == 10:
            raise OperationalError("UPDATE users ...", {}, Exception("connection reset"))
        return "CODE0011"

    monkeypatch.setattr(
        referral_codes.UsersRepo, "list_ids_missing_referral_code", _fake_list_ids
    )
    monkeypatch.setattr(referral_codes, "ensure_referral_code", _fake_ensure)

    result = await referral_codes.backfill_missing_referral_codes(batch_size=2)

    assert result == ReferralCodeBackfillResult(examined=2, assigned=1, failed=1)
    assert ensured == [10, 11]
