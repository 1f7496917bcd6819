from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from reward_ledger.economy.rewards import service as rewards_service
from reward_ledger.economy.rewards.service import RewardGrantService


class _FakeTransaction:
    def __init__(self, session: object) -> None:
        self._session = session

    async def __aenter__(self) -> object:
        return self._session

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


class _FakeSessionLocal:
    def __init__(self) -> None:
        self.session = object()
        self.begin_calls = 0

    def begin(self) -> _FakeTransaction:
        self.begin_calls += 1
        return _FakeTransaction(self.session)


def _grant_kwargs(**overrides) -> dict[str, object]:
    kwargs: dict[str, object] = {
        "user_id": 9,
        "reward_type": "referral_signup",
        "credits": 10,
        "related_user_id": 7,
        "description": "Referral signup bonus",
    }
    kwargs.update(overrides)
    return kwargs


@pytest.mark.asyncio
@pytest.mark.parametrize("credits", [0, -1])
async def test_grant_reward_non_positive_amount_does_not_touch_storage(
    monkeypatch,
    credits: int,
) -> None:
    session_local = _FakeSessionLocal()
    monkeypatch.setattr(rewards_service, "SessionLocal", session_local)

    granted = await RewardGrantService.grant_reward(**_grant_kwargs(credits=credits))

    assert granted is False
    assert session_local.begin_calls == 0


@pytest.mark.asyncio
async def test_grant_reward_returns_false_when_event_already_exists(monkeypatch) -> None:
    session_local = _FakeSessionLocal()
    monkeypatch.setattr(rewards_service, "SessionLocal", session_local)

    async def _fake_try_create(session, **kwargs) -> bool:
        return False

    async def _unexpected_apply_credit(*args, **kwargs):
        raise AssertionError("balance must not change for a duplicate reward")

    monkeypatch.setattr(rewards_service.RewardEventsRepo, "try_create", _fake_try_create)
    monkeypatch.setattr(
        rewards_service.CreditLedgerService, "apply_credit", _unexpected_apply_credit
    )

    granted = await RewardGrantService.grant_reward(**_grant_kwargs())

    assert granted is False
    assert session_local.begin_calls == 1


@pytest.mark.asyncio
async def test_grant_reward_records_event_then_credits_in_one_transaction(monkeypatch) -> None:
    session_local = _FakeSessionLocal()
    monkeypatch.setattr(rewards_service, "SessionLocal", session_local)
    calls: list[tuple[str, object, dict[str, object]]] = []

    async def _fake_try_create(session, **kwargs) -> bool:
        calls.append(("event", session, kwargs))
        return True

    async def _fake_apply_credit(session, **kwargs):
        calls.append(("credit", session, kwargs))

    monkeypatch.setattr(rewards_service.RewardEventsRepo, "try_create", _fake_try_create)
    monkeypatch.setattr(rewards_service.CreditLedgerService, "apply_credit", _fake_apply_credit)

    granted = await RewardGrantService.grant_reward(**_grant_kwargs())

    assert granted is True
    assert session_local.begin_calls == 1
    assert [name for name, _, _ in calls] == ["event", "credit"]
    assert all(session is session_local.session for _, session, _ in calls)

    event_kwargs = calls[0][2]
    assert event_kwargs["user_id"] == 9
    assert event_kwargs["reward_type"] == "referral_signup"
    assert event_kwargs["credits_awarded"] == 10
    assert event_kwargs["related_user_id"] == 7

    credit_kwargs = calls[1][2]
    assert credit_kwargs["user_id"] == 9
    assert credit_kwargs["credits"] == 10
    assert credit_kwargs["transaction_type"] == "referral_reward"
    assert credit_kwargs["description"] == "Referral signup bonus"
    assert credit_kwargs["metadata"] == {
        "source": "referral",
        "reward_type": "referral_signup",
        "related_user_id": 7,
    }
    assert credit_kwargs["now_utc"] == event_kwargs["now_utc"]


@pytest.mark.asyncio
async def test_grant_reward_propagates_storage_errors(monkeypatch) -> None:
    monkeypatch.setattr(rewards_service, "SessionLocal", _FakeSessionLocal())

    async def _fake_try_create(session, **kwargs) -> bool:
        return True

    async def _failing_apply_credit(session, **kwargs):
        raise OperationalError("SELECT ... FOR UPDATE", {}, Exception("lock timeout"))

    monkeypatch.setattr(rewards_service.RewardEventsRepo, "try_create", _fake_try_create)
    monkeypatch.setattr(rewards_service.CreditLedgerService, "apply_credit", _failing_apply_credit)

    with pytest.raises(OperationalError):
        await RewardGrantService.grant_reward(**_grant_kwargs())
