from __future__ import annotations

import pytest

from reward_ledger.economy.credits.service import verify_ledger_chain
from reward_ledger.economy.rewards import service as rewards_service
from reward_ledger.economy.rewards.service import RewardGrantService
from tests.integration.ledger_fixtures import (
    _count_reward_events,
    _create_user,
    _get_credits,
    _list_transactions,
    _seed_credits,
)


@pytest.mark.asyncio
async def test_repeated_grant_pays_exactly_once() -> None:
    await _create_user(1)
    await _create_user(2)
    await _seed_credits(1, messages_remaining=10, total_used=40)

    kwargs = {
        "user_id": 1,
        "reward_type": "referral_signup",
        "credits": 50,
        "related_user_id": 2,
        "description": "Referral signup bonus",
    }
    first = await RewardGrantService.grant_reward(**kwargs)
    second = await RewardGrantService.grant_reward(**kwargs)

    assert (first, second) == (True, False)
    assert await _count_reward_events(user_id=1) == 1

    credits = await _get_credits(1)
    assert credits is not None
    assert credits.messages_remaining == 60
    assert credits.total_granted == 100
    assert credits.total_used == 40

    transactions = await _list_transactions(1)
    assert len(transactions) == 1
    assert transactions[0].messages_change == 50
    assert transactions[0].balance_before == 10
    assert transactions[0].balance_after == 60
    assert transactions[0].type == "referral_reward"
    assert transactions[0].metadata_ == {
        "source": "referral",
        "reward_type": "referral_signup",
        "related_user_id": 2,
    }


@pytest.mark.asyncio
async def test_same_type_for_different_related_users_pays_each() -> None:
    for user_id in (1, 2, 3):
        await _create_user(user_id)

    for related_user_id in (2, 3):
        assert await RewardGrantService.grant_reward(
            user_id=1,
            reward_type="referral_signup",
            credits=50,
            related_user_id=related_user_id,
            description="Referral signup bonus",
        )

    credits = await _get_credits(1)
    assert credits is not None
    assert credits.messages_remaining == 150
    transactions = await _list_transactions(1)
    assert [t.balance_after for t in transactions] == [100, 150]
    assert verify_ledger_chain(transactions) is True


@pytest.mark.asyncio
async def test_zero_credit_grant_leaves_storage_untouched() -> None:
    await _create_user(1)
    await _create_user(2)

    granted = await RewardGrantService.grant_reward(
        user_id=1,
        reward_type="referral_signup",
        credits=0,
        related_user_id=2,
        description="Referral signup bonus",
    )

    assert granted is False
    assert await _count_reward_events() == 0
    assert await _get_credits(1) is None
    assert await _list_transactions(1) == []


@pytest.mark.asyncio
async def test_first_grant_creates_balance_from_initial_allotment() -> None:
    await _create_user(5)
    await _create_user(6)

    granted = await RewardGrantService.grant_reward(
        user_id=5,
        reward_type="referral_signup_bonus",
        credits=20,
        related_user_id=6,
        description="Welcome referral bonus",
    )

    assert granted is True
    credits = await _get_credits(5)
    assert credits is not None
    assert credits.messages_remaining == 70
    assert credits.total_granted == 70
    assert credits.total_used == 0

    transactions = await _list_transactions(5)
    assert len(transactions) == 1
    assert (transactions[0].balance_before, transactions[0].balance_after) == (50, 70)


@pytest.mark.asyncio
async def test_failed_credit_step_rolls_back_reward_event(monkeypatch) -> None:
    await _create_user(1)
    await _create_user(2)

    async def _failing_apply_credit(session, **kwargs):
        raise RuntimeError("connection lost")

    monkeypatch.setattr(rewards_service.CreditLedgerService, "apply_credit", _failing_apply_credit)

    with pytest.raises(RuntimeError):
        await RewardGrantService.grant_reward(
            user_id=1,
            reward_type="referral_signup",
            credits=50,
            related_user_id=2,
            description="Referral signup bonus",
        )

    assert await _count_reward_events() == 0

    monkeypatch.undo()
    assert await RewardGrantService.grant_reward(
        user_id=1,
        reward_type="referral_signup",
        credits=50,
        related_user_id=2,
        description="Referral signup bonus",
    )
    credits = await _get_credits(1)
    assert credits is not None
    assert credits.messages_remaining == 100
