from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, Field

from reward_ledger.core.config import get_settings
from reward_ledger.db.session import SessionLocal
from reward_ledger.economy.credits.service import CreditLedgerService, verify_ledger_chain
from reward_ledger.economy.rewards.errors import RewardSettingValueError
from reward_ledger.economy.rewards.settings import RewardSettingsService
from reward_ledger.economy.rewards.types import RewardSettingView
from reward_ledger.services.internal_auth import (
    extract_client_ip,
    is_client_ip_allowed,
    is_internal_request_authenticated,
)

router = APIRouter(tags=["internal", "rewards"])
logger = structlog.get_logger(__name__)


class RewardSettingResponse(BaseModel):
    key: str
    value: int = Field(ge=0)
    is_default: bool
    updated_at: datetime | None = None


class RewardSettingsListResponse(BaseModel):
    items: list[RewardSettingResponse]


class RewardSettingUpdateRequest(BaseModel):
    # Bounds are checked by the settings service so the error code stays stable.
    value: int


class CreditTransactionResponse(BaseModel):
    id: int
    type: str
    messages_change: int
    balance_before: int
    balance_after: int
    description: str | None
    metadata: dict[str, Any]
    created_at: datetime


class CreditBalanceResponse(BaseModel):
    user_id: int
    messages_remaining: int
    total_granted: int
    total_used: int
    ledger_consistent: bool
    transactions: list[CreditTransactionResponse]


def _assert_internal_access(request: Request) -> None:
    settings = get_settings()
    client_ip = extract_client_ip(
        request,
        trusted_proxies=getattr(settings, "internal_api_trusted_proxies", ""),
    )

    if not is_client_ip_allowed(client_ip=client_ip, allowlist=settings.internal_api_allowlist):
        logger.warning("internal_rewards_auth_failed", reason="ip_not_allowed", client_ip=client_ip)
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})

    if not is_internal_request_authenticated(
        request,
        expected_token=settings.internal_api_token,
    ):
        logger.warning(
            "internal_rewards_auth_failed",
            reason="invalid_credentials",
            client_ip=client_ip,
        )
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})


def _as_setting_response(view: RewardSettingView) -> RewardSettingResponse:
    return RewardSettingResponse(
        key=view.key,
        value=view.value,
        is_default=view.is_default,
        updated_at=view.updated_at,
    )


@router.get("/internal/rewards/settings", response_model=RewardSettingsListResponse)
async def list_reward_settings(request: Request) -> RewardSettingsListResponse:
    _assert_internal_access(request)

    async with SessionLocal() as session:
        views = await RewardSettingsService.get_all(session)
    return RewardSettingsListResponse(items=[_as_setting_response(view) for view in views])


@router.put("/internal/rewards/settings/{key}", response_model=RewardSettingResponse)
async def update_reward_setting(
    key: str,
    payload: RewardSettingUpdateRequest,
    request: Request,
) -> RewardSettingResponse:
    _assert_internal_access(request)

    try:
        async with SessionLocal.begin() as session:
            view = await RewardSettingsService.set_value(
                session,
                key=key,
                value=payload.value,
                now_utc=datetime.now(timezone.utc),
            )
    except RewardSettingValueError as exc:
        raise HTTPException(
            status_code=422,
            detail={"code": "E_REWARD_SETTING_INVALID"},
        ) from exc
    return _as_setting_response(view)


@router.get("/internal/credits/{user_id}", response_model=CreditBalanceResponse)
async def get_user_credits(
    user_id: int,
    request: Request,
    limit: int = Query(default=100, ge=1, le=1000),
) -> CreditBalanceResponse:
    _assert_internal_access(request)

    async with SessionLocal() as session:
        balance = await CreditLedgerService.get_balance(session, user_id=user_id)
        if balance is None:
            raise HTTPException(status_code=404, detail={"code": "E_CREDITS_NOT_FOUND"})
        transactions = await CreditLedgerService.list_transactions(
            session,
            user_id=user_id,
            limit=limit,
        )

    return CreditBalanceResponse(
        user_id=user_id,
        messages_remaining=balance.messages_remaining,
        total_granted=balance.total_granted,
        total_used=balance.total_used,
        ledger_consistent=verify_ledger_chain(transactions),
        transactions=[
            CreditTransactionResponse(
                id=transaction.id,
                type=transaction.type,
                messages_change=transaction.messages_change,
                balance_before=transaction.balance_before,
                balance_after=transaction.balance_after,
                description=transaction.description,
                metadata=transaction.metadata,
                created_at=transaction.created_at,
            )
            for transaction in transactions
        ],
    )
