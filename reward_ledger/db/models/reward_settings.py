from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from reward_ledger.db.models.base import Base


class RewardSetting(Base):
    __tablename__ = "reward_settings"
    __table_args__ = (CheckConstraint("value >= 0", name="ck_reward_settings_value_non_negative"),)

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
