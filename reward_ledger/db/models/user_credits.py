from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Integer, text
from sqlalchemy.orm import Mapped, mapped_column

from reward_ledger.db.models.base import Base


class UserCredits(Base):
    __tablename__ = "user_credits"
    __table_args__ = (
        CheckConstraint(
            "messages_remaining >= 0",
            name="ck_user_credits_messages_remaining_non_negative",
        ),
        CheckConstraint("total_granted >= 0", name="ck_user_credits_total_granted_non_negative"),
        CheckConstraint("total_used >= 0", name="ck_user_credits_total_used_non_negative"),
    )

    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), primary_key=True)
    messages_remaining: Mapped[int] = mapped_column(Integer, nullable=False)
    total_granted: Mapped[int] = mapped_column(Integer, nullable=False)
    total_used: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
