from __future__ import annotations

from datetime import datetime
from typing import ClassVar

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from reward_ledger.db.models.base import Base


class RewardEvent(Base):
    """Permanent proof that a reward was paid; the idempotency key of the ledger."""

    __tablename__ = "reward_events"
    __append_only__: ClassVar[bool] = True
    __table_args__ = (
        CheckConstraint("credits_awarded > 0", name="ck_reward_events_credits_positive"),
        UniqueConstraint(
            "user_id",
            "type",
            "related_user_id",
            name="uq_reward_events_user_type_related",
        ),
        Index("idx_reward_events_related_user", "related_user_id"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    credits_awarded: Mapped[int] = mapped_column(Integer, nullable=False)
    # NOT NULL: a NULL here would escape the unique constraint.
    related_user_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("users.id"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
