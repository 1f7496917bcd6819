from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from reward_ledger.db.models.base import Base


class TutorialStep(Base):
    """Written by the onboarding tracker; only counted by the reward ledger."""

    __tablename__ = "tutorial_steps"
    __table_args__ = (
        UniqueConstraint("user_id", "step_id", name="uq_tutorial_steps_user_step"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    step_id: Mapped[str] = mapped_column(String(64), nullable=False)
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
