"""reward_ledger_initial

Revision ID: 5d2e8a7c1b40
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5d2e8a7c1b40"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

APPEND_ONLY_TABLES = ("reward_events", "credit_transactions")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("referral_code", sa.String(16), nullable=True),
        sa.Column("referred_by_user_id", sa.BigInteger(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.ForeignKeyConstraint(["referred_by_user_id"], ["users.id"]),
        sa.UniqueConstraint("referral_code", name="uq_users_referral_code"),
        sa.CheckConstraint(
            "referred_by_user_id IS NULL OR referred_by_user_id <> id",
            name="ck_users_no_self_referral",
        ),
    )
    op.create_index("idx_users_referred_by", "users", ["referred_by_user_id"])
    op.create_index(
        "idx_users_missing_referral_code",
        "users",
        ["id"],
        postgresql_where=sa.text("referral_code IS NULL"),
    )

    op.create_table(
        "reward_settings",
        sa.Column("key", sa.String(64), primary_key=True),
        sa.Column("value", sa.Integer(), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.CheckConstraint("value >= 0", name="ck_reward_settings_value_non_negative"),
    )

    op.create_table(
        "reward_events",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("credits_awarded", sa.Integer(), nullable=False),
        sa.Column("related_user_id", sa.BigInteger(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["related_user_id"], ["users.id"]),
        sa.UniqueConstraint(
            "user_id",
            "type",
            "related_user_id",
            name="uq_reward_events_user_type_related",
        ),
        sa.CheckConstraint("credits_awarded > 0", name="ck_reward_events_credits_positive"),
    )
    op.create_index("idx_reward_events_related_user", "reward_events", ["related_user_id"])

    op.create_table(
        "user_credits",
        sa.Column("user_id", sa.BigInteger(), primary_key=True),
        sa.Column("messages_remaining", sa.Integer(), nullable=False),
        sa.Column("total_granted", sa.Integer(), nullable=False),
        sa.Column("total_used", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.CheckConstraint(
            "messages_remaining >= 0",
            name="ck_user_credits_messages_remaining_non_negative",
        ),
        sa.CheckConstraint("total_granted >= 0", name="ck_user_credits_total_granted_non_negative"),
        sa.CheckConstraint("total_used >= 0", name="ck_user_credits_total_used_non_negative"),
    )

    op.create_table(
        "credit_transactions",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("messages_change", sa.Integer(), nullable=False),
        sa.Column("balance_before", sa.Integer(), nullable=False),
        sa.Column("balance_after", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("clock_timestamp()"),
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.CheckConstraint(
            "balance_after = balance_before + messages_change",
            name="ck_credit_transactions_balance_delta",
        ),
    )
    op.create_index(
        "idx_credit_transactions_user_created",
        "credit_transactions",
        ["user_id", "created_at", "id"],
    )
    op.create_index("idx_credit_transactions_type", "credit_transactions", ["type"])

    op.create_table(
        "tutorial_steps",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("step_id", sa.String(64), nullable=False),
        sa.Column(
            "completed_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.UniqueConstraint("user_id", "step_id", name="uq_tutorial_steps_user_step"),
    )

    for table_name in APPEND_ONLY_TABLES:
        op.execute(
            f"""
            CREATE OR REPLACE FUNCTION fn_{table_name}_append_only()
            RETURNS trigger
            LANGUAGE plpgsql
            AS $$
            BEGIN
                RAISE EXCEPTION '{table_name} is append-only';
            END;
            $$;
            """
        )
        op.execute(
            f"""
            CREATE TRIGGER trg_{table_name}_append_only
            BEFORE UPDATE OR DELETE ON {table_name}
            FOR EACH ROW
            EXECUTE FUNCTION fn_{table_name}_append_only();
            """
        )


def downgrade() -> None:
    for table_name in APPEND_ONLY_TABLES:
        op.execute(f"DROP TRIGGER IF EXISTS trg_{table_name}_append_only ON {table_name};")
        op.execute(f"DROP FUNCTION IF EXISTS fn_{table_name}_append_only();")

    op.drop_table("tutorial_steps")
    op.drop_index("idx_credit_transactions_type", table_name="credit_transactions")
    op.drop_index("idx_credit_transactions_user_created", table_name="credit_transactions")
    op.drop_table("credit_transactions")
    op.drop_table("user_credits")
    op.drop_index("idx_reward_events_related_user", table_name="reward_events")
    op.drop_table("reward_events")
    op.drop_table("reward_settings")
    op.drop_index("idx_users_missing_referral_code", table_name="users")
    op.drop_index("idx_users_referred_by", table_name="users")
    op.drop_table("users")
