"""initial schema: transactions and savings goals

Revision ID: 202610190900
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "202610190900"
down_revision = None
branch_labels = None
depends_on = None


GOAL_CATEGORIES = (
    "Emergency Fund",
    "Vacation",
    "House",
    "Car",
    "Education",
    "Wedding",
    "Retirement",
    "Other",
)


def upgrade() -> None:
    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("amount_cents > 0", name="ck_transactions_amount_positive"),
    )
    op.create_index("ix_transactions_user_date", "transactions", ["user_id", "date"])
    op.create_index(
        "ix_transactions_user_category", "transactions", ["user_id", "category"]
    )

    op.create_table(
        "savings_goals",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column(
            "category", sa.Enum(*GOAL_CATEGORIES, name="goalcategory"), nullable=False
        ),
        sa.Column(
            "saved_amount_cents", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("target_amount_cents", sa.Integer(), nullable=False),
        sa.Column("target_date", sa.Date(), nullable=False),
        sa.Column(
            "priority",
            sa.Enum("High", "Medium", "Low", name="goalpriority"),
            nullable=False,
            server_default="Medium",
        ),
        sa.Column(
            "status",
            sa.Enum("Active", "Completed", "Paused", name="goalstatus"),
            nullable=False,
            server_default="Active",
        ),
        sa.Column(
            "reminder_frequency",
            sa.Enum("Weekly", "Monthly", name="reminderfrequency"),
            nullable=False,
            server_default="Monthly",
        ),
        sa.Column(
            "milestone_alerts", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        sa.Column(
            "target_date_reminder",
            sa.Boolean(),
            nullable=False,
            server_default=sa.true(),
        ),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "saved_amount_cents >= 0", name="ck_savings_goals_saved_non_negative"
        ),
        sa.CheckConstraint(
            "target_amount_cents > 0", name="ck_savings_goals_target_positive"
        ),
    )
    op.create_index(
        "ix_savings_goals_user_status", "savings_goals", ["user_id", "status"]
    )
    op.create_index(
        "ix_savings_goals_user_created", "savings_goals", ["user_id", "created_at"]
    )


def downgrade() -> None:
    op.drop_index("ix_savings_goals_user_created", table_name="savings_goals")
    op.drop_index("ix_savings_goals_user_status", table_name="savings_goals")
    op.drop_table("savings_goals")
    op.drop_index("ix_transactions_user_category", table_name="transactions")
    op.drop_index("ix_transactions_user_date", table_name="transactions")
    op.drop_table("transactions")
