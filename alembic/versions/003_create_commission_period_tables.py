"""create commission period events and month guards tables

Revision ID: 003
Revises: 002
Create Date: 2026-09-08 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Audit trail of lock/unlock transitions (append-only)
    op.create_table(
        "commission_period_events",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("period", sa.Date(), nullable=False),
        sa.Column("action", sa.String(length=16), nullable=False),
        sa.Column("actor", sa.String(length=255), nullable=False),
        sa.Column("record_count", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "action IN ('LOCK', 'UNLOCK')",
            name="ck_commission_period_events_action"
        ),
    )
    op.create_index("ix_commission_period_events_id", "commission_period_events", ["id"], unique=False)
    op.create_index("ix_commission_period_events_period", "commission_period_events", ["period"], unique=False)

    # One mutex row per month, taken by sync/lock/unlock before touching records
    op.create_table(
        "commission_month_guards",
        sa.Column("period", sa.Date(), nullable=False),
        sa.Column("last_acquired_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("period"),
    )


def downgrade() -> None:
    op.drop_table("commission_month_guards")
    op.drop_index("ix_commission_period_events_period", table_name="commission_period_events")
    op.drop_index("ix_commission_period_events_id", table_name="commission_period_events")
    op.drop_table("commission_period_events")
