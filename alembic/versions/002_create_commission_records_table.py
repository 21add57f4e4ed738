"""create commission records table

Revision ID: 002
Revises: 001
Create Date: 2026-09-07 10:30:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Detect database type for CHECK constraint syntax
    bind = op.get_bind()
    dialect_name = bind.dialect.name

    # Use database-specific syntax for CHECK constraint
    if dialect_name == "sqlite":
        # SQLite uses strftime for date extraction
        first_of_month_check = "CAST(strftime('%d', period) AS INTEGER) = 1"
    else:
        # PostgreSQL and other databases use EXTRACT
        first_of_month_check = "EXTRACT(DAY FROM period) = 1"

    # Create commission_records table
    op.create_table(
        "commission_records",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("employee_id", sa.String(length=64), nullable=False),
        sa.Column("period", sa.Date(), nullable=False),
        # Plain column, no foreign key: records outlive the policy they were computed with
        sa.Column("policy_code", sa.String(length=64), nullable=False),
        sa.Column("snap_standard_target", sa.BigInteger(), nullable=False),
        sa.Column("snap_advanced_target", sa.BigInteger(), nullable=False),
        sa.Column("snap_tier1_percent", sa.Numeric(7, 4), nullable=False),
        sa.Column("snap_tier2_percent", sa.Numeric(7, 4), nullable=False),
        sa.Column("snap_tier3_percent", sa.Numeric(7, 4), nullable=False),
        sa.Column("actual_revenue", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("manual_adjustment", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("tier1_revenue", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("tier2_revenue", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("tier3_revenue", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("tier1_commission", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("tier2_commission", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("tier3_commission", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("total_commission", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("locked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="DRAFT"),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        # Unique constraint: one record per employee and month
        # Since period is always the first of the month, this enforces uniqueness per employee+month+year
        sa.UniqueConstraint("employee_id", "period", name="uq_commission_records_employee_period"),
        # CHECK constraint: ensure period is always the first of the month
        sa.CheckConstraint(
            first_of_month_check,
            name="ck_commission_records_period_first_of_month"
        ),
        sa.CheckConstraint(
            "status IN ('DRAFT', 'FINALIZED')",
            name="ck_commission_records_status"
        ),
        # CHECK constraints: tier amounts are never negative and the total is their sum
        sa.CheckConstraint(
            "tier1_revenue >= 0 AND tier2_revenue >= 0 AND tier3_revenue >= 0",
            name="ck_commission_records_tier_revenue_non_negative"
        ),
        sa.CheckConstraint(
            "total_commission = tier1_commission + tier2_commission + tier3_commission",
            name="ck_commission_records_total_is_sum"
        ),
    )
    op.create_index("ix_commission_records_id", "commission_records", ["id"], unique=False)
    op.create_index("ix_commission_records_employee_id", "commission_records", ["employee_id"], unique=False)
    op.create_index("ix_commission_records_period", "commission_records", ["period"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_commission_records_period", table_name="commission_records")
    op.drop_index("ix_commission_records_employee_id", table_name="commission_records")
    op.drop_index("ix_commission_records_id", table_name="commission_records")
    op.drop_table("commission_records")
