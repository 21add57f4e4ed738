"""create commission policies table

Revision ID: 001
Revises:
Create Date: 2026-09-07 10:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create commission_policies table
    op.create_table(
        "commission_policies",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("standard_target", sa.BigInteger(), nullable=False),
        sa.Column("advanced_target", sa.BigInteger(), nullable=False),
        sa.Column("tier1_percent", sa.Numeric(7, 4), nullable=False),
        sa.Column("tier2_percent", sa.Numeric(7, 4), nullable=False),
        sa.Column("tier3_percent", sa.Numeric(7, 4), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
        # CHECK constraints: targets non-negative and ordered, percents in [0, 100]
        sa.CheckConstraint(
            "standard_target >= 0",
            name="ck_commission_policies_standard_target_non_negative"
        ),
        sa.CheckConstraint(
            "advanced_target >= standard_target",
            name="ck_commission_policies_advanced_target_ordered"
        ),
        sa.CheckConstraint(
            "tier1_percent >= 0 AND tier1_percent <= 100",
            name="ck_commission_policies_tier1_percent_range"
        ),
        sa.CheckConstraint(
            "tier2_percent >= 0 AND tier2_percent <= 100",
            name="ck_commission_policies_tier2_percent_range"
        ),
        sa.CheckConstraint(
            "tier3_percent >= 0 AND tier3_percent <= 100",
            name="ck_commission_policies_tier3_percent_range"
        ),
    )
    op.create_index("ix_commission_policies_id", "commission_policies", ["id"], unique=False)
    op.create_index("ix_commission_policies_code", "commission_policies", ["code"], unique=False)

    # Insert the default sales policies
    op.execute(
        sa.text(
            "INSERT INTO commission_policies "
            "(code, name, standard_target, advanced_target, tier1_percent, tier2_percent, tier3_percent) VALUES "
            "('SALES_MEMBER', 'Sales Member', 500000000, 800000000, 1.0, 1.5, 2.5), "
            "('SALES_LEADER', 'Sales Team Leader', 2000000000, 3500000000, 0.5, 0.8, 1.2), "
            "('SALES_DIRECTOR', 'Sales Director', 5000000000, 8000000000, 0.2, 0.4, 0.6)"
        )
    )


def downgrade() -> None:
    op.drop_index("ix_commission_policies_code", table_name="commission_policies")
    op.drop_index("ix_commission_policies_id", table_name="commission_policies")
    op.drop_table("commission_policies")
