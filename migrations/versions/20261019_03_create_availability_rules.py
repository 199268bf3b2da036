"""create availability rules

Revision ID: 20261019_03
Revises: 20261019_02
Create Date: 2026-10-19 10:20:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019_03"
down_revision: Union[str, None] = "20261019_02"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "availability_rules",
        sa.Column("id", sa.Integer(), sa.Identity(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("weekday", sa.SmallInteger(), nullable=True),
        sa.Column("specific_date", sa.Date(), nullable=True),
        sa.Column("windows", sa.JSON(), nullable=False, server_default="[]"),
        sa.Column("timezone", sa.String(length=64), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "weekday", name="uq_availability_rules_user_weekday"),
        sa.UniqueConstraint("user_id", "specific_date", name="uq_availability_rules_user_date"),
        sa.CheckConstraint(
            "(weekday IS NULL) <> (specific_date IS NULL)",
            name="ck_availability_rules_weekday_or_date",
        ),
        sa.CheckConstraint("weekday IS NULL OR weekday BETWEEN 0 AND 6", name="ck_availability_rules_weekday_range"),
    )
    op.create_index("ix_availability_rules_id", "availability_rules", ["id"], unique=False)
    op.create_index("ix_availability_rules_user_id", "availability_rules", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_availability_rules_user_id", table_name="availability_rules")
    op.drop_index("ix_availability_rules_id", table_name="availability_rules")
    op.drop_table("availability_rules")
