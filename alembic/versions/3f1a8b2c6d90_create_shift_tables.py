"""Create employer, rate and shift tables

Revision ID: 3f1a8b2c6d90
Revises:
Create Date: 2025-01-01 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f1a8b2c6d90"
down_revision = None
branch_labels = None
depends_on = None

CALCULATED_COLUMNS = (
    "regular_hours",
    "overtime_hours1",
    "overtime_hours2",
    "total_hours",
    "regular_earnings",
    "overtime_earnings1",
    "overtime_earnings2",
    "total_earnings",
)


def upgrade() -> None:
    op.create_table(
        "employer",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("color", sa.String(length=20), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "rate",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("employer_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("base_rate", sa.Float(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="ILS"),
        sa.ForeignKeyConstraint(["employer_id"], ["employer.id"]),
    )

    op.create_table(
        "shift",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("employer_id", sa.Integer(), nullable=False),
        sa.Column("rate_id", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("end_time", sa.DateTime(), nullable=False),
        sa.Column("break_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        *[
            sa.Column(name, sa.Float(), nullable=False, server_default="0")
            for name in CALCULATED_COLUMNS
        ],
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["employer_id"], ["employer.id"]),
        sa.ForeignKeyConstraint(["rate_id"], ["rate.id"]),
    )
    op.create_index("ix_shift_start_time", "shift", ["start_time"])
    op.create_index("ix_shift_employer_start_time", "shift", ["employer_id", "start_time"])


def downgrade() -> None:
    op.drop_index("ix_shift_employer_start_time", table_name="shift")
    op.drop_index("ix_shift_start_time", table_name="shift")
    op.drop_table("shift")
    op.drop_table("rate")
    op.drop_table("employer")
