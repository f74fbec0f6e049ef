"""working hours

Revision ID: 8e5d07c41b2a
Revises: 3c1f6a2b9d40
Create Date: 2026-10-19 15:40:02.118734

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "8e5d07c41b2a"
down_revision: Union[str, Sequence[str], None] = "3c1f6a2b9d40"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Add weekly register hours and per-weekday employee availability."""
    op.create_table(
        "register_working_hours",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("register_id", sa.String(length=32), nullable=False),
        sa.Column("weekday", sa.Integer(), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False),
        sa.Column("start", sa.Time(), nullable=False),
        sa.Column("end", sa.Time(), nullable=False),
        sa.ForeignKeyConstraint(["register_id"], ["register.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("register_id", "weekday", name="uq_register_working_hours_register_weekday"),
    )
    op.create_index("ix_register_working_hours_register_id", "register_working_hours", ["register_id"])

    op.create_table(
        "employee_workday",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("employee_id", sa.String(length=32), nullable=False),
        sa.Column("register_id", sa.String(length=32), nullable=False),
        sa.Column("weekday", sa.Integer(), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["employee_id"], ["employee.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["register_id"], ["register.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "employee_id",
            "register_id",
            "weekday",
            name="uq_employee_workday_employee_register_weekday",
        ),
    )
    op.create_index("ix_employee_workday_employee_id", "employee_workday", ["employee_id"])


def downgrade() -> None:
    """Drop the working hour tables."""
    op.drop_index("ix_employee_workday_employee_id", table_name="employee_workday")
    op.drop_table("employee_workday")
    op.drop_index("ix_register_working_hours_register_id", table_name="register_working_hours")
    op.drop_table("register_working_hours")
