"""initial schema

Revision ID: 3c1f6a2b9d40
Revises:
Create Date: 2026-10-19 09:12:44.481203

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c1f6a2b9d40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create retails, registers, employees, pairing tokens, terminals and attendance history."""
    op.create_table(
        "retail",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("tin", sa.String(length=16), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "register",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("retail_id", sa.String(length=32), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("allowed_radius_m", sa.Float(), nullable=False),
        sa.Column("max_local_devices", sa.Integer(), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["retail_id"], ["retail.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_register_retail_id", "register", ["retail_id"])

    op.create_table(
        "employee",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("retail_id", sa.String(length=32), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("phone", sa.Text(), nullable=True),
        sa.Column("position", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("device_id", sa.String(length=64), nullable=True),
        sa.Column("public_key", sa.LargeBinary(length=32), nullable=True),
        sa.Column("previous_public_key", sa.LargeBinary(length=32), nullable=True),
        sa.Column("previous_key_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paired_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["retail_id"], ["retail.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_employee_retail_id", "employee", ["retail_id"])
    op.create_index("ix_employee_device_id", "employee", ["device_id"])

    op.create_table(
        "employee_register",
        sa.Column("employee_id", sa.String(length=32), nullable=False),
        sa.Column("register_id", sa.String(length=32), nullable=False),
        sa.ForeignKeyConstraint(["employee_id"], ["employee.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["register_id"], ["register.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("employee_id", "register_id"),
    )

    op.create_table(
        "registration",
        sa.Column("token_id", sa.String(length=64), nullable=False),
        sa.Column("employee_id", sa.String(length=32), nullable=False),
        sa.Column("retail_id", sa.String(length=32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("consumed_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["employee_id"], ["employee.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["retail_id"], ["retail.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("token_id"),
    )
    op.create_index("ix_registration_employee_id", "registration", ["employee_id"])

    op.create_table(
        "local_device",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("register_id", sa.String(length=32), nullable=False),
        sa.Column("device_id", sa.String(length=128), nullable=False),
        sa.Column("label", sa.Text(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_seen_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["register_id"], ["register.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("device_id"),
    )
    op.create_index("ix_local_device_register_id", "local_device", ["register_id"])

    # No foreign keys: history must survive deletion of terminals and registers.
    op.create_table(
        "attendance_event",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("employee_id", sa.String(length=32), nullable=False),
        sa.Column("register_id", sa.String(length=32), nullable=False),
        sa.Column("retail_id", sa.String(length=32), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("distance_m", sa.Float(), nullable=True),
        sa.Column("local_device_id", sa.String(length=32), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_attendance_event_employee_id", "attendance_event", ["employee_id"])
    op.create_index("ix_attendance_event_register_id", "attendance_event", ["register_id"])
    op.create_index("ix_attendance_event_retail_id", "attendance_event", ["retail_id"])
    op.create_index("ix_attendance_event_timestamp", "attendance_event", ["timestamp"])

    op.create_table(
        "local_device_confirmation",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("event_id", sa.String(length=32), nullable=False),
        sa.Column("local_device_id", sa.String(length=32), nullable=False),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["event_id"], ["attendance_event.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("event_id"),
    )


def downgrade() -> None:
    """Drop the ShiftLink schema."""
    op.drop_table("local_device_confirmation")
    op.drop_index("ix_attendance_event_timestamp", table_name="attendance_event")
    op.drop_index("ix_attendance_event_retail_id", table_name="attendance_event")
    op.drop_index("ix_attendance_event_register_id", table_name="attendance_event")
    op.drop_index("ix_attendance_event_employee_id", table_name="attendance_event")
    op.drop_table("attendance_event")
    op.drop_index("ix_local_device_register_id", table_name="local_device")
    op.drop_table("local_device")
    op.drop_index("ix_registration_employee_id", table_name="registration")
    op.drop_table("registration")
    op.drop_table("employee_register")
    op.drop_index("ix_employee_device_id", table_name="employee")
    op.drop_index("ix_employee_retail_id", table_name="employee")
    op.drop_table("employee")
    op.drop_index("ix_register_retail_id", table_name="register")
    op.drop_table("register")
    op.drop_table("retail")
