"""Initial migration: create unit, zone, dining_table, table_combination,
seating_settings, reservation, reservation_override, allocation_log tables

Revision ID: 001_initial_seating
Revises:
Create Date: 2026-03-01 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial_seating"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "unit",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("timezone", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "zone",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("unit_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False),
        sa.Column("state", sa.String(), nullable=False),
        sa.Column("is_emergency", sa.Boolean(), nullable=False),
        sa.Column("type", sa.String(), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["unit_id"], ["unit.id"]),
    )
    op.create_index("ix_zone_unit_id", "zone", ["unit_id"])

    op.create_table(
        "dining_table",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("unit_id", sa.String(), nullable=False),
        sa.Column("zone_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("capacity_min", sa.Integer(), nullable=False),
        sa.Column("capacity_max", sa.Integer(), nullable=False),
        sa.Column("state", sa.String(), nullable=False),
        sa.Column("can_seat_solo", sa.Boolean(), nullable=False),
        sa.Column("can_combine", sa.Boolean(), nullable=False),
        sa.Column("table_group", sa.String(), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["unit_id"], ["unit.id"]),
        sa.ForeignKeyConstraint(["zone_id"], ["zone.id"]),
    )
    op.create_index("ix_dining_table_unit_id", "dining_table", ["unit_id"])
    op.create_index("ix_dining_table_zone_id", "dining_table", ["zone_id"])

    op.create_table(
        "table_combination",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("unit_id", sa.String(), nullable=False),
        sa.Column("table_ids", sa.JSON(), nullable=True),
        sa.Column("state", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["unit_id"], ["unit.id"]),
    )
    op.create_index("ix_table_combination_unit_id", "table_combination", ["unit_id"])

    op.create_table(
        "seating_settings",
        sa.Column("unit_id", sa.String(), nullable=False),
        sa.Column("data", sa.JSON(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("unit_id"),
        sa.ForeignKeyConstraint(["unit_id"], ["unit.id"]),
    )

    op.create_table(
        "reservation",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("unit_id", sa.String(), nullable=False),
        sa.Column("start_time", sa.DateTime(), nullable=True),
        sa.Column("end_time", sa.DateTime(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("party_size", sa.Integer(), nullable=False),
        sa.Column("assigned_table_ids", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["unit_id"], ["unit.id"]),
    )
    op.create_index("ix_reservation_unit_id", "reservation", ["unit_id"])
    op.create_index("ix_reservation_start_time", "reservation", ["start_time"])

    op.create_table(
        "reservation_override",
        sa.Column("reservation_id", sa.String(), nullable=False),
        sa.Column("unit_id", sa.String(), nullable=False),
        sa.Column("forced_zone_id", sa.String(), nullable=True),
        sa.Column("forced_table_ids", sa.JSON(), nullable=True),
        sa.Column("note", sa.String(), nullable=True),
        sa.Column("updated_by", sa.String(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("reservation_id"),
        sa.ForeignKeyConstraint(["unit_id"], ["unit.id"]),
    )
    op.create_index("ix_reservation_override_unit_id", "reservation_override", ["unit_id"])

    op.create_table(
        "allocation_log",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("unit_id", sa.String(), nullable=False),
        sa.Column("doc_key", sa.String(), nullable=False),
        sa.Column("kind", sa.String(), nullable=False),
        sa.Column("booking_id", sa.String(), nullable=True),
        sa.Column("booking_start_time", sa.DateTime(), nullable=False),
        sa.Column("booking_end_time", sa.DateTime(), nullable=False),
        sa.Column("party_size", sa.Integer(), nullable=False),
        sa.Column("selected_zone_id", sa.String(), nullable=True),
        sa.Column("selected_table_ids", sa.JSON(), nullable=True),
        sa.Column("reason", sa.String(), nullable=True),
        sa.Column("allocation_mode", sa.String(), nullable=True),
        sa.Column("allocation_strategy", sa.String(), nullable=True),
        sa.Column("snapshot", sa.JSON(), nullable=True),
        sa.Column("algo_version", sa.String(), nullable=True),
        sa.Column("event_id", sa.String(length=64), nullable=True),
        sa.Column("source", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["unit_id"], ["unit.id"]),
        sa.UniqueConstraint("unit_id", "doc_key", name="uq_allocation_log_doc_key"),
    )
    op.create_index("ix_allocation_log_unit_id", "allocation_log", ["unit_id"])
    op.create_index("ix_allocation_log_booking_id", "allocation_log", ["booking_id"])


def downgrade() -> None:
    op.drop_table("allocation_log")
    op.drop_table("reservation_override")
    op.drop_table("reservation")
    op.drop_table("seating_settings")
    op.drop_table("table_combination")
    op.drop_table("dining_table")
    op.drop_table("zone")
    op.drop_table("unit")
