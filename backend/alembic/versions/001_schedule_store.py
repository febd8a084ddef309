"""Initial migration: create schedulerecord and matchresultrecord tables

Revision ID: 001_schedule_store
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_schedule_store"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create schedulerecord table
    op.create_table(
        "schedulerecord",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("schedule_id", sa.String(length=64), nullable=False),
        sa.Column("event_id", sa.String(), nullable=False),
        sa.Column("competition_mode", sa.String(), nullable=False),
        sa.Column("published", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("published_at", sa.DateTime(), nullable=True),
        sa.Column("generated_at", sa.DateTime(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_schedulerecord_schedule_id", "schedulerecord", ["schedule_id"], unique=True)
    op.create_index("ix_schedulerecord_event_id", "schedulerecord", ["event_id"])

    # Create matchresultrecord table (append-only match history)
    op.create_table(
        "matchresultrecord",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("schedule_record_id", sa.Integer(), nullable=False),
        sa.Column("category_id", sa.String(), nullable=False),
        sa.Column("match_id", sa.String(), nullable=True),
        sa.Column("winner_id", sa.String(), nullable=False),
        sa.Column("loser_id", sa.String(), nullable=True),
        sa.Column("filter_number", sa.Integer(), nullable=False),
        sa.Column("submitted_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["schedule_record_id"], ["schedulerecord.id"]),
    )
    op.create_index("ix_matchresultrecord_schedule_record_id", "matchresultrecord", ["schedule_record_id"])
    op.create_index("ix_matchresultrecord_category_id", "matchresultrecord", ["category_id"])


def downgrade() -> None:
    op.drop_index("ix_matchresultrecord_category_id", table_name="matchresultrecord")
    op.drop_index("ix_matchresultrecord_schedule_record_id", table_name="matchresultrecord")
    op.drop_table("matchresultrecord")
    op.drop_index("ix_schedulerecord_event_id", table_name="schedulerecord")
    op.drop_index("ix_schedulerecord_schedule_id", table_name="schedulerecord")
    op.drop_table("schedulerecord")
