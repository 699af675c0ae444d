"""Booking core schema.

Revision ID: 001_booking_core
Revises:
Create Date: 2026-10-18
"""
from __future__ import annotations

from pathlib import Path

from alembic import op

revision = "001_booking_core"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    sql_path = Path(__file__).resolve().parents[1] / "sql" / "001_booking_core.sql"
    sql = sql_path.read_text(encoding="utf-8")
    conn = op.get_bind()
    conn.exec_driver_sql(sql)


def downgrade() -> None:
    conn = op.get_bind()
    conn.exec_driver_sql(
        """
        DROP TABLE IF EXISTS outbox_events;
        DROP TABLE IF EXISTS pending_refunds;
        DROP TABLE IF EXISTS payments;
        DROP TABLE IF EXISTS reservations;
        DROP TABLE IF EXISTS rooms;
        DROP TYPE IF EXISTS booking_status;
        """
    )
