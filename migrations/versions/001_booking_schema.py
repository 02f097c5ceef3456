"""Core booking schema.

Creates properties, room_classes, rooms (room_status enum), clients (unique
normalized email, cached VIP status) and reservations (reservation_status
enum). CHECK constraints mirror the reservation invariants enforced by the
engine: check-out after check-in, total <= original, discount in [0, 100],
guest count in [1, 20].

Revision ID: 001_booking_schema
Revises:
Create Date: 2026-10-19
"""
from __future__ import annotations

from pathlib import Path

from alembic import op

revision = "001_booking_schema"
down_revision = None
branch_labels = None
depends_on = None

_SQL_FILE = Path(__file__).resolve().parent.parent / "sql" / "001_booking_schema.sql"


def upgrade() -> None:
    sql = _SQL_FILE.read_text()
    op.execute(sql)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS reservations")
    op.execute("DROP TABLE IF EXISTS clients")
    op.execute("DROP TABLE IF EXISTS rooms")
    op.execute("DROP TABLE IF EXISTS room_classes")
    op.execute("DROP TABLE IF EXISTS properties")
    op.execute("DROP TYPE IF EXISTS reservation_status")
    op.execute("DROP TYPE IF EXISTS room_status")
