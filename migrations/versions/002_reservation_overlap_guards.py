"""Storage guards against overlapping active reservations.

Second layer behind the application availability check (room row lock +
re-check inside the booking transaction):

- reservations_no_overlap_idx: partial UNIQUE on (room_id, check_in_date,
  check_out_date) for active rows.
- reservations_no_active_overlap: EXCLUDE USING gist on
  daterange(check_in_date, check_out_date, '[)'), so back-to-back stays
  (checkout_A == checkin_B) remain legal.

The reservations repository translates violations of either into
ConflictError.

Revision ID: 002_reservation_overlap_guards
Revises: 001_booking_schema
Create Date: 2026-10-19
"""
from __future__ import annotations

from pathlib import Path

from alembic import op

revision = "002_reservation_overlap_guards"
down_revision = "001_booking_schema"
branch_labels = None
depends_on = None

_SQL_FILE = Path(__file__).resolve().parent.parent / "sql" / "002_reservation_overlap_guards.sql"


def upgrade() -> None:
    sql = _SQL_FILE.read_text()
    op.execute(sql)


def downgrade() -> None:
    op.execute("ALTER TABLE reservations DROP CONSTRAINT IF EXISTS reservations_no_active_overlap")
    op.execute("DROP INDEX IF EXISTS reservations_no_overlap_idx")
    op.execute("DROP INDEX IF EXISTS reservations_room_dates_status_idx")
    # btree_gist is kept: other indexes may depend on it.
