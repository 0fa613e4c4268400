"""Initial schema: users, catalog, shows, seat locks and bookings.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'customer'")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "movies",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.String(2000), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("language", sa.String(50), nullable=True),
        sa.Column("genre", sa.String(100), nullable=True),
        sa.Column("rating", sa.String(20), nullable=True),
        sa.Column("release_date", sa.Date(), nullable=True),
        sa.Column("image_url", sa.String(1000), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("duration_minutes > 0", name="check_movie_duration_positive"),
    )
    op.create_index("ix_movies_id", "movies", ["id"])

    op.create_table(
        "theaters",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("location", sa.String(255), nullable=False, server_default=sa.text("''")),
        *_timestamps(),
    )
    op.create_index("ix_theaters_id", "theaters", ["id"])

    op.create_table(
        "screens",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("theater_id", sa.Integer(), sa.ForeignKey("theaters.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("total_seats", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
    )
    op.create_index("ix_screens_id", "screens", ["id"])
    op.create_index("ix_screens_theater_id", "screens", ["theater_id"])

    op.create_table(
        "seats",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("screen_id", sa.Integer(), sa.ForeignKey("screens.id", ondelete="CASCADE"), nullable=False),
        sa.Column("row", sa.String(5), nullable=False),
        sa.Column("number", sa.Integer(), nullable=False),
        sa.Column("is_disabled", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_timestamps(),
        sa.UniqueConstraint("screen_id", "row", "number", name="uq_seat_screen_row_number"),
        sa.CheckConstraint("number > 0", name="check_seat_number_positive"),
    )
    op.create_index("ix_seats_id", "seats", ["id"])
    op.create_index("ix_seats_screen_id", "seats", ["screen_id"])

    op.create_table(
        "shows",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("movie_id", sa.Integer(), sa.ForeignKey("movies.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("screen_id", sa.Integer(), sa.ForeignKey("screens.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("screen_id", "starts_at", name="uq_show_screen_start"),
        sa.CheckConstraint("price >= 0", name="check_show_price_non_negative"),
    )
    op.create_index("ix_shows_id", "shows", ["id"])
    op.create_index("ix_shows_movie_id", "shows", ["movie_id"])
    # Listings filter on start time ("upcoming shows of movie X")
    op.create_index("ix_shows_starts_at", "shows", ["starts_at"])

    # SEAT LOCKS: the unique (show_id, seat_id) constraint is what makes two
    # concurrent lock requests for one seat resolve to exactly one winner.
    op.create_table(
        "seat_locks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("show_id", sa.Integer(), sa.ForeignKey("shows.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("seat_id", sa.Integer(), sa.ForeignKey("seats.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("locked_by", sa.String(255), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("show_id", "seat_id", name="uq_seat_lock_show_seat"),
    )
    # The sweeper deletes by expiry
    op.create_index("ix_seat_locks_expires_at", "seat_locks", ["expires_at"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("show_id", sa.Integer(), sa.ForeignKey("shows.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'Pending'")),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("total_amount >= 0", name="check_booking_total_non_negative"),
        sa.CheckConstraint("status IN ('Pending', 'Confirmed', 'Cancelled')", name="check_booking_status"),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    # "Which seats of this show are taken" joins through here filtered by status
    op.create_index("ix_bookings_show_status", "bookings", ["show_id", "status"])

    op.create_table(
        "booking_seats",
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("seat_id", sa.Integer(), sa.ForeignKey("seats.id", ondelete="RESTRICT"), primary_key=True),
    )
    op.create_index("ix_booking_seats_seat_id", "booking_seats", ["seat_id"])


def downgrade() -> None:
    op.drop_table("booking_seats")
    op.drop_table("bookings")
    op.drop_table("seat_locks")
    op.drop_table("shows")
    op.drop_table("seats")
    op.drop_table("screens")
    op.drop_table("theaters")
    op.drop_table("movies")
    op.drop_table("users")
