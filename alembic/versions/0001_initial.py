"""initial hotel schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18

"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("username", sa.String(length=80), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_role", "users", ["role"], unique=False)

    for table in ("guests", "employees"):
        cols = [
            sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), primary_key=True),
            sa.Column("first_name", sa.String(length=100), nullable=False, server_default=""),
            sa.Column("last_name", sa.String(length=100), nullable=False, server_default=""),
            sa.Column("email", sa.String(length=320), nullable=False, server_default=""),
            sa.Column("phone", sa.String(length=40), nullable=False, server_default=""),
        ]
        if table == "employees":
            cols.append(sa.Column("position", sa.String(length=40), nullable=False, server_default=""))
        op.create_table(table, *cols)
        op.create_index(f"ix_{table}_email", table, ["email"], unique=False)

    op.create_table(
        "rooms",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("room_number", sa.String(length=20), nullable=False),
        sa.Column("room_type", sa.String(length=20), nullable=False, server_default="standard"),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("price_per_night", sa.Numeric(10, 2), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="available"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("capacity >= 1", name="ck_rooms_capacity"),
        sa.CheckConstraint("price_per_night > 0", name="ck_rooms_price"),
    )
    op.create_index("ix_rooms_room_number", "rooms", ["room_number"], unique=True)

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("room_id", sa.String(length=36), sa.ForeignKey("rooms.id"), nullable=False),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        sa.Column("check_out_date", sa.Date(), nullable=False),
        sa.Column("guests", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("total_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("payment_status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("check_out_date > check_in_date", name="ck_bookings_range"),
    )
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"], unique=False)
    op.create_index("ix_bookings_room_id", "bookings", ["room_id"], unique=False)
    op.create_index("ix_bookings_check_in_date", "bookings", ["check_in_date"], unique=False)
    op.create_index("ix_bookings_check_out_date", "bookings", ["check_out_date"], unique=False)
    op.create_index("ix_bookings_status", "bookings", ["status"], unique=False)

    op.create_table(
        "payments",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("booking_id", sa.String(length=36), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("payment_method", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="completed"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_payments_booking_id", "payments", ["booking_id"], unique=True)

    op.create_table(
        "card_payments",
        sa.Column("payment_id", sa.String(length=36), sa.ForeignKey("payments.id"), primary_key=True),
        sa.Column("card_last4", sa.String(length=4), nullable=False),
        sa.Column("expiry_date", sa.String(length=7), nullable=False),
        sa.Column("cardholder_name", sa.String(length=200), nullable=False),
    )
    op.create_table(
        "e_wallet_payments",
        sa.Column("payment_id", sa.String(length=36), sa.ForeignKey("payments.id"), primary_key=True),
        sa.Column("wallet_type", sa.String(length=40), nullable=False),
        sa.Column("account_number", sa.String(length=80), nullable=False),
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("actor_user_id", sa.String(length=36), nullable=False),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("entity_type", sa.String(length=40), nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        sa.Column("details_json", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_audit_logs_actor_user_id", "audit_logs", ["actor_user_id"], unique=False)
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"], unique=False)
    op.create_index("ix_audit_logs_entity_type", "audit_logs", ["entity_type"], unique=False)
    op.create_index("ix_audit_logs_entity_id", "audit_logs", ["entity_id"], unique=False)


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("e_wallet_payments")
    op.drop_table("card_payments")
    op.drop_table("payments")
    op.drop_table("bookings")
    op.drop_table("rooms")
    op.drop_table("employees")
    op.drop_table("guests")
    op.drop_table("users")
