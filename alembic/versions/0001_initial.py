"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17

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
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("role", sa.String(length=30), nullable=False, server_default="user"),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("loyalty_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("external_api_key", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"], unique=False)

    op.create_table(
        "events",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("venue", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("activity_url", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("on_sale_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("actual_ticket_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("price_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("code_prefix", sa.String(length=12), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_events_end_date", "events", ["end_date"], unique=False)

    op.create_table(
        "verification_codes",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("owner_id", sa.String(length=36), nullable=False),
        sa.Column("event_id", sa.String(length=36), nullable=False),
        sa.Column("seat_keywords_csv", sa.String(length=1000), nullable=False, server_default=""),
        sa.Column("session_index", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("ticket_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("bound_account", sa.String(length=200), nullable=True),
        sa.Column("bound_device_id", sa.String(length=200), nullable=True),
        sa.Column("bound_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("bound_by_owner_id", sa.String(length=36), nullable=True),
        sa.Column("bound_from_ip", sa.String(length=64), nullable=True),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("modification_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_modifications", sa.Integer(), nullable=False, server_default="5"),
        sa.Column("last_modified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("order_id", sa.String(length=20), nullable=True),
        sa.Column("points_spent", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("owner_id", "event_id", name="uq_verification_code_owner_event"),
    )
    op.create_index("ix_verification_codes_code", "verification_codes", ["code"], unique=True)
    op.create_index("ix_verification_codes_owner_id", "verification_codes", ["owner_id"], unique=False)
    op.create_index("ix_verification_codes_event_id", "verification_codes", ["event_id"], unique=False)

    op.create_table(
        "orders",
        sa.Column("id", sa.String(length=20), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("purpose", sa.String(length=12), nullable=False, server_default="points"),
        sa.Column("package_id", sa.Integer(), nullable=True),
        sa.Column("package_name", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("event_id", sa.String(length=36), nullable=True),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("payment_method", sa.String(length=20), nullable=False, server_default="ecpay"),
        sa.Column("trade_amount", sa.Integer(), nullable=True),
        sa.Column("payment_date", sa.String(length=30), nullable=False, server_default=""),
        sa.Column("fail_reason", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("consumed_by_code_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_orders_user_id", "orders", ["user_id"], unique=False)
    op.create_index("ix_orders_event_id", "orders", ["event_id"], unique=False)
    op.create_index("ix_orders_status", "orders", ["status"], unique=False)

    op.create_table(
        "points_transactions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("order_id", sa.String(length=20), nullable=False, server_default=""),
        sa.Column("code_id", sa.String(length=36), nullable=False, server_default=""),
        sa.Column("description", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("balance_after", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_points_transactions_user_id", "points_transactions", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_points_transactions_user_id", table_name="points_transactions")
    op.drop_table("points_transactions")
    op.drop_index("ix_orders_status", table_name="orders")
    op.drop_index("ix_orders_event_id", table_name="orders")
    op.drop_index("ix_orders_user_id", table_name="orders")
    op.drop_table("orders")
    op.drop_index("ix_verification_codes_event_id", table_name="verification_codes")
    op.drop_index("ix_verification_codes_owner_id", table_name="verification_codes")
    op.drop_index("ix_verification_codes_code", table_name="verification_codes")
    op.drop_table("verification_codes")
    op.drop_index("ix_events_end_date", table_name="events")
    op.drop_table("events")
    op.drop_index("ix_users_role", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
