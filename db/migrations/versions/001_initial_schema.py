"""Initial schema: users, products, calls, call_history.

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = "001"
down_revision = None
branch_labels = None
depends_on = None

MONEY = sa.Numeric(10, 2)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.UUID(as_uuid=True), primary_key=True),
        sa.Column("username", sa.Text, nullable=False),
        sa.Column("password_hash", sa.Text, nullable=False),
        sa.Column("role", sa.Text, nullable=False, server_default="agent"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("role IN ('admin', 'agent')", name="ck_user_role"),
        sa.UniqueConstraint("username", name="uq_user_username"),
    )

    op.create_table(
        "products",
        sa.Column("id", sa.UUID(as_uuid=True), primary_key=True),
        sa.Column("sku", sa.Text, nullable=False),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("price", MONEY, nullable=False),
        sa.Column("units", sa.Integer, nullable=False, server_default="1"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("units >= 1", name="ck_product_units"),
        sa.CheckConstraint("price >= 0", name="ck_product_price"),
        sa.UniqueConstraint("sku", name="uq_product_sku"),
    )

    op.create_table(
        "calls",
        sa.Column("id", sa.UUID(as_uuid=True), primary_key=True),
        sa.Column("date", sa.DateTime, nullable=False),
        sa.Column("customer_name", sa.Text, nullable=False),
        sa.Column("phone", sa.Text, nullable=False),
        sa.Column("awb", sa.Text, nullable=True),
        sa.Column("order_sku", sa.Text, nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False, server_default="1"),
        sa.Column("current_price", MONEY, nullable=False),
        sa.Column("shipping_fee", MONEY, nullable=True),
        sa.Column("address", sa.Text, nullable=True),
        sa.Column("status", sa.Text, nullable=False, server_default="new"),
        sa.Column("call_type", sa.Text, nullable=False, server_default="confirmation"),
        sa.Column("agent_id", sa.UUID(as_uuid=True), nullable=True),
        sa.Column("call_started_at", sa.DateTime, nullable=True),
        sa.Column("call_ended_at", sa.DateTime, nullable=True),
        sa.Column("call_duration", sa.Integer, nullable=True),
        sa.Column("call_remarks", sa.Text, nullable=True),
        sa.Column("original_order_sku", sa.Text, nullable=True),
        sa.Column("original_price", MONEY, nullable=True),
        sa.Column("new_order_sku", sa.Text, nullable=True),
        sa.Column("new_price", MONEY, nullable=True),
        sa.Column("revenue", MONEY, nullable=True),
        sa.Column("is_upsell", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("order_confirmed", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("ordered_at", sa.DateTime, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "status IN ('new', 'in_progress', 'called', 'unattended', 'callback', 'completed')",
            name="ck_call_status",
        ),
        sa.CheckConstraint("call_type IN ('confirmation', 'promo')", name="ck_call_type"),
        sa.ForeignKeyConstraint(["agent_id"], ["users.id"], name="fk_call_agent"),
    )
    op.create_index("ix_calls_phone_date", "calls", ["phone", "date"])
    op.create_index("ix_calls_agent_id", "calls", ["agent_id"])
    op.create_index("ix_calls_ordered_at", "calls", ["ordered_at"])

    op.create_table(
        "call_history",
        sa.Column("id", sa.UUID(as_uuid=True), primary_key=True),
        sa.Column("call_id", sa.UUID(as_uuid=True), nullable=False),
        sa.Column("agent_id", sa.UUID(as_uuid=True), nullable=True),
        sa.Column("action", sa.Text, nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "action IN ('started', 'ended', 'unattended', 'callback', 'upsell_offered', "
            "'upsell_accepted', 'upsell_declined', 'order_confirmed', 'reset')",
            name="ck_history_action",
        ),
        sa.ForeignKeyConstraint(["call_id"], ["calls.id"], name="fk_history_call"),
        sa.ForeignKeyConstraint(["agent_id"], ["users.id"], name="fk_history_agent"),
    )
    op.create_index("ix_call_history_call_id", "call_history", ["call_id"])


def downgrade() -> None:
    op.drop_index("ix_call_history_call_id", table_name="call_history")
    op.drop_table("call_history")
    op.drop_index("ix_calls_ordered_at", table_name="calls")
    op.drop_index("ix_calls_agent_id", table_name="calls")
    op.drop_index("ix_calls_phone_date", table_name="calls")
    op.drop_table("calls")
    op.drop_table("products")
    op.drop_table("users")
