"""Initial bakery POS schema

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None


def _created_at():
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False)


def upgrade():
    op.create_table(
        "user_accounts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("user_accounts", schema=None) as batch_op:
        batch_op.create_index("ix_user_accounts_email", ["email"], unique=True)

    op.create_table(
        "profiles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("full_name", sa.String(128), nullable=False),
        sa.Column("role", sa.String(16), nullable=False, server_default="sales"),
        sa.ForeignKeyConstraint(["id"], ["user_accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "session_tokens",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("account_id", sa.Integer(), nullable=False),
        sa.Column("token_hash", sa.String(255), nullable=False),
        _created_at(),
        sa.Column("last_used_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_revoked", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_reason", sa.String(255), nullable=True),
        sa.ForeignKeyConstraint(["account_id"], ["user_accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("session_tokens", schema=None) as batch_op:
        batch_op.create_index("ix_session_tokens_account_id", ["account_id"], unique=False)
        batch_op.create_index("ix_session_tokens_token_hash", ["token_hash"], unique=True)
        batch_op.create_index("ix_session_tokens_expires_at", ["expires_at"], unique=False)
        batch_op.create_index("ix_session_tokens_is_revoked", ["is_revoked"], unique=False)
        batch_op.create_index("ix_session_tokens_account_active", ["account_id", "is_revoked"], unique=False)

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(64), nullable=False, server_default="Bánh mì"),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.Column("wholesale_price", sa.Integer(), nullable=True),
        sa.Column("stock", sa.Integer(), nullable=True, server_default=sa.text("0")),
        sa.Column("image", sa.String(512), nullable=True),
        sa.Column("base_product_id", sa.Integer(), nullable=True),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.CheckConstraint("price >= 0", name="ck_products_price_nonneg"),
        sa.CheckConstraint("wholesale_price IS NULL OR wholesale_price >= 0", name="ck_products_wholesale_nonneg"),
        sa.CheckConstraint("stock IS NULL OR stock >= 0", name="ck_products_stock_nonneg"),
        sa.ForeignKeyConstraint(["base_product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("products", schema=None) as batch_op:
        batch_op.create_index("ix_products_category_name", ["category", "name"], unique=False)

    op.create_table(
        "inventory_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.Column("note", sa.String(255), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["user_accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("inventory_logs", schema=None) as batch_op:
        batch_op.create_index("ix_inventory_logs_product_id", ["product_id"], unique=False)
        batch_op.create_index("ix_inventory_logs_created_at", ["created_at"], unique=False)

    op.create_table(
        "customer_debts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("image", sa.String(512), nullable=True),
        sa.Column("initials", sa.String(4), nullable=True),
        sa.Column("amount", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(16), nullable=False, server_default="paid"),
        sa.Column("last_activity", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("customer_debts", schema=None) as batch_op:
        batch_op.create_index("ix_customer_debts_status", ["status"], unique=False)
        batch_op.create_index("ix_customer_debts_last_activity", ["last_activity"], unique=False)

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sub_total", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("discount_percent", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("discount_amount", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_amount", sa.Integer(), nullable=False),
        sa.Column("payment_method", sa.String(16), nullable=False),
        sa.Column("price_mode", sa.String(16), nullable=False, server_default="retail"),
        sa.Column("customer_id", sa.Integer(), nullable=True),
        sa.Column("client_ref", sa.String(64), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["customer_id"], ["customer_debts.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["user_accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("client_ref", name="uq_orders_client_ref"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("orders", schema=None) as batch_op:
        batch_op.create_index("ix_orders_payment_method", ["payment_method"], unique=False)
        batch_op.create_index("ix_orders_created", ["created_at"], unique=False)
        batch_op.create_index("ix_orders_customer_created", ["customer_id", "created_at"], unique=False)

    op.create_table(
        "order_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("order_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=True),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("order_items", schema=None) as batch_op:
        batch_op.create_index("ix_order_items_order_id", ["order_id"], unique=False)

    op.create_table(
        "debt_transactions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("note", sa.String(255), nullable=True),
        sa.Column("order_id", sa.Integer(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        _created_at(),
        sa.CheckConstraint("amount > 0", name="ck_debt_txns_amount_positive"),
        sa.ForeignKeyConstraint(["customer_id"], ["customer_debts.id"]),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["user_accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("debt_transactions", schema=None) as batch_op:
        batch_op.create_index("ix_debt_transactions_customer_id", ["customer_id"], unique=False)
        batch_op.create_index("ix_debt_transactions_order_id", ["order_id"], unique=False)
        batch_op.create_index("ix_debt_transactions_created_at", ["created_at"], unique=False)
        batch_op.create_index("ix_debt_txns_customer_created", ["customer_id", "created_at"], unique=False)

    op.create_table(
        "cake_orders",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("customer_name", sa.String(128), nullable=False),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("product_id", sa.Integer(), nullable=True),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("total_amount", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("deposit_amount", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("remaining_amount", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("delivery_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("delivery_address", sa.String(255), nullable=True),
        sa.Column("created_by", sa.String(128), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("cake_orders", schema=None) as batch_op:
        batch_op.create_index("ix_cake_orders_status_delivery", ["status", "delivery_date"], unique=False)

    op.create_table(
        "shifts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("role", sa.String(64), nullable=False),
        sa.Column("time", sa.String(32), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="upcoming"),
        sa.Column("image", sa.String(512), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )


def downgrade():
    op.drop_table("shifts")
    op.drop_table("cake_orders")
    op.drop_table("debt_transactions")
    op.drop_table("order_items")
    op.drop_table("orders")
    op.drop_table("customer_debts")
    op.drop_table("inventory_logs")
    op.drop_table("products")
    op.drop_table("session_tokens")
    op.drop_table("profiles")
    op.drop_table("user_accounts")
