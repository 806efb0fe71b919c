"""init marketplace tables

Revision ID: 0001_init_marketplace
Revises:
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_init_marketplace"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade():
    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(length=64), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False, server_default=""),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="customer"),
        sa.Column("status", sa.Enum("active", "disabled", name="accountstatus"), nullable=False, server_default="active"),
        *_timestamps(),
    )
    op.create_index("ix_accounts_username", "accounts", ["username"], unique=True)

    op.create_table(
        "vendors",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("account_id", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("business_name", sa.String(length=128), nullable=False),
        sa.Column("commission_percentage", sa.Numeric(5, 2), nullable=False, server_default="10.00"),
        sa.Column("bank_details", sa.JSON(), nullable=False, server_default=sa.text("'{}'::json")),
        sa.Column("is_approved", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_suspended", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("total_orders", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_vendors_account_id", "vendors", ["account_id"], unique=True)

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("vendor_id", sa.Integer(), sa.ForeignKey("vendors.id"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("price", sa.BigInteger(), nullable=False),
        sa.Column("image", sa.String(length=512), nullable=False, server_default=""),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_products_vendor_id", "products", ["vendor_id"])

    op.create_table(
        "cart_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("customer_id", "product_id", name="uq_cart_customer_product"),
    )
    op.create_index("ix_cart_items_customer_id", "cart_items", ["customer_id"])

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("idempotency_key", sa.String(length=128), nullable=False),
        sa.Column("shipping_address", sa.JSON(), nullable=False, server_default=sa.text("'{}'::json")),
        sa.Column("payment_method", sa.String(length=64), nullable=False),
        sa.Column("tax_price", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("shipping_price", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("total_price", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("is_paid", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_delivered", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "status",
            sa.Enum("pending", "processing", "shipped", "delivered", "cancelled", name="orderstatus"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("customer_id", "idempotency_key", name="uq_order_customer_idempotency_key"),
    )
    op.create_index("ix_orders_customer_id", "orders", ["customer_id"])

    op.create_table(
        "vendor_sub_orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id"), nullable=False),
        sa.Column("vendor_id", sa.Integer(), sa.ForeignKey("vendors.id"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("vendor_subtotal", sa.BigInteger(), nullable=False),
        sa.Column("commission_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("commission_amount", sa.BigInteger(), nullable=False),
        sa.Column("vendor_earnings", sa.BigInteger(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("pending", "processing", "shipped", "in_transit", "delivered", "cancelled", name="vendororderstatus"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("carrier", sa.String(length=64), nullable=True),
        sa.Column("tracking_number", sa.String(length=128), nullable=True),
        sa.Column(
            "tracking_status",
            sa.Enum("not_shipped", "shipped", "in_transit", "delivered", "cancelled", name="trackingstatus"),
            nullable=False,
            server_default="not_shipped",
        ),
        sa.Column("estimated_delivery", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("order_id", "vendor_id", name="uq_sub_order_order_vendor"),
    )
    op.create_index("ix_vendor_sub_orders_order_id", "vendor_sub_orders", ["order_id"])
    op.create_index("ix_vendor_sub_orders_vendor_id", "vendor_sub_orders", ["vendor_id"])

    op.create_table(
        "order_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("sub_order_id", sa.Integer(), sa.ForeignKey("vendor_sub_orders.id"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.BigInteger(), nullable=False),
        sa.Column("image", sa.String(length=512), nullable=False, server_default=""),
    )
    op.create_index("ix_order_items_sub_order_id", "order_items", ["sub_order_id"])

    op.create_table(
        "wallets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("vendor_id", sa.Integer(), sa.ForeignKey("vendors.id"), nullable=False),
        sa.Column("balance", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("total_earnings", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("total_commission_paid", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("total_refunds", sa.BigInteger(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_wallets_vendor_id", "wallets", ["vendor_id"], unique=True)

    op.create_table(
        "payouts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("vendor_id", sa.Integer(), sa.ForeignKey("vendors.id"), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("bank_details", sa.JSON(), nullable=False, server_default=sa.text("'{}'::json")),
        sa.Column(
            "status",
            sa.Enum(
                "pending", "approved", "processing", "completed", "rejected", "failed", "cancelled",
                name="payoutstatus",
            ),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_by", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=True),
        sa.Column("transaction_id", sa.String(length=128), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("failure_reason", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_payouts_vendor_id", "payouts", ["vendor_id"])

    op.create_table(
        "wallet_transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("wallet_id", sa.Integer(), sa.ForeignKey("wallets.id"), nullable=False),
        sa.Column("vendor_id", sa.Integer(), sa.ForeignKey("vendors.id"), nullable=False),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id"), nullable=True),
        sa.Column("payout_id", sa.Integer(), sa.ForeignKey("payouts.id"), nullable=True),
        sa.Column("type", sa.Enum("credit", "debit", "refund", "commission", name="transactiontype"), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("balance_after", sa.BigInteger(), nullable=False),
        sa.Column("dedup_key", sa.String(length=128), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("dedup_key", name="uq_wallet_transactions_dedup_key"),
    )
    op.create_index("ix_wallet_transactions_wallet_id", "wallet_transactions", ["wallet_id"])
    op.create_index("ix_wallet_transactions_vendor_id", "wallet_transactions", ["vendor_id"])
    op.create_index("ix_wallet_transactions_order_id", "wallet_transactions", ["order_id"])
    op.create_index("ix_wallet_transactions_payout_id", "wallet_transactions", ["payout_id"])


def downgrade():
    op.drop_table("wallet_transactions")
    op.drop_table("payouts")
    op.drop_table("wallets")
    op.drop_table("order_items")
    op.drop_table("vendor_sub_orders")
    op.drop_table("orders")
    op.drop_table("cart_items")
    op.drop_table("products")
    op.drop_table("vendors")
    op.drop_table("accounts")
    for name in ("transactiontype", "payoutstatus", "trackingstatus", "vendororderstatus", "orderstatus", "accountstatus"):
        sa.Enum(name=name).drop(op.get_bind(), checkfirst=True)
