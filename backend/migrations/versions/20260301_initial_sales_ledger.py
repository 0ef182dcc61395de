"""Sales ledger, reversals, customers, inventory, expenses and goals

Revision ID: 20260301_initial_sales_ledger
Revises:
Create Date: 2026-03-01
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20260301_initial_sales_ledger"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "customer_purchases",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("quantity", sa.Integer(), nullable=True),
        sa.Column("amount_paid_cents", sa.Integer(), nullable=True),
        sa.Column("payment_method", sa.String(32), nullable=False, server_default="cash"),
        sa.Column("customer_phone", sa.String(32), nullable=False, server_default="walk-in"),
        sa.Column("purchase_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )

    with op.batch_alter_table("customer_purchases", schema=None) as batch_op:
        batch_op.create_index("ix_customer_purchases_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_customer_purchases_payment_method", ["payment_method"], unique=False)
        batch_op.create_index("ix_customer_purchases_user_date", ["user_id", "purchase_date"], unique=False)
        batch_op.create_index("ix_customer_purchases_user_phone", ["user_id", "customer_phone"], unique=False)

    op.create_table(
        "sale_reversals",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("original_sale_id", sa.Integer(), nullable=False),
        sa.Column("reversal_reason", sa.String(500), nullable=False),
        sa.Column("reversal_receipt_number", sa.String(64), nullable=False),
        sa.Column("reversal_date", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("original_amount_cents", sa.Integer(), nullable=True),
        sa.Column("original_quantity", sa.Integer(), nullable=True),
        sa.Column("original_payment_method", sa.String(32), nullable=True),
        sa.ForeignKeyConstraint(["original_sale_id"], ["customer_purchases.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("original_sale_id", name="uq_sale_reversals_original_sale"),
        sa.UniqueConstraint("user_id", "reversal_receipt_number", name="uq_sale_reversals_user_receipt"),
        sqlite_autoincrement=True,
    )

    with op.batch_alter_table("sale_reversals", schema=None) as batch_op:
        batch_op.create_index("ix_sale_reversals_user_id", ["user_id"], unique=False)

    op.create_table(
        "credit_payments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("sale_id", sa.Integer(), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("payment_method", sa.String(32), nullable=False, server_default="cash"),
        sa.Column("paid_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["sale_id"], ["customer_purchases.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )

    with op.batch_alter_table("credit_payments", schema=None) as batch_op:
        batch_op.create_index("ix_credit_payments_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_credit_payments_sale_id", ["sale_id"], unique=False)
        batch_op.create_index("ix_credit_payments_user_paid", ["user_id", "paid_at"], unique=False)

    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("phone_number", sa.String(32), nullable=False),
        sa.Column("total_purchases_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_sales_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("first_purchase_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_purchase_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "phone_number", name="uq_customers_user_phone"),
        sqlite_autoincrement=True,
    )

    with op.batch_alter_table("customers", schema=None) as batch_op:
        batch_op.create_index("ix_customers_user_id", ["user_id"], unique=False)

    op.create_table(
        "inventory_movements",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("sale_id", sa.Integer(), nullable=True),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("movement_type", sa.String(16), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price_cents", sa.Integer(), nullable=True),
        sa.Column("notes", sa.String(500), nullable=True),
        sa.Column("movement_date", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_inventory_movements_quantity_positive"),
        sa.ForeignKeyConstraint(["sale_id"], ["customer_purchases.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )

    with op.batch_alter_table("inventory_movements", schema=None) as batch_op:
        batch_op.create_index("ix_inventory_movements_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_inventory_movements_sale_id", ["sale_id"], unique=False)
        batch_op.create_index("ix_inventory_movements_movement_type", ["movement_type"], unique=False)
        batch_op.create_index("ix_inventory_movements_user_date", ["user_id", "movement_date"], unique=False)

    op.create_table(
        "inventory_receipts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_cost_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("received_date", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )

    with op.batch_alter_table("inventory_receipts", schema=None) as batch_op:
        batch_op.create_index("ix_inventory_receipts_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_inventory_receipts_received_date", ["received_date"], unique=False)

    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("category", sa.String(64), nullable=False, server_default="general"),
        sa.Column("description", sa.String(255), nullable=True),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("expense_date", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )

    with op.batch_alter_table("expenses", schema=None) as batch_op:
        batch_op.create_index("ix_expenses_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_expenses_user_date", ["user_id", "expense_date"], unique=False)

    op.create_table(
        "sales_goals",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("goal_type", sa.String(16), nullable=False),
        sa.Column("target_amount_cents", sa.Integer(), nullable=False),
        sa.Column("period_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("period_end", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )

    with op.batch_alter_table("sales_goals", schema=None) as batch_op:
        batch_op.create_index("ix_sales_goals_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_sales_goals_user_type_active", ["user_id", "goal_type", "is_active"], unique=False)


def downgrade():
    op.drop_table("sales_goals")
    op.drop_table("expenses")
    op.drop_table("inventory_receipts")
    op.drop_table("inventory_movements")
    op.drop_table("customers")
    op.drop_table("credit_payments")
    op.drop_table("sale_reversals")
    op.drop_table("customer_purchases")
