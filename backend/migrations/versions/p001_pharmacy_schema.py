"""pharmacy schema

Revision ID: p001_pharmacy_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the pharmacy schema from scratch:
- medicines: stock counter with expiry date (quantity >= 0)
- customers: immutable customer master data
- sales: admission-checked sales (quantity > 0)
- stock_alerts: low-stock alerts, one per (medicine_id, quantity)
- sale_audit_log: append-only sale audit trail, deliberately without
  foreign keys so entries outlive the sales they describe
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'p001_pharmacy_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # medicines
    # ============================================================================
    op.create_table(
        'medicines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('expiry_date', sa.Date(), nullable=False),
        sa.Column('last_sold_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('quantity >= 0', name='ck_medicines_quantity_non_negative'),
        sa.CheckConstraint('price_cents >= 0', name='ck_medicines_price_non_negative'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_medicines_expiry_date', 'medicines', ['expiry_date'], unique=False)

    # ============================================================================
    # customers
    # ============================================================================
    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('contact', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )

    # ============================================================================
    # sales
    # ============================================================================
    op.create_table(
        'sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('medicine_id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('sold_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.CheckConstraint('quantity > 0', name='ck_sales_quantity_positive'),
        sa.ForeignKeyConstraint(['medicine_id'], ['medicines.id']),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sales_medicine_id', 'sales', ['medicine_id'], unique=False)
    op.create_index('ix_sales_customer_id', 'sales', ['customer_id'], unique=False)

    # ============================================================================
    # stock_alerts
    # ============================================================================
    op.create_table(
        'stock_alerts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('medicine_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('message', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['medicine_id'], ['medicines.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('medicine_id', 'quantity', name='uq_stock_alerts_medicine_quantity'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_stock_alerts_medicine_id', 'stock_alerts', ['medicine_id'], unique=False)

    # ============================================================================
    # sale_audit_log: no foreign keys on purpose
    # ============================================================================
    op.create_table(
        'sale_audit_log',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=True),
        sa.Column('medicine_id', sa.Integer(), nullable=True),
        sa.Column('customer_id', sa.Integer(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=True),
        sa.Column('logged_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('action', sa.String(length=16), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sale_audit_log_sale_id', 'sale_audit_log', ['sale_id'], unique=False)
    op.create_index('ix_sale_audit_log_medicine_id', 'sale_audit_log', ['medicine_id'], unique=False)
    op.create_index('ix_sale_audit_log_customer_id', 'sale_audit_log', ['customer_id'], unique=False)


def downgrade():
    """Drop all tables (destructive operation)."""
    op.drop_table('sale_audit_log')
    op.drop_table('stock_alerts')
    op.drop_table('sales')
    op.drop_table('customers')
    op.drop_table('medicines')
