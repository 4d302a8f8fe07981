"""initial storefront schema

Revision ID: sf001_initial_storefront
Revises:
Create Date: 2026-10-17 00:00:00.000000

Creates the SwiftFlow schema from scratch:
- owners / session_tokens: store owners and their bearer sessions
- products: owner-private catalog with authoritative stock
- orders / order_lines: customer orders with name and price snapshots
- finance_entries: income records feeding digest revenue
- public_owners / public_products: world-readable storefront mirror
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'sf001_initial_storefront'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # owners: private profile, bank details, digest preferences
    # ============================================================================
    op.create_table(
        'owners',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('display_name', sa.String(length=120), nullable=True),
        sa.Column('business_type', sa.String(length=64), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('logo_url', sa.String(length=512), nullable=True),
        sa.Column('brand_color', sa.String(length=16), nullable=False, server_default='#6b7280'),
        sa.Column('bank_name', sa.String(length=120), nullable=True),
        sa.Column('account_holder', sa.String(length=120), nullable=True),
        sa.Column('account_number', sa.String(length=64), nullable=True),
        sa.Column('branch_code', sa.String(length=32), nullable=True),
        sa.Column('swift_code', sa.String(length=32), nullable=True),
        sa.Column('payment_email', sa.String(length=255), nullable=True),
        sa.Column('setup_step', sa.String(length=16), nullable=False, server_default='BUSINESS_INFO'),
        sa.Column('is_registered', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('email_reports_enabled', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('email_report_recipient', sa.String(length=255), nullable=True),
        sa.Column('email_report_frequency', sa.String(length=16), nullable=False, server_default='weekly'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_owners_email', 'owners', ['email'], unique=True)

    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('owner_id', sa.String(length=32), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(['owner_id'], ['owners.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_session_tokens_owner_id', 'session_tokens', ['owner_id'])
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)
    op.create_index('ix_session_tokens_expires_at', 'session_tokens', ['expires_at'])
    op.create_index('ix_session_tokens_is_revoked', 'session_tokens', ['is_revoked'])
    op.create_index('ix_session_tokens_owner_active', 'session_tokens', ['owner_id', 'is_revoked'])

    # ============================================================================
    # products: stock here is authoritative
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('owner_id', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=64), nullable=True),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('sizes', sa.JSON(), nullable=True),
        sa.Column('media', sa.JSON(), nullable=False),
        sa.Column('is_visible', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
        sa.CheckConstraint('price_cents >= 0', name='ck_products_price_non_negative'),
        sa.ForeignKeyConstraint(['owner_id'], ['owners.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_products_owner_id', 'products', ['owner_id'])
    op.create_index('ix_products_owner_name', 'products', ['owner_id', 'name'])
    op.create_index('ix_products_owner_visible', 'products', ['owner_id', 'is_visible'])

    # ============================================================================
    # orders / order_lines
    # ============================================================================
    op.create_table(
        'orders',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('owner_id', sa.String(length=32), nullable=False),
        sa.Column('order_type', sa.String(length=32), nullable=False, server_default='PENDING_PAYMENT'),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='WAITING_FOR_PAYMENT'),
        sa.Column('customer_name', sa.String(length=120), nullable=False),
        sa.Column('customer_phone', sa.String(length=32), nullable=True),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('proof_url', sa.String(length=512), nullable=True),
        sa.Column('is_proof_uploaded', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('proof_uploaded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('stock_applied_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['owner_id'], ['owners.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_orders_owner_id', 'orders', ['owner_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_owner_status_created', 'orders', ['owner_id', 'status', 'created_at'])
    op.create_index('ix_orders_owner_created', 'orders', ['owner_id', 'created_at'])

    op.create_table(
        'order_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.String(length=32), nullable=False),
        sa.Column('line_number', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.String(length=32), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('size', sa.String(length=8), nullable=True),
        sa.Column('line_total_cents', sa.Integer(), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_order_lines_quantity_positive'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id', 'line_number', name='uq_order_lines_order_line'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_order_lines_order_id', 'order_lines', ['order_id'])
    op.create_index('ix_order_lines_product_id', 'order_lines', ['product_id'])

    # ============================================================================
    # finance_entries: one income entry per order at most
    # ============================================================================
    op.create_table(
        'finance_entries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('owner_id', sa.String(length=32), nullable=False),
        sa.Column('order_id', sa.String(length=32), nullable=True),
        sa.Column('entry_type', sa.String(length=16), nullable=False, server_default='income'),
        sa.Column('source', sa.String(length=64), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['owner_id'], ['owners.id'], ),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id', 'entry_type', name='uq_finance_entries_order_type'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_finance_entries_owner_id', 'finance_entries', ['owner_id'])
    op.create_index('ix_finance_entries_order_id', 'finance_entries', ['order_id'])
    op.create_index('ix_finance_entries_owner_occurred', 'finance_entries', ['owner_id', 'occurred_at'])

    # ============================================================================
    # public mirror: no foreign keys, rows may briefly outlive or lag their source
    # ============================================================================
    op.create_table(
        'public_owners',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('display_name', sa.String(length=120), nullable=True),
        sa.Column('business_type', sa.String(length=64), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('logo_url', sa.String(length=512), nullable=True),
        sa.Column('brand_color', sa.String(length=16), nullable=True),
        sa.Column('has_bank', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('bank_details', sa.JSON(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'public_products',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('owner_id', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_low_stock', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('category', sa.String(length=64), nullable=True),
        sa.Column('sizes', sa.JSON(), nullable=True),
        sa.Column('media', sa.JSON(), nullable=False),
        sa.Column('is_visible', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_public_products_owner_id', 'public_products', ['owner_id'])
    op.create_index('ix_public_products_owner_visible', 'public_products', ['owner_id', 'is_visible'])


def downgrade():
    op.drop_table('public_products')
    op.drop_table('public_owners')
    op.drop_table('finance_entries')
    op.drop_table('order_lines')
    op.drop_table('orders')
    op.drop_table('products')
    op.drop_table('session_tokens')
    op.drop_table('owners')
