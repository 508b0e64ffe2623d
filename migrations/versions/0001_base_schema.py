"""0001 base schema: catalog, templates and manufacture orders

Revision ID: 0001_base_schema
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_base_schema'
down_revision = None
branch_labels = None
depends_on = None

QUANTITY = sa.Numeric(18, 4, asdecimal=False)


def upgrade():
    op.create_table(
        'catalog_item',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_code', sa.String(length=50), nullable=False),
        sa.Column('product_name', sa.String(length=200), nullable=False),
        sa.Column('product_type', sa.String(length=20), nullable=False),
        sa.Column('size_code', sa.String(length=20), nullable=True),
        sa.Column('stock_total', QUANTITY, nullable=False),
        sa.Column('net_weight', QUANTITY, nullable=True),
        sa.Column('minimal_manufacture_quantity', QUANTITY, nullable=False),
        sa.Column('expiration_months', sa.Integer(), nullable=True),
        sa.Column('allowed_residue_percentage', sa.Numeric(9, 4, asdecimal=False), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_code'),
    )
    op.create_index('ix_catalog_item_type', 'catalog_item', ['product_type'])

    op.create_table(
        'catalog_sale',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_code', sa.String(length=50), nullable=False),
        sa.Column('sold_on', sa.Date(), nullable=False),
        sa.Column('quantity', QUANTITY, nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_catalog_sale_product_date', 'catalog_sale', ['product_code', 'sold_on'])

    op.create_table(
        'manufacture_template',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_code', sa.String(length=50), nullable=False),
        sa.Column('product_name', sa.String(length=200), nullable=False),
        sa.Column('batch_size', QUANTITY, nullable=False),
        sa.Column('original_amount', QUANTITY, nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_code'),
    )

    op.create_table(
        'manufacture_template_ingredient',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('template_id', sa.Integer(), nullable=False),
        sa.Column('product_code', sa.String(length=50), nullable=False),
        sa.Column('product_name', sa.String(length=200), nullable=False),
        sa.Column('amount', QUANTITY, nullable=False),
        sa.Column('price', QUANTITY, nullable=True),
        sa.ForeignKeyConstraint(['template_id'], ['manufacture_template.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_template_ingredient_code', 'manufacture_template_ingredient', ['product_code'])

    op.create_table(
        'manufacture_order',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_number', sa.String(length=50), nullable=False),
        sa.Column('created_date', sa.DateTime(), nullable=False),
        sa.Column('created_by_user', sa.String(length=100), nullable=False),
        sa.Column('responsible_person', sa.String(length=100), nullable=True),
        sa.Column('semi_product_planned_date', sa.Date(), nullable=False),
        sa.Column('product_planned_date', sa.Date(), nullable=False),
        sa.Column('manufacture_type', sa.String(length=20), nullable=False),
        sa.Column('state', sa.String(length=40), nullable=False),
        sa.Column('state_changed_at', sa.DateTime(), nullable=False),
        sa.Column('state_changed_by_user', sa.String(length=100), nullable=False),
        sa.Column('manual_action_required', sa.Boolean(), nullable=False),
        sa.Column('erp_order_number_semiproduct', sa.String(length=50), nullable=True),
        sa.Column('erp_order_number_semiproduct_date', sa.DateTime(), nullable=True),
        sa.Column('erp_order_number_product', sa.String(length=50), nullable=True),
        sa.Column('erp_order_number_product_date', sa.DateTime(), nullable=True),
        sa.Column('erp_discard_residue_document_number', sa.String(length=50), nullable=True),
        sa.Column('erp_discard_residue_document_number_date', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_number'),
    )
    op.create_index('ix_manufacture_order_state', 'manufacture_order', ['state'])
    op.create_index('ix_manufacture_order_created_date', 'manufacture_order', ['created_date'])
    op.create_index('ix_manufacture_order_responsible_person', 'manufacture_order', ['responsible_person'])

    line_columns = lambda: [  # noqa: E731
        sa.Column('product_code', sa.String(length=50), nullable=False),
        sa.Column('product_name', sa.String(length=200), nullable=False),
        sa.Column('planned_quantity', QUANTITY, nullable=False),
        sa.Column('actual_quantity', QUANTITY, nullable=True),
        sa.Column('batch_multiplier', QUANTITY, nullable=False),
        sa.Column('expiration_months', sa.Integer(), nullable=False),
        sa.Column('lot_number', sa.String(length=50), nullable=True),
        sa.Column('expiration_date', sa.Date(), nullable=True),
    ]

    op.create_table(
        'manufacture_order_semi_product',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('manufacture_order_id', sa.Integer(), nullable=False),
        *line_columns(),
        sa.ForeignKeyConstraint(['manufacture_order_id'], ['manufacture_order.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('manufacture_order_id'),
    )

    op.create_table(
        'manufacture_order_product',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('manufacture_order_id', sa.Integer(), nullable=False),
        sa.Column('semi_product_code', sa.String(length=50), nullable=False),
        *line_columns(),
        sa.ForeignKeyConstraint(['manufacture_order_id'], ['manufacture_order.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_manufacture_order_product_code', 'manufacture_order_product', ['product_code'])

    op.create_table(
        'manufacture_order_note',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('manufacture_order_id', sa.Integer(), nullable=False),
        sa.Column('text', sa.String(length=2000), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('created_by_user', sa.String(length=100), nullable=False),
        sa.ForeignKeyConstraint(['manufacture_order_id'], ['manufacture_order.id']),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'manufacture_order_audit_log',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('manufacture_order_id', sa.Integer(), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('user', sa.String(length=100), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('details', sa.String(length=2000), nullable=False),
        sa.Column('old_value', sa.String(length=500), nullable=True),
        sa.Column('new_value', sa.String(length=500), nullable=True),
        sa.ForeignKeyConstraint(['manufacture_order_id'], ['manufacture_order.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_manufacture_order_audit_log_order', 'manufacture_order_audit_log', ['manufacture_order_id'])


def downgrade():
    op.drop_index('ix_manufacture_order_audit_log_order', table_name='manufacture_order_audit_log')
    op.drop_table('manufacture_order_audit_log')
    op.drop_table('manufacture_order_note')
    op.drop_index('ix_manufacture_order_product_code', table_name='manufacture_order_product')
    op.drop_table('manufacture_order_product')
    op.drop_table('manufacture_order_semi_product')
    op.drop_index('ix_manufacture_order_responsible_person', table_name='manufacture_order')
    op.drop_index('ix_manufacture_order_created_date', table_name='manufacture_order')
    op.drop_index('ix_manufacture_order_state', table_name='manufacture_order')
    op.drop_table('manufacture_order')
    op.drop_index('ix_template_ingredient_code', table_name='manufacture_template_ingredient')
    op.drop_table('manufacture_template_ingredient')
    op.drop_table('manufacture_template')
    op.drop_index('ix_catalog_sale_product_date', table_name='catalog_sale')
    op.drop_table('catalog_sale')
    op.drop_index('ix_catalog_item_type', table_name='catalog_item')
    op.drop_table('catalog_item')
