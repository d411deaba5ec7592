from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(updated: bool = True):
    cols = [sa.Column('created_at', sa.DateTime, index=True)]
    if updated:
        cols.append(sa.Column('updated_at', sa.DateTime))
    return cols


def upgrade():
    op.create_table(
        'products',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(256), index=True),
        sa.Column('description', sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_table(
        'pages',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('product_id', sa.Integer, sa.ForeignKey('products.id', ondelete='CASCADE'), index=True),
        sa.Column('name', sa.String(256)),
        sa.Column('url', sa.String(1024), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        'events',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('page_id', sa.Integer, sa.ForeignKey('pages.id', ondelete='CASCADE'), index=True),
        sa.Column('name', sa.String(256), index=True),
        sa.Column('status', sa.String(16), index=True, server_default='to_implement'),
        sa.Column('test_date', sa.DateTime, nullable=True),
        sa.Column('properties', sa.Text, server_default='{}'),
        sa.Column('created_at', sa.DateTime, index=True),
        sa.Column('updated_at', sa.DateTime, index=True),
    )
    op.create_table(
        'properties',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('product_id', sa.Integer, sa.ForeignKey('products.id', ondelete='CASCADE'), index=True),
        sa.Column('name', sa.String(256)),
        sa.Column('type', sa.String(16), server_default='string'),
        sa.Column('description', sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index('ux_property_product_name', 'properties', ['product_id', 'name'], unique=True)
    op.create_table(
        'suggested_values',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('product_id', sa.Integer, sa.ForeignKey('products.id', ondelete='CASCADE'), index=True),
        sa.Column('value', sa.Text),
        sa.Column('is_contextual', sa.Boolean, index=True, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index('ux_suggested_value_product_value', 'suggested_values', ['product_id', 'value'], unique=True)
    op.create_table(
        'property_values',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('property_id', sa.Integer, sa.ForeignKey('properties.id', ondelete='CASCADE'), index=True),
        sa.Column('suggested_value_id', sa.Integer, sa.ForeignKey('suggested_values.id', ondelete='CASCADE'), index=True),
        sa.Column('created_at', sa.DateTime),
    )
    op.create_index('ux_property_value_pair', 'property_values', ['property_id', 'suggested_value_id'], unique=True)
    op.create_table(
        'common_properties',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('product_id', sa.Integer, sa.ForeignKey('products.id', ondelete='CASCADE'), index=True),
        sa.Column('property_id', sa.Integer, sa.ForeignKey('properties.id', ondelete='CASCADE'), unique=True),
        sa.Column('suggested_value_id', sa.Integer, sa.ForeignKey('suggested_values.id', ondelete='CASCADE'), index=True),
        *_timestamps(),
    )
    op.create_table(
        'event_history',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('event_id', sa.Integer, sa.ForeignKey('events.id', ondelete='CASCADE'), index=True),
        sa.Column('field', sa.String(64), index=True),
        sa.Column('old_value', sa.Text, nullable=True),
        sa.Column('new_value', sa.Text, nullable=True),
        sa.Column('author', sa.String(128), index=True),
        sa.Column('created_at', sa.DateTime, index=True),
    )


def downgrade():
    op.drop_table('event_history')
    op.drop_table('common_properties')
    op.drop_index('ux_property_value_pair', table_name='property_values')
    op.drop_table('property_values')
    op.drop_index('ux_suggested_value_product_value', table_name='suggested_values')
    op.drop_table('suggested_values')
    op.drop_index('ux_property_product_name', table_name='properties')
    op.drop_table('properties')
    op.drop_table('events')
    op.drop_table('pages')
    op.drop_table('products')
