"""Allocation and rate schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

OVERLAP_CONSTRAINT = 'ex_allocations_no_overlap'


def upgrade() -> None:
    """Upgrade database schema."""
    # Create rate_rules table
    op.create_table('rate_rules',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('rate_type', sa.String(length=20), nullable=False),
        sa.Column('base_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('applicable_item_type', sa.String(length=32), nullable=False),
        sa.Column('applicable_item_id', sa.Uuid(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('days_of_week', sa.JSON(), nullable=False),
        sa.Column('min_stay', sa.Integer(), nullable=False),
        sa.Column('max_stay', sa.Integer(), nullable=True),
        sa.Column('priority', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('base_price >= 0', name='ck_rate_rule_base_price_non_negative'),
        sa.CheckConstraint('min_stay >= 1', name='ck_rate_rule_min_stay_positive'),
        sa.CheckConstraint('max_stay IS NULL OR max_stay >= min_stay', name='ck_rate_rule_stay_bounds_ordered'),
        sa.CheckConstraint(
            'start_date IS NULL OR end_date IS NULL OR start_date <= end_date',
            name='ck_rate_rule_date_range_ordered'
        ),
        sa.CheckConstraint('length(currency) = 3', name='ck_rate_rule_currency_length'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_rate_rules_applicable_item_type'), 'rate_rules', ['applicable_item_type'], unique=False)
    op.create_index(op.f('ix_rate_rules_applicable_item_id'), 'rate_rules', ['applicable_item_id'], unique=False)
    op.create_index(op.f('ix_rate_rules_is_active'), 'rate_rules', ['is_active'], unique=False)

    # Create rate_modifiers table
    op.create_table('rate_modifiers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('rate_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('modifier_type', sa.String(length=20), nullable=False),
        sa.Column('value', sa.Numeric(precision=12, scale=4), nullable=False),
        sa.Column('condition', sa.Text(), nullable=True),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint(
            "modifier_type != 'percentage' OR (value >= -100 AND value <= 1000)",
            name='ck_rate_modifier_percentage_range'
        ),
        sa.ForeignKeyConstraint(['rate_id'], ['rate_rules.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('rate_id', 'position', name='uq_rate_modifier_position')
    )
    op.create_index(op.f('ix_rate_modifiers_rate_id'), 'rate_modifiers', ['rate_id'], unique=False)

    # Create allocations table
    op.create_table('allocations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('resource_id', sa.Uuid(), nullable=False),
        sa.Column('item_type', sa.String(length=32), nullable=False),
        sa.Column('starts_at', sa.DateTime(), nullable=False),
        sa.Column('ends_at', sa.DateTime(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('party_size', sa.Integer(), nullable=False),
        sa.Column('confirmation_code', sa.String(length=16), nullable=False),
        sa.Column('guest_name', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('total_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('applied_rate_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('starts_at < ends_at', name='ck_allocation_interval_ordered'),
        sa.CheckConstraint('party_size > 0', name='ck_allocation_party_size_positive'),
        sa.CheckConstraint('total_price >= 0', name='ck_allocation_total_price_non_negative'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('confirmation_code')
    )
    op.create_index(op.f('ix_allocations_resource_id'), 'allocations', ['resource_id'], unique=False)
    op.create_index(op.f('ix_allocations_item_type'), 'allocations', ['item_type'], unique=False)
    op.create_index(op.f('ix_allocations_status'), 'allocations', ['status'], unique=False)
    op.create_index('ix_allocations_resource_interval', 'allocations', ['resource_id', 'starts_at', 'ends_at'], unique=False)

    # Live allocations on one resource may not overlap; [) matches the engine's half-open intervals
    if op.get_bind().dialect.name == 'postgresql':
        op.execute('CREATE EXTENSION IF NOT EXISTS btree_gist')
        op.execute(
            f"""
            ALTER TABLE allocations
            ADD CONSTRAINT {OVERLAP_CONSTRAINT}
            EXCLUDE USING gist (
                resource_id WITH =,
                tsrange(starts_at, ends_at, '[)') WITH &&
            )
            WHERE (status NOT IN ('cancelled', 'no_show'))
            """
        )


def downgrade() -> None:
    """Downgrade database schema."""
    if op.get_bind().dialect.name == 'postgresql':
        op.execute(f'ALTER TABLE allocations DROP CONSTRAINT IF EXISTS {OVERLAP_CONSTRAINT}')

    op.drop_index('ix_allocations_resource_interval', table_name='allocations')
    op.drop_index(op.f('ix_allocations_status'), table_name='allocations')
    op.drop_index(op.f('ix_allocations_item_type'), table_name='allocations')
    op.drop_index(op.f('ix_allocations_resource_id'), table_name='allocations')
    op.drop_table('allocations')

    op.drop_index(op.f('ix_rate_modifiers_rate_id'), table_name='rate_modifiers')
    op.drop_table('rate_modifiers')

    op.drop_index(op.f('ix_rate_rules_is_active'), table_name='rate_rules')
    op.drop_index(op.f('ix_rate_rules_applicable_item_id'), table_name='rate_rules')
    op.drop_index(op.f('ix_rate_rules_applicable_item_type'), table_name='rate_rules')
    op.drop_table('rate_rules')
