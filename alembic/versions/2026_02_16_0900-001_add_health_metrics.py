"""Add health_metrics table

Revision ID: 001
Revises:
Create Date: 2026-02-16 09:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create health_metrics table with the dedup index."""
    op.create_table('health_metrics', sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('metric_type', sa.String(length=100), nullable=False),
        sa.Column('value', sa.Numeric(), nullable=False),
        sa.Column('unit', sa.String(length=50), nullable=False),
        sa.Column('recorded_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('source', sa.String(length=50), nullable=False, server_default='apple_health'),
        sa.Column('source_device', sa.String(length=200), nullable=True),
        sa.Column('metadata', postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'))
    # Prevent duplicate imports (same user, type, timestamp, source)
    op.create_index('uq_health_metrics_dedup', 'health_metrics',
                    ['user_id', 'metric_type', 'recorded_at', 'source'], unique=True)
    op.create_index('ix_health_metrics_user_type_date', 'health_metrics', ['user_id', 'metric_type', 'recorded_at'])
    op.create_index('ix_health_metrics_user_date', 'health_metrics', ['user_id', 'recorded_at'])


def downgrade() -> None:
    """Drop health_metrics table."""
    op.drop_index('ix_health_metrics_user_date', table_name='health_metrics')
    op.drop_index('ix_health_metrics_user_type_date', table_name='health_metrics')
    op.drop_index('uq_health_metrics_dedup', table_name='health_metrics')
    op.drop_table('health_metrics')
