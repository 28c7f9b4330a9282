"""create messages table

Revision ID: a7c3e91f0b2d
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'a7c3e91f0b2d'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'messages',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('token', sa.Text(), nullable=False),
        sa.Column('ttl_unit', sa.Text(), nullable=False),
        sa.Column('ttl_value', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('active_until', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('bound_fingerprint', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token'),
        sa.CheckConstraint("ttl_unit IN ('minutes', 'seconds')", name='ck_messages_ttl_unit'),
        sa.CheckConstraint('ttl_value > 0', name='ck_messages_ttl_value'),
        sa.CheckConstraint(
            '(active_until IS NULL) = (bound_fingerprint IS NULL)',
            name='ck_messages_binding_pair',
        ),
        schema='public'
    )
    # Indexes for the purge predicate
    op.create_index('ix_messages_created_at', 'messages', ['created_at'], schema='public')
    op.create_index('ix_messages_active_until', 'messages', ['active_until'], schema='public')


def downgrade() -> None:
    op.drop_index('ix_messages_active_until', table_name='messages', schema='public')
    op.drop_index('ix_messages_created_at', table_name='messages', schema='public')
    op.drop_table('messages', schema='public')
