"""Initial schema

Revision ID: 001_initial
Revises:
Create Date: 2025-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create initial database schema:
    - qr_codes table: slug -> target URL mappings, unique slug, indexed owner
    - visits table: one row per redirect, cascades with its QR code
    """
    op.create_table(
        'qr_codes',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('user_id', sa.String(length=128), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('target_url', sa.Text(), nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.Column('color', sa.String(length=7), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_qr_codes_slug', 'qr_codes', ['slug'], unique=True)
    op.create_index('ix_qr_codes_user_id', 'qr_codes', ['user_id'])
    op.create_index('ix_qr_codes_created_at', 'qr_codes', ['created_at'])

    op.create_table(
        'visits',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('qr_code_id', sa.String(length=32), nullable=False),
        sa.Column('ip', sa.String(length=45), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=True),
        sa.Column('country_code', sa.String(length=8), nullable=True),
        sa.Column('device', sa.String(length=20), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['qr_code_id'], ['qr_codes.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_visits_qr_code_id', 'visits', ['qr_code_id'])
    op.create_index('ix_visits_timestamp', 'visits', ['timestamp'])


def downgrade() -> None:
    op.drop_index('ix_visits_timestamp', table_name='visits')
    op.drop_index('ix_visits_qr_code_id', table_name='visits')
    op.drop_table('visits')

    op.drop_index('ix_qr_codes_created_at', table_name='qr_codes')
    op.drop_index('ix_qr_codes_user_id', table_name='qr_codes')
    op.drop_index('ix_qr_codes_slug', table_name='qr_codes')
    op.drop_table('qr_codes')
