"""add device_play table for the one-play-per-day gate

Revision ID: 5c2d7e9a1b40
Revises:
Create Date: 2025-09-14 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2d7e9a1b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'device_play' in insp.get_table_names():
        return
    op.create_table(
        'device_play',
        sa.Column('device_id', sa.String(length=64), nullable=False),
        sa.Column('last_date', sa.String(length=10), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('device_id'),
    )


def downgrade():
    op.drop_table('device_play')
