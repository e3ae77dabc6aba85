"""Initial schema: dimensions, raw hits, rollups and settings.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ### Dimension tables ###
    op.create_table(
        'paths',
        sa.Column('path_id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('path', sa.String(2048), nullable=False, unique=True),
        sa.Column('title', sa.Text(), nullable=False, server_default=''),
        sa.Column('event', sa.Boolean(), nullable=False, server_default=sa.false()),
    )

    op.create_table(
        'refs',
        sa.Column('ref_id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('ref', sa.Text(), nullable=False),
        sa.Column('ref_scheme', sa.String(1), nullable=False, server_default='o'),
        sa.UniqueConstraint('ref', 'ref_scheme', name='uq_refs_ref_scheme'),
    )

    op.create_table(
        'browsers',
        sa.Column('browser_id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False, server_default=''),
        sa.Column('version', sa.String(50), nullable=False, server_default=''),
        sa.UniqueConstraint('name', 'version', name='uq_browsers_name_version'),
    )

    op.create_table(
        'systems',
        sa.Column('system_id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False, server_default=''),
        sa.Column('version', sa.String(50), nullable=False, server_default=''),
        sa.UniqueConstraint('name', 'version', name='uq_systems_name_version'),
    )

    # ### Raw hit log ###
    op.create_table(
        'hits',
        sa.Column('hit_id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('path_id', sa.Integer(), sa.ForeignKey('paths.path_id'), nullable=False),
        sa.Column('ref_id', sa.Integer(), sa.ForeignKey('refs.ref_id'), nullable=False),
        sa.Column('browser_id', sa.Integer(), sa.ForeignKey('browsers.browser_id'), nullable=False),
        sa.Column('system_id', sa.Integer(), sa.ForeignKey('systems.system_id'), nullable=False),
        sa.Column('session', sa.String(64)),
        sa.Column('first_visit', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('width', sa.Integer()),
        sa.Column('location', sa.String(2), nullable=False, server_default=''),
        sa.Column('language', sa.String(3)),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_hits_created_at', 'hits', ['created_at'])
    op.create_index('idx_hits_path_id', 'hits', ['path_id'])

    # ### Rollups ###
    op.create_table(
        'hit_counts',
        sa.Column('path_id', sa.Integer(), sa.ForeignKey('paths.path_id'), primary_key=True),
        sa.Column('hour', sa.DateTime(timezone=True), primary_key=True),
        sa.Column('total', sa.Integer(), nullable=False, server_default='0'),
    )

    op.create_table(
        'hit_stats',
        sa.Column('path_id', sa.Integer(), sa.ForeignKey('paths.path_id'), primary_key=True),
        sa.Column('day', sa.Date(), primary_key=True),
        sa.Column('stats', postgresql.JSONB(), nullable=False),
    )

    op.create_table(
        'ref_counts',
        sa.Column('path_id', sa.Integer(), sa.ForeignKey('paths.path_id'), primary_key=True),
        sa.Column('ref_id', sa.Integer(), sa.ForeignKey('refs.ref_id'), primary_key=True),
        sa.Column('hour', sa.DateTime(timezone=True), primary_key=True),
        sa.Column('total', sa.Integer(), nullable=False, server_default='0'),
    )

    op.create_table(
        'browser_stats',
        sa.Column('path_id', sa.Integer(), sa.ForeignKey('paths.path_id'), primary_key=True),
        sa.Column('browser_id', sa.Integer(), sa.ForeignKey('browsers.browser_id'), primary_key=True),
        sa.Column('day', sa.Date(), primary_key=True),
        sa.Column('count', sa.Integer(), nullable=False, server_default='0'),
    )

    op.create_table(
        'system_stats',
        sa.Column('path_id', sa.Integer(), sa.ForeignKey('paths.path_id'), primary_key=True),
        sa.Column('system_id', sa.Integer(), sa.ForeignKey('systems.system_id'), primary_key=True),
        sa.Column('day', sa.Date(), primary_key=True),
        sa.Column('count', sa.Integer(), nullable=False, server_default='0'),
    )

    op.create_table(
        'location_stats',
        sa.Column('path_id', sa.Integer(), sa.ForeignKey('paths.path_id'), primary_key=True),
        sa.Column('day', sa.Date(), primary_key=True),
        sa.Column('location', sa.String(2), primary_key=True),
        sa.Column('count', sa.Integer(), nullable=False, server_default='0'),
    )

    op.create_table(
        'size_stats',
        sa.Column('path_id', sa.Integer(), sa.ForeignKey('paths.path_id'), primary_key=True),
        sa.Column('day', sa.Date(), primary_key=True),
        sa.Column('width', sa.Integer(), primary_key=True),
        sa.Column('count', sa.Integer(), nullable=False, server_default='0'),
    )

    # ### Settings ###
    op.create_table(
        'settings',
        sa.Column('key', sa.String(100), primary_key=True),
        sa.Column('value', sa.Text(), nullable=True),
    )

    # ### Reserved rows ###
    op.execute("INSERT INTO refs (ref_id, ref, ref_scheme) VALUES (1, '', 'o')")
    op.execute("INSERT INTO browsers (browser_id, name, version) VALUES (1, '', '')")
    op.execute("INSERT INTO systems (system_id, name, version) VALUES (1, '', '')")
    for table, column in (('refs', 'ref_id'), ('browsers', 'browser_id'), ('systems', 'system_id')):
        op.execute(
            f"SELECT setval(pg_get_serial_sequence('{table}', '{column}'), 1)"
        )
    op.execute(
        "INSERT INTO settings (key, value) VALUES "
        "('site_name', 'My Analytics'), "
        "('data_retention_days', '0'), "
        "('first_hit_at', NULL)"
    )


def downgrade() -> None:
    op.drop_table('settings')
    op.drop_table('size_stats')
    op.drop_table('location_stats')
    op.drop_table('system_stats')
    op.drop_table('browser_stats')
    op.drop_table('ref_counts')
    op.drop_table('hit_stats')
    op.drop_table('hit_counts')
    op.drop_index('idx_hits_path_id', table_name='hits')
    op.drop_index('idx_hits_created_at', table_name='hits')
    op.drop_table('hits')
    op.drop_table('systems')
    op.drop_table('browsers')
    op.drop_table('refs')
    op.drop_table('paths')
