"""create user and score tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'user' not in existing_tables:
        op.create_table(
            'user',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('username', sa.String(length=64), nullable=False),
            sa.Column('nickname', sa.String(length=64), nullable=True),
            sa.Column('password_hash', sa.String(length=256), nullable=False),
        )
        op.create_index('ix_user_username', 'user', ['username'], unique=True)

    if 'score' not in existing_tables:
        op.create_table(
            'score',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=True),
            sa.Column('identity_hash', sa.String(length=64), nullable=False),
            sa.Column('session_token', sa.String(length=36), nullable=False),
            sa.Column('completion_time_ms', sa.Integer(), nullable=False),
            sa.Column('move_count', sa.Integer(), nullable=False),
            sa.Column('final_board', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint('session_token', name='uq_score_session_token'),
            sa.CheckConstraint('completion_time_ms >= 0', name='ck_score_time_nonnegative'),
            sa.CheckConstraint('move_count >= 0', name='ck_score_moves_nonnegative'),
        )
        op.create_index('ix_score_ranking', 'score', ['completion_time_ms', 'move_count'])
        op.create_index('ix_score_user_history', 'score', ['user_id', sa.text('created_at DESC')])
        op.create_index('ix_score_identity_hash', 'score', ['identity_hash'])


def downgrade():
    op.drop_index('ix_score_identity_hash', table_name='score')
    op.drop_index('ix_score_user_history', table_name='score')
    op.drop_index('ix_score_ranking', table_name='score')
    op.drop_table('score')
    op.drop_index('ix_user_username', table_name='user')
    op.drop_table('user')
