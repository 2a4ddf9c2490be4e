"""create user management tables

Revision ID: 1f3c9a7d2b40
Revises:
Create Date: 2026-10-18 10:12:03.418220

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '1f3c9a7d2b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'invite_codes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('used', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('max_uses', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint('used <= max_uses', name='ck_invite_codes_used_le_max_uses'),
    )
    op.create_index('ix_invite_codes_code', 'invite_codes', ['code'], unique=True)

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('privy_user_id', sa.String(), nullable=False),
        sa.Column('wallet', sa.String(), nullable=False),
        sa.Column('social_wallet', sa.String(), nullable=True),
        sa.Column('display_name', sa.String(), nullable=True),
        sa.Column('has_finished_onboarding', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('invited_by_id', sa.Integer(), sa.ForeignKey('invite_codes.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_users_privy_user_id', 'users', ['privy_user_id'], unique=True)
    op.create_index('ix_users_wallet', 'users', ['wallet'], unique=True)
    op.create_index('ix_users_social_wallet', 'users', ['social_wallet'], unique=True)

    op.create_foreign_key('fk_invite_codes_user_id', 'invite_codes', 'users', ['user_id'], ['id'])

    op.create_table(
        'signing_challenges',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('public_key', sa.String(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'social_profiles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.Enum('FARCASTER', 'LENS', 'TALENT_PROTOCOL', 'ENS', name='socialprofiletype'), nullable=False),
        sa.Column('profile_name', sa.String(), nullable=False),
        sa.Column('avatar', sa.String(), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'type', name='uq_social_profiles_user_id_type'),
    )

    op.create_table(
        'recommended_users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('for_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('wallet', sa.String(), nullable=False),
        sa.Column('display_name', sa.String(), nullable=True),
        sa.Column('avatar_url', sa.String(), nullable=True),
        sa.Column('recommendation_score', sa.Float(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_recommended_users_for_id', 'recommended_users', ['for_id'])
    op.create_index('ix_recommended_users_wallet', 'recommended_users', ['wallet'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('recommended_users')
    op.drop_table('social_profiles')
    op.execute('DROP TYPE socialprofiletype')
    op.drop_table('signing_challenges')
    op.drop_constraint('fk_invite_codes_user_id', 'invite_codes', type_='foreignkey')
    op.drop_table('users')
    op.drop_table('invite_codes')
