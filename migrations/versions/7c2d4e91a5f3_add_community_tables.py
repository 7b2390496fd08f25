"""add_community_tables

Revision ID: 7c2d4e91a5f3
Revises:
Create Date: 2026-10-19 10:42:17.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '7c2d4e91a5f3'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create profiles, community_groups and group_memberships tables."""
    op.create_table('profiles',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('display_name', sa.String(length=100), nullable=True),
        sa.Column('location_street', sa.String(length=255), nullable=True),
        sa.Column('location_city', sa.String(length=255), nullable=True),
        sa.Column('location_state', sa.String(length=255), nullable=True),
        sa.Column('location_country', sa.String(length=255), nullable=True),
        sa.Column('location_formatted_address', sa.Text(), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )

    op.create_table('community_groups',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('category', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('member_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('street', sa.String(length=255), nullable=True),
        sa.Column('city', sa.String(length=255), nullable=False),
        sa.Column('state', sa.String(length=255), nullable=True),
        sa.Column('country', sa.String(length=255), nullable=True),
        sa.Column('formatted_address', sa.Text(), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('location_key', sa.String(length=1024), nullable=False),
        sa.Column('settings', postgresql.JSONB(), server_default='{}', nullable=False),
        sa.Column('tags', postgresql.JSONB(), server_default='[]', nullable=False),
        sa.Column('created_by', sa.UUID(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("category IN ('city', 'street')", name='ck_community_groups_category'),
        sa.CheckConstraint(
            "status IN ('active', 'suspended', 'deleted')",
            name='ck_community_groups_status',
        ),
        sa.CheckConstraint('member_count >= 0', name='ck_community_groups_member_count'),
        sa.ForeignKeyConstraint(['created_by'], ['profiles.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_community_groups_category_status',
        'community_groups',
        ['category', 'status'],
        unique=False,
    )
    # Not unique: duplicates can exist until the merge pass folds them together.
    op.create_index(
        'ix_community_groups_category_location_key',
        'community_groups',
        ['category', 'location_key'],
        unique=False,
    )

    op.create_table('group_memberships',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('group_id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='member'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('joined_at', sa.DateTime(), nullable=False),
        sa.Column('left_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint(
            "role IN ('member', 'moderator', 'admin')",
            name='ck_group_memberships_role',
        ),
        sa.CheckConstraint(
            "status IN ('active', 'inactive', 'banned')",
            name='ck_group_memberships_status',
        ),
        sa.ForeignKeyConstraint(['group_id'], ['community_groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('group_id', 'user_id', name='uq_group_memberships_group_user'),
    )
    op.create_index(
        'ix_group_memberships_user_status',
        'group_memberships',
        ['user_id', 'status'],
        unique=False,
    )
    op.create_index(
        'ix_group_memberships_group_status',
        'group_memberships',
        ['group_id', 'status'],
        unique=False,
    )


def downgrade() -> None:
    """Drop community tables."""
    op.drop_index('ix_group_memberships_group_status', table_name='group_memberships')
    op.drop_index('ix_group_memberships_user_status', table_name='group_memberships')
    op.drop_table('group_memberships')
    op.drop_index('ix_community_groups_category_location_key', table_name='community_groups')
    op.drop_index('ix_community_groups_category_status', table_name='community_groups')
    op.drop_table('community_groups')
    op.drop_table('profiles')
