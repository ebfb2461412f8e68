"""create_organizations_and_users

Revision ID: b7e2c41f9a03
Revises:
Create Date: 2026-10-19 09:12:44.318205

Initial schema:
- organizations with an optional, range-checked coordinate pair
- users belonging to one organization, unique email
- soft delete columns on both tables
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'b7e2c41f9a03'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create organizations and users."""
    op.create_table(
        'organizations',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('latitude', sa.Float, nullable=True),
        sa.Column('longitude', sa.Float, nullable=True),
        sa.Column('address', sa.Text, nullable=True),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('image_urls', sa.JSON, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('is_deleted', sa.Boolean, server_default=sa.false(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_organizations'),
        sa.CheckConstraint(
            '(latitude IS NULL) = (longitude IS NULL)',
            name='ck_organizations_coordinate_pair',
        ),
        sa.CheckConstraint(
            'latitude IS NULL OR (latitude >= -90 AND latitude <= 90)',
            name='ck_organizations_latitude_range',
        ),
        sa.CheckConstraint(
            'longitude IS NULL OR (longitude >= -180 AND longitude <= 180)',
            name='ck_organizations_longitude_range',
        ),
    )
    op.create_index('ix_organizations_name', 'organizations', ['name'])
    op.create_index('ix_organizations_is_deleted', 'organizations', ['is_deleted'])

    op.create_table(
        'users',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('organization_id', sa.String(36), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=True),
        sa.Column('phone_number', sa.String(16), nullable=True),
        sa.Column('social_media', sa.Text, nullable=True),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('avatar_url', sa.Text, nullable=True),
        sa.Column('research_categories', sa.JSON, nullable=False),
        sa.Column('is_admin', sa.Boolean, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('is_deleted', sa.Boolean, server_default=sa.false(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sa.ForeignKeyConstraint(
            ['organization_id'],
            ['organizations.id'],
            name='fk_users_organization_id_organizations',
        ),
    )
    op.create_index('ix_users_name', 'users', ['name'])
    op.create_index('ix_users_organization_id', 'users', ['organization_id'])
    op.create_index('ix_users_is_deleted', 'users', ['is_deleted'])


def downgrade() -> None:
    """Drop users and organizations."""
    op.drop_index('ix_users_is_deleted', table_name='users')
    op.drop_index('ix_users_organization_id', table_name='users')
    op.drop_index('ix_users_name', table_name='users')
    op.drop_table('users')

    op.drop_index('ix_organizations_is_deleted', table_name='organizations')
    op.drop_index('ix_organizations_name', table_name='organizations')
    op.drop_table('organizations')
