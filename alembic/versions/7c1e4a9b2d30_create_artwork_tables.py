"""create_artwork_tables

Revision ID: 7c1e4a9b2d30
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '7c1e4a9b2d30'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Must stay identical to app.services.artwork_repository.search_vector()
SEARCH_INDEX_SQL = (
    "CREATE INDEX ix_artworks_search ON artworks USING gin (to_tsvector('english'::regconfig, "
    "coalesce(title, '') || ' ' || coalesce(description, '') || ' ' || "
    "coalesce(category, '') || ' ' || coalesce(medium, '') || ' ' || "
    "coalesce(style, '')))"
)


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('artist_name', sa.String(length=150), nullable=True),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'artworks',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('uuid', sa.Uuid(), nullable=False),
        sa.Column('artist_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('medium', sa.String(length=100), nullable=True),
        sa.Column('style', sa.String(length=100), nullable=True),
        sa.Column('width', sa.Float(), nullable=True),
        sa.Column('height', sa.Float(), nullable=True),
        sa.Column('depth', sa.Float(), nullable=True),
        sa.Column('dimension_unit', sa.String(length=10), nullable=False),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('is_for_sale', sa.Boolean(), nullable=False),
        sa.Column('is_commissionable', sa.Boolean(), nullable=False),
        sa.Column('availability', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('is_public', sa.Boolean(), nullable=False),
        sa.Column('featured', sa.Boolean(), nullable=False),
        sa.Column('views', sa.Integer(), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['artist_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_artworks_uuid', 'artworks', ['uuid'], unique=True)
    op.create_index('ix_artworks_artist_id', 'artworks', ['artist_id'])
    op.create_index('ix_artworks_category', 'artworks', ['category'])
    op.create_index('ix_artworks_price', 'artworks', ['price'])
    op.create_index('ix_artworks_listing', 'artworks', ['status', 'is_public', 'created_at'])

    # Full-text index backing the listing search on PostgreSQL
    if op.get_bind().dialect.name == 'postgresql':
        op.execute(SEARCH_INDEX_SQL)

    op.create_table(
        'artwork_images',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('artwork_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('url', sa.String(length=500), nullable=False),
        sa.Column('public_id', sa.String(length=500), nullable=True),
        sa.Column('is_main', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['artwork_id'], ['artworks.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_artwork_images_artwork_id', 'artwork_images', ['artwork_id'])

    op.create_table(
        'artwork_tags',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('artwork_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.ForeignKeyConstraint(['artwork_id'], ['artworks.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('artwork_id', 'name', name='unique_artwork_tag'),
    )
    op.create_index('ix_artwork_tags_artwork_id', 'artwork_tags', ['artwork_id'])
    op.create_index('ix_artwork_tags_name', 'artwork_tags', ['name'])

    op.create_table(
        'artwork_likes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('artwork_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['artwork_id'], ['artworks.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'artwork_id', name='unique_user_artwork_like'),
    )
    op.create_index('ix_artwork_likes_user_id', 'artwork_likes', ['user_id'])
    op.create_index('ix_artwork_likes_artwork_id', 'artwork_likes', ['artwork_id'])


def downgrade() -> None:
    op.drop_table('artwork_likes')
    op.drop_table('artwork_tags')
    op.drop_table('artwork_images')
    if op.get_bind().dialect.name == 'postgresql':
        op.execute("DROP INDEX IF EXISTS ix_artworks_search")
    op.drop_table('artworks')
    op.drop_table('users')
