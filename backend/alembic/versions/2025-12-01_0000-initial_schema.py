"""initial_schema_users_content_collections

Revision ID: 5b1f3c2a9d10
Revises:
Create Date: 2025-12-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '5b1f3c2a9d10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  comment='Timestamp when record was created (UTC)'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  comment='Timestamp when record was last updated (UTC)'),
    ]


def upgrade() -> None:
    """
    Create the initial schema.

    Tables:
    1. users - account owning all other rows
    2. content_items - saved links/documents and their enrichment
    3. collections - user-defined groups
    4. collection_items - junction between collections and content items
    """

    # ================================
    # users
    # ================================
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False, comment='Opaque unique identifier'),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_users')),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    # ================================
    # content_items
    # ================================
    op.create_table(
        'content_items',
        sa.Column('id', sa.Uuid(), nullable=False, comment='Opaque unique identifier'),
        sa.Column('user_id', sa.Uuid(), nullable=False, comment='Owning user'),
        sa.Column('title', sa.Text(), nullable=False,
                  comment='Title; a placeholder until enrichment finishes'),
        sa.Column('summary', sa.Text(), nullable=True,
                  comment='2-3 sentence summary, or the failure diagnostic'),
        sa.Column('content_text', sa.Text(), nullable=True,
                  comment='User notes at submission, then the start of the cleaned page text'),
        sa.Column('url', sa.String(length=2048), nullable=False,
                  comment='Submitted link (document://<name> for uploads)'),
        sa.Column(
            'source',
            sa.Enum('web', 'youtube', 'linkedin', 'medium', 'substack', 'document',
                    name='source_type', native_enum=False, length=20,
                    create_constraint=False),
            nullable=False,
            comment='Platform classification',
        ),
        sa.Column('tags', postgresql.JSONB(astext_type=sa.Text()), nullable=False,
                  comment='Short topic tags from enrichment'),
        sa.Column('key_takeaways', postgresql.JSONB(astext_type=sa.Text()), nullable=False,
                  comment='Key insights from enrichment'),
        sa.Column('thumbnail_url', sa.String(length=2048), nullable=True,
                  comment='Preview image URL, if one was found'),
        sa.Column(
            'processing_status',
            sa.Enum('pending', 'processing', 'completed', 'failed',
                    name='processing_status', native_enum=False, length=20,
                    create_constraint=False),
            nullable=False,
            comment='Enrichment lifecycle state',
        ),
        sa.Column('is_favorite', sa.Boolean(), nullable=False,
                  comment='User-toggled favorite flag'),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name=op.f('fk_content_items_user_id_users'),
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_content_items')),
    )
    op.create_index(op.f('ix_content_items_user_id'), 'content_items', ['user_id'])
    op.create_index(op.f('ix_content_items_source'), 'content_items', ['source'])
    op.create_index(
        op.f('ix_content_items_processing_status'), 'content_items', ['processing_status']
    )
    # Library listing: a user's items newest first
    op.create_index(
        'ix_content_items_user_id_created_at', 'content_items', ['user_id', 'created_at']
    )

    # ================================
    # collections
    # ================================
    op.create_table(
        'collections',
        sa.Column('id', sa.Uuid(), nullable=False, comment='Opaque unique identifier'),
        sa.Column('user_id', sa.Uuid(), nullable=False, comment='Owning user'),
        sa.Column('name', sa.String(length=100), nullable=False, comment='Collection name'),
        sa.Column('description', sa.String(length=500), nullable=True,
                  comment='Optional description'),
        sa.Column('color', sa.String(length=50), nullable=False, comment='Display color tag'),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name=op.f('fk_collections_user_id_users'),
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_collections')),
    )
    op.create_index(op.f('ix_collections_user_id'), 'collections', ['user_id'])

    # ================================
    # collection_items
    # ================================
    op.create_table(
        'collection_items',
        sa.Column('id', sa.Uuid(), nullable=False, comment='Opaque unique identifier'),
        sa.Column('collection_id', sa.Uuid(), nullable=False,
                  comment='Foreign key to collections table'),
        sa.Column('content_item_id', sa.Uuid(), nullable=False,
                  comment='Foreign key to content_items table'),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['collection_id'], ['collections.id'],
            name=op.f('fk_collection_items_collection_id_collections'),
            ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['content_item_id'], ['content_items.id'],
            name=op.f('fk_collection_items_content_item_id_content_items'),
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_collection_items')),
        sa.UniqueConstraint(
            'collection_id', 'content_item_id', name='uq_collection_content_item'
        ),
    )
    op.create_index(
        op.f('ix_collection_items_collection_id'), 'collection_items', ['collection_id']
    )
    op.create_index(
        op.f('ix_collection_items_content_item_id'), 'collection_items', ['content_item_id']
    )


def downgrade() -> None:
    """Drop every table, children first."""
    op.drop_index(op.f('ix_collection_items_content_item_id'), table_name='collection_items')
    op.drop_index(op.f('ix_collection_items_collection_id'), table_name='collection_items')
    op.drop_table('collection_items')

    op.drop_index(op.f('ix_collections_user_id'), table_name='collections')
    op.drop_table('collections')

    op.drop_index('ix_content_items_user_id_created_at', table_name='content_items')
    op.drop_index(op.f('ix_content_items_processing_status'), table_name='content_items')
    op.drop_index(op.f('ix_content_items_source'), table_name='content_items')
    op.drop_index(op.f('ix_content_items_user_id'), table_name='content_items')
    op.drop_table('content_items')

    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
