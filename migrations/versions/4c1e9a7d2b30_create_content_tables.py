"""create profiles, categories, audiobooks, chapters, creators

Revision ID: 4c1e9a7d2b30
Revises:
Create Date: 2026-09-28 10:12:41.118203
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "4c1e9a7d2b30"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(*names):
    return [
        sa.Column(name, sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True)
        for name in names
    ]


def _category_columns():
    return [
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name_fa", sa.String(length=200), nullable=False, unique=True),
        sa.Column("name_en", sa.String(length=200), nullable=True),
        sa.Column("description_fa", sa.Text(), nullable=True),
        sa.Column("icon", sa.String(length=64), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps("created_at"),
    ]


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("avatar_url", sa.String(length=1024), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="listener"),
        sa.Column("is_disabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("admin_note", sa.Text(), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        *_timestamps("created_at", "updated_at"),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"], unique=True)
    op.create_index("ix_profiles_role", "profiles", ["role"])
    op.create_index("ix_profiles_created_at", "profiles", ["created_at"])

    op.create_table("categories", *_category_columns(), sa.Column("cover_url", sa.String(length=1024), nullable=True))
    op.create_index("ix_categories_sort_order", "categories", ["sort_order"])
    op.create_table("music_categories", *_category_columns())
    op.create_index("ix_music_categories_sort_order", "music_categories", ["sort_order"])

    op.create_table(
        "audiobooks",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("title_fa", sa.String(length=300), nullable=False),
        sa.Column("title_en", sa.String(length=300), nullable=True),
        sa.Column("subtitle_fa", sa.String(length=300), nullable=True),
        sa.Column("description_fa", sa.Text(), nullable=True),
        sa.Column("narrator_id", sa.String(length=36), sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True),
        sa.Column("content_type", sa.String(length=20), nullable=False, server_default="book"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("cover_storage_path", sa.String(length=1024), nullable=True),
        sa.Column("cover_url", sa.String(length=1024), nullable=True),
        sa.Column("epub_storage_path", sa.String(length=1024), nullable=True),
        sa.Column("price_toman", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_free", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_featured", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_parasto_brand", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("chapter_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_duration_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_by", sa.String(length=36), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps("created_at", "updated_at"),
    )
    op.create_index("ix_audiobooks_narrator_id", "audiobooks", ["narrator_id"])
    op.create_index("ix_audiobooks_content_type", "audiobooks", ["content_type"])
    op.create_index("ix_audiobooks_status", "audiobooks", ["status"])
    op.create_index("ix_audiobooks_created_at", "audiobooks", ["created_at"])

    op.create_table(
        "audiobook_music_categories",
        sa.Column("audiobook_id", sa.Integer(), sa.ForeignKey("audiobooks.id", ondelete="CASCADE"), primary_key=True),
        sa.Column(
            "music_category_id",
            sa.Integer(),
            sa.ForeignKey("music_categories.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        *_timestamps("created_at"),
    )

    op.create_table(
        "book_metadata",
        sa.Column("audiobook_id", sa.Integer(), sa.ForeignKey("audiobooks.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("author_name", sa.String(length=300), nullable=True),
        sa.Column("author_name_en", sa.String(length=300), nullable=True),
        sa.Column("translator", sa.String(length=300), nullable=True),
        sa.Column("translator_en", sa.String(length=300), nullable=True),
        sa.Column("narrator_name", sa.String(length=300), nullable=True),
        sa.Column("publisher", sa.String(length=300), nullable=True),
        sa.Column("publication_year", sa.Integer(), nullable=True),
        sa.Column("isbn", sa.String(length=32), nullable=True),
    )
    op.create_table(
        "music_metadata",
        sa.Column("audiobook_id", sa.Integer(), sa.ForeignKey("audiobooks.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("artist_name", sa.String(length=300), nullable=True),
        sa.Column("artist_name_en", sa.String(length=300), nullable=True),
        sa.Column("featured_artists", sa.Text(), nullable=True),
        sa.Column("composer", sa.String(length=300), nullable=True),
        sa.Column("lyricist", sa.String(length=300), nullable=True),
        sa.Column("album_title", sa.String(length=300), nullable=True),
        sa.Column("label", sa.String(length=300), nullable=True),
    )

    op.create_table(
        "chapters",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("audiobook_id", sa.Integer(), sa.ForeignKey("audiobooks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title_fa", sa.String(length=300), nullable=False),
        sa.Column("title_en", sa.String(length=300), nullable=True),
        sa.Column("chapter_index", sa.Integer(), nullable=True),
        sa.Column("audio_storage_path", sa.String(length=1024), nullable=True),
        sa.Column("audio_format", sa.String(length=16), nullable=True),
        sa.Column("duration_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("file_size_bytes", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("is_preview", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps("created_at"),
        sa.UniqueConstraint("audiobook_id", "chapter_index", name="uq_chapters_audiobook_index"),
    )
    op.create_index("ix_chapters_audiobook_id", "chapters", ["audiobook_id"])

    op.create_table(
        "creators",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("display_name", sa.String(length=300), nullable=False),
        sa.Column("display_name_latin", sa.String(length=300), nullable=True),
        sa.Column("creator_type", sa.String(length=20), nullable=False, server_default="other"),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("avatar_url", sa.String(length=1024), nullable=True),
        sa.Column("collection_label", sa.String(length=300), nullable=True),
        *_timestamps("created_at", "updated_at"),
    )
    op.create_index("ix_creators_display_name", "creators", ["display_name"])

    op.create_table(
        "audiobook_creators",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("audiobook_id", sa.Integer(), sa.ForeignKey("audiobooks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("creator_id", sa.String(length=36), sa.ForeignKey("creators.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="other"),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps("created_at"),
        sa.UniqueConstraint("audiobook_id", "creator_id", "role", name="uq_audiobook_creator_role"),
    )
    op.create_index("ix_audiobook_creators_audiobook_id", "audiobook_creators", ["audiobook_id"])
    op.create_index("ix_audiobook_creators_creator_id", "audiobook_creators", ["creator_id"])


def downgrade() -> None:
    # Use IF EXISTS so downgrade doesn't fail when objects are missing
    for table in (
        "audiobook_creators",
        "creators",
        "chapters",
        "music_metadata",
        "book_metadata",
        "audiobook_music_categories",
        "audiobooks",
        "music_categories",
        "categories",
        "profiles",
    ):
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE;")
