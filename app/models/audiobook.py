# app/models/audiobook.py
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from app.db.base import Base

CONTENT_TYPES = ("book", "music", "podcast", "article")
STATUSES = ("draft", "submitted", "under_review", "approved", "rejected")


class Audiobook(Base):
    """A content item: audiobook, music album, podcast or article."""

    __tablename__ = "audiobooks"

    id = Column(Integer, primary_key=True, index=True)
    title_fa = Column(String(300), nullable=False)
    title_en = Column(String(300), nullable=True)
    subtitle_fa = Column(String(300), nullable=True)
    description_fa = Column(Text, nullable=True)

    narrator_id = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)

    content_type = Column(String(20), nullable=False, default="book", index=True)
    status = Column(String(20), nullable=False, default="draft", index=True)
    rejection_reason = Column(Text, nullable=True)

    cover_storage_path = Column(String(1024), nullable=True)
    cover_url = Column(String(1024), nullable=True)
    epub_storage_path = Column(String(1024), nullable=True)

    price_toman = Column(Integer, nullable=False, default=0)
    is_free = Column(Boolean, nullable=False, default=False)
    is_featured = Column(Boolean, nullable=False, default=False)
    is_parasto_brand = Column(Boolean, nullable=False, default=False)

    chapter_count = Column(Integer, nullable=False, default=0)
    total_duration_seconds = Column(Integer, nullable=False, default=0)

    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_by = Column(String(36), nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    narrator = relationship("Profile", foreign_keys=[narrator_id])
    category = relationship("Category")
    chapters = relationship(
        "Chapter",
        back_populates="audiobook",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    book_metadata = relationship(
        "BookMetadata", uselist=False, cascade="all, delete-orphan", passive_deletes=True
    )
    music_metadata = relationship(
        "MusicMetadata", uselist=False, cascade="all, delete-orphan", passive_deletes=True
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title_fa": self.title_fa,
            "title_en": self.title_en,
            "subtitle_fa": self.subtitle_fa,
            "description_fa": self.description_fa,
            "narrator_id": self.narrator_id,
            "category_id": self.category_id,
            "content_type": self.content_type,
            "status": self.status,
            "rejection_reason": self.rejection_reason,
            "cover_url": self.cover_url,
            "cover_storage_path": self.cover_storage_path,
            "epub_storage_path": self.epub_storage_path,
            "price_toman": self.price_toman,
            "is_free": bool(self.is_free),
            "is_featured": bool(self.is_featured),
            "is_parasto_brand": bool(self.is_parasto_brand),
            "chapter_count": self.chapter_count,
            "reviewed_at": self.reviewed_at.isoformat() if self.reviewed_at else None,
            "reviewed_by": self.reviewed_by,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class AudiobookMusicCategory(Base):
    __tablename__ = "audiobook_music_categories"

    audiobook_id = Column(Integer, ForeignKey("audiobooks.id", ondelete="CASCADE"), primary_key=True)
    music_category_id = Column(Integer, ForeignKey("music_categories.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class BookMetadata(Base):
    __tablename__ = "book_metadata"

    audiobook_id = Column(Integer, ForeignKey("audiobooks.id", ondelete="CASCADE"), primary_key=True)
    author_name = Column(String(300), nullable=True)
    author_name_en = Column(String(300), nullable=True)
    translator = Column(String(300), nullable=True)
    translator_en = Column(String(300), nullable=True)
    narrator_name = Column(String(300), nullable=True)
    publisher = Column(String(300), nullable=True)
    publication_year = Column(Integer, nullable=True)
    isbn = Column(String(32), nullable=True)

    EDITABLE = (
        "author_name",
        "author_name_en",
        "translator",
        "translator_en",
        "narrator_name",
        "publisher",
        "publication_year",
        "isbn",
    )

    def to_dict(self) -> dict:
        return {key: getattr(self, key) for key in self.EDITABLE}


class MusicMetadata(Base):
    __tablename__ = "music_metadata"

    audiobook_id = Column(Integer, ForeignKey("audiobooks.id", ondelete="CASCADE"), primary_key=True)
    artist_name = Column(String(300), nullable=True)
    artist_name_en = Column(String(300), nullable=True)
    featured_artists = Column(Text, nullable=True)
    composer = Column(String(300), nullable=True)
    lyricist = Column(String(300), nullable=True)
    album_title = Column(String(300), nullable=True)
    label = Column(String(300), nullable=True)

    EDITABLE = (
        "artist_name",
        "artist_name_en",
        "featured_artists",
        "composer",
        "lyricist",
        "album_title",
        "label",
    )

    def to_dict(self) -> dict:
        return {key: getattr(self, key) for key in self.EDITABLE}
