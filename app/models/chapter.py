# app/models/chapter.py
from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from app.db.base import Base


class Chapter(Base):
    __tablename__ = "chapters"

    id = Column(Integer, primary_key=True, index=True)
    audiobook_id = Column(Integer, ForeignKey("audiobooks.id", ondelete="CASCADE"), nullable=False, index=True)
    title_fa = Column(String(300), nullable=False)
    title_en = Column(String(300), nullable=True)

    # Ordering key within one audiobook; unique per audiobook.
    chapter_index = Column(Integer, nullable=True)

    audio_storage_path = Column(String(1024), nullable=True)
    audio_format = Column(String(16), nullable=True)
    duration_seconds = Column(Integer, nullable=False, default=0)
    file_size_bytes = Column(BigInteger, nullable=False, default=0)
    is_preview = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    audiobook = relationship("Audiobook", back_populates="chapters")

    __table_args__ = (
        UniqueConstraint("audiobook_id", "chapter_index", name="uq_chapters_audiobook_index"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "audiobook_id": self.audiobook_id,
            "title_fa": self.title_fa,
            "title_en": self.title_en,
            "chapter_index": self.chapter_index,
            "audio_storage_path": self.audio_storage_path,
            "audio_format": self.audio_format,
            "duration_seconds": self.duration_seconds,
            "file_size_bytes": self.file_size_bytes,
            "is_preview": bool(self.is_preview),
        }
