# app/models/creator.py
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import relationship

from app.db.base import Base

# creator_type / role -> Persian label
CREATOR_TYPE_LABELS = {
    "author": "نویسنده",
    "translator": "مترجم",
    "narrator": "گوینده",
    "artist": "هنرمند",
    "singer": "خواننده",
    "composer": "آهنگساز",
    "lyricist": "ترانه‌سرا",
    "musician": "نوازنده",
    "arranger": "تنظیم‌کننده",
    "publisher": "ناشر",
    "label": "لیبل",
    "other": "سایر",
}


def _uuid() -> str:
    return str(uuid.uuid4())


class Creator(Base):
    __tablename__ = "creators"

    id = Column(String(36), primary_key=True, default=_uuid)
    display_name = Column(String(300), nullable=False, index=True)
    display_name_latin = Column(String(300), nullable=True)
    creator_type = Column(String(20), nullable=False, default="other")
    bio = Column(Text, nullable=True)
    avatar_url = Column(String(1024), nullable=True)
    collection_label = Column(String(300), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "display_name_latin": self.display_name_latin,
            "creator_type": self.creator_type,
            "creator_type_label": CREATOR_TYPE_LABELS.get(self.creator_type, self.creator_type),
            "bio": self.bio,
            "avatar_url": self.avatar_url,
            "collection_label": self.collection_label,
        }


class AudiobookCreator(Base):
    __tablename__ = "audiobook_creators"

    id = Column(String(36), primary_key=True, default=_uuid)
    audiobook_id = Column(Integer, ForeignKey("audiobooks.id", ondelete="CASCADE"), nullable=False, index=True)
    creator_id = Column(String(36), ForeignKey("creators.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(20), nullable=False, default="other")
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    creator = relationship("Creator")

    __table_args__ = (
        UniqueConstraint("audiobook_id", "creator_id", "role", name="uq_audiobook_creator_role"),
    )
