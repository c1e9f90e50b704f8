# app/models/category.py
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, func
from app.db.base import Base


class _CategoryColumns:
    id = Column(Integer, primary_key=True)
    name_fa = Column(String(200), nullable=False, unique=True)
    name_en = Column(String(200), nullable=True)
    description_fa = Column(Text, nullable=True)
    icon = Column(String(64), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name_fa": self.name_fa,
            "name_en": self.name_en,
            "description_fa": self.description_fa,
            "icon": self.icon,
            "is_active": bool(self.is_active),
            "sort_order": self.sort_order,
        }


class Category(_CategoryColumns, Base):
    """Book/podcast categories."""

    __tablename__ = "categories"

    cover_url = Column(String(1024), nullable=True)


class MusicCategory(_CategoryColumns, Base):
    """Music genres (سبک‌های موسیقی)."""

    __tablename__ = "music_categories"
