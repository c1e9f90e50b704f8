# app/models/review.py
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from app.db.base import Base


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    audiobook_id = Column(Integer, ForeignKey("audiobooks.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    is_approved = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("Profile")
    audiobook = relationship("Audiobook")

    __table_args__ = (
        UniqueConstraint("user_id", "audiobook_id", name="uq_reviews_user_audiobook"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": (self.user.display_name or self.user.email) if self.user else None,
            "audiobook_id": self.audiobook_id,
            "audiobook_title": self.audiobook.title_fa if self.audiobook else None,
            "rating": self.rating,
            "comment": self.comment,
            "is_approved": bool(self.is_approved),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
