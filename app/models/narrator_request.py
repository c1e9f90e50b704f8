# app/models/narrator_request.py
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import relationship

from app.db.base import Base

REQUEST_STATUSES = ("pending", "approved", "rejected")


class NarratorRequest(Base):
    """A listener's application to become a narrator."""

    __tablename__ = "narrator_requests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    experience_text = Column(Text, nullable=False)
    voice_sample_path = Column(String(1024), nullable=False)
    status = Column(String(20), nullable=False, default="pending", index=True)
    reviewed_by = Column(String(36), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    admin_feedback = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("Profile")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "experience_text": self.experience_text,
            "voice_sample_path": self.voice_sample_path,
            "status": self.status,
            "reviewed_by": self.reviewed_by,
            "reviewed_at": self.reviewed_at.isoformat() if self.reviewed_at else None,
            "admin_feedback": self.admin_feedback,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
