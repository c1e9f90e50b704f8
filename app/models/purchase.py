# app/models/purchase.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from app.db.base import Base


class Purchase(Base):
    __tablename__ = "purchases"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)
    audiobook_id = Column(Integer, ForeignKey("audiobooks.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Integer, nullable=False, default=0)  # Toman
    status = Column(String(20), nullable=False, default="completed")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
