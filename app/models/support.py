# app/models/support.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from app.db.base import Base

TICKET_TYPES = ("book_issue", "account", "payment", "other")
TICKET_STATUSES = ("open", "in_progress", "closed")


class SupportTicket(Base):
    __tablename__ = "support_tickets"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    audiobook_id = Column(Integer, ForeignKey("audiobooks.id", ondelete="SET NULL"), nullable=True)
    type = Column(String(20), nullable=False, default="other")
    status = Column(String(20), nullable=False, default="open", index=True)
    subject = Column(String(300), nullable=False)
    last_admin_id = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    last_message_at = Column(DateTime(timezone=True), server_default=func.now())
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("Profile", foreign_keys=[user_id])
    audiobook = relationship("Audiobook")
    messages = relationship(
        "SupportMessage",
        order_by="SupportMessage.created_at, SupportMessage.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "audiobook_id": self.audiobook_id,
            "type": self.type,
            "status": self.status,
            "subject": self.subject,
            "last_admin_id": self.last_admin_id,
            "last_message_at": self.last_message_at.isoformat() if self.last_message_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class SupportMessage(Base):
    __tablename__ = "support_messages"

    id = Column(Integer, primary_key=True)
    ticket_id = Column(Integer, ForeignKey("support_tickets.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_type = Column(String(10), nullable=False)  # user | admin
    sender_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    message_text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ticket_id": self.ticket_id,
            "sender_type": self.sender_type,
            "sender_id": self.sender_id,
            "message_text": self.message_text,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
