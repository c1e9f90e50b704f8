# app/models/profile.py
import uuid

from sqlalchemy import Boolean, Column, DateTime, String, Text, func
from app.db.base import Base

ROLES = ("listener", "narrator", "admin")


def _uuid() -> str:
    return str(uuid.uuid4())


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(String(255), nullable=True, unique=True, index=True)
    full_name = Column(String(255), nullable=True)
    display_name = Column(String(255), nullable=True)
    bio = Column(Text, nullable=True)
    avatar_url = Column(String(1024), nullable=True)

    # listener | narrator | admin
    role = Column(String(20), nullable=False, default="listener", index=True)
    is_disabled = Column(Boolean, nullable=False, default=False)
    admin_note = Column(Text, nullable=True)

    # Only admin accounts that sign into this panel carry a hash.
    password_hash = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def is_admin(self) -> bool:
        return self.role == "admin" and not self.is_disabled

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "display_name": self.display_name,
            "avatar_url": self.avatar_url,
            "role": self.role,
            "is_disabled": bool(self.is_disabled),
            "admin_note": self.admin_note,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
