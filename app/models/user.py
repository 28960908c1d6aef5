"""SQLAlchemy model for application users (profiles)."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime
from sqlalchemy import Enum as SqlEnum
from sqlalchemy import Integer, String
from sqlalchemy.orm import relationship

from app.models.base import Base


class UserRole(str, Enum):
    """Enumeration of supported profile roles."""

    USER = "user"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(120), nullable=False, default="")
    password_hash = Column(String(256), nullable=False)
    role = Column(
        SqlEnum(UserRole, name="profile_role"),
        nullable=False,
        default=UserRole.USER,
        index=True,
    )
    recordings = relationship(
        "Recording",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    created_at = Column(
        DateTime,
        nullable=False,
        server_default="NOW()",
    )
    updated_at = Column(
        DateTime,
        nullable=False,
        server_default="NOW()",
        onupdate=datetime.utcnow,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


__all__ = ["User", "UserRole"]
