# academy/models/admin.py
import enum
from sqlalchemy import Column, String, DateTime
from .base import Base, UUIDPrimaryKeyMixin


class AdminRole(str, enum.Enum):
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


class SubjectType(str, enum.Enum):
    ADMIN = "admin"
    STUDENT = "student"


class AdminUser(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "admins"

    email = Column(String(100), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)
    role = Column(String(20), default=AdminRole.ADMIN.value, nullable=False)
    password_hash = Column(String(255), nullable=False)


class AuthSession(UUIDPrimaryKeyMixin, Base):
    """Opaque bearer token issued at login for an admin or a student."""
    __tablename__ = "auth_sessions"

    token = Column(String(64), nullable=False, unique=True, index=True)
    subject_type = Column(String(10), nullable=False)
    subject_id = Column(String(80), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
