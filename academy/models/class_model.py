# academy/models/class_model.py
from sqlalchemy import Column, String, Integer, Boolean, Text, ForeignKey, Uuid
from .base import Base, UUIDPrimaryKeyMixin


class AcademyClass(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "classes"

    season_id = Column(Uuid(as_uuid=True), ForeignKey("seasons.id"), nullable=True, index=True)

    name = Column(String(50), nullable=False, unique=True, index=True)
    description = Column(Text, default="", nullable=False)
    capacity = Column(Integer, default=30, nullable=False)
    student_count = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_by = Column(String(64), nullable=True)
