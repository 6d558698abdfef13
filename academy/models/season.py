# academy/models/season.py
from sqlalchemy import Column, String, Date, Boolean
from sqlalchemy.orm import relationship
from .base import Base, UUIDPrimaryKeyMixin


class Season(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "seasons"

    name = Column(String(100), nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_by = Column(String(64), nullable=True)

    courses = relationship("Course", back_populates="season", passive_deletes=True)
