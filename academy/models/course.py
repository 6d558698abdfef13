# academy/models/course.py
from sqlalchemy import Column, String, Integer, Boolean, Text, JSON, ForeignKey, Uuid, CheckConstraint, case
from sqlalchemy.orm import relationship
from .base import Base, UUIDPrimaryKeyMixin


class Course(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "courses"

    season_id = Column(Uuid(as_uuid=True), ForeignKey("seasons.id"), nullable=True, index=True)

    title = Column(String(200), nullable=False)
    instructor = Column(String(100), nullable=False)
    category = Column(String(20), nullable=False)
    level = Column(String(20), nullable=False)
    room = Column(String(50), default="", nullable=False)
    description = Column(Text, default="", nullable=False)

    capacity = Column(Integer, default=20, nullable=False)
    # Seats spoken for: pending + approved enrollments
    enrolled = Column(Integer, default=0, nullable=False)

    # Canonical multi-slot form: [{"day": "월", "start_period": 1, "end_period": 2}, ...]
    schedules = Column(JSON, default=list, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_by = Column(String(64), nullable=True)

    __table_args__ = (
        CheckConstraint("enrolled >= 0", name="ck_courses_enrolled_non_negative"),
        CheckConstraint("capacity >= 0", name="ck_courses_capacity_non_negative"),
    )

    # Relationships
    season = relationship("Season", back_populates="courses")
    enrollments = relationship("Enrollment", back_populates="course", passive_deletes=True)


def seat_release_expression():
    """``enrolled - 1`` floored at zero, evaluated by the database."""
    return case((Course.enrolled > 0, Course.enrolled - 1), else_=0)
