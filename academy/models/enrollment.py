# academy/models/enrollment.py
import enum
from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Uuid, Index, text
from sqlalchemy.orm import relationship
from .base import Base, UUIDPrimaryKeyMixin
from ..utils.dates import utcnow


class EnrollmentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


# Statuses that hold a seat and block a second request for the same course
ACTIVE_STATUSES = (EnrollmentStatus.PENDING.value, EnrollmentStatus.APPROVED.value)

_ACTIVE_PREDICATE = text("status IN ('pending', 'approved')")
# One pending/approved row per student and course
ACTIVE_ENROLLMENT_INDEX = "uq_enrollments_active_student_course"


class Enrollment(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "enrollments"

    # Foreign Keys
    student_id = Column(String(80), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = Column(Uuid(as_uuid=True), ForeignKey("courses.id"), nullable=False, index=True)
    season_id = Column(Uuid(as_uuid=True), ForeignKey("seasons.id"), nullable=True, index=True)

    status = Column(String(20), default=EnrollmentStatus.PENDING.value, nullable=False, index=True)

    enrolled_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    approved_by = Column(String(64), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    rejected_by = Column(String(64), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by = Column(String(64), nullable=True)

    __table_args__ = (
        Index(
            ACTIVE_ENROLLMENT_INDEX,
            "student_id",
            "course_id",
            unique=True,
            postgresql_where=_ACTIVE_PREDICATE,
            sqlite_where=_ACTIVE_PREDICATE,
        ),
    )

    # Relationships
    student = relationship("Student", back_populates="enrollments")
    course = relationship("Course", back_populates="enrollments")
