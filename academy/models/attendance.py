# academy/models/attendance.py
import enum
from sqlalchemy import Column, String, Date, DateTime, Text, ForeignKey, Uuid, UniqueConstraint
from .base import Base, UUIDPrimaryKeyMixin
from ..utils.dates import utcnow


class AttendanceStatus(str, enum.Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class Attendance(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "attendance"

    course_id = Column(Uuid(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(String(80), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)

    status = Column(String(10), nullable=False)
    note = Column(Text, default="", nullable=False)
    checked_by = Column(String(64), nullable=True)
    checked_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("course_id", "student_id", "date", name="uq_attendance_course_student_date"),
    )
