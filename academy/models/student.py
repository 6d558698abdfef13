# academy/models/student.py
from sqlalchemy import Column, String, DateTime, Boolean
from sqlalchemy.orm import relationship
from .base import Base


class Student(Base):
    __tablename__ = "students"

    # Deterministic key "{name}_{last four phone digits}", see generate_student_id
    id = Column(String(80), primary_key=True)

    name = Column(String(50), nullable=False, index=True)
    phone = Column(String(4), nullable=False)
    birth_date = Column(String(20), default="", nullable=False)

    # Class membership is by class name, not id
    class_name = Column(String(50), nullable=True, index=True)

    enrollment_open = Column(Boolean, default=True, nullable=False)
    change_start_date = Column(DateTime(timezone=True), nullable=True)
    change_end_date = Column(DateTime(timezone=True), nullable=True)

    created_by = Column(String(64), nullable=True)

    # Relationships
    enrollments = relationship("Enrollment", back_populates="student", passive_deletes=True)
