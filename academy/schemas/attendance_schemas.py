# academy/schemas/attendance_schemas.py
from typing import List, Optional
from datetime import date as date_type, datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from ..models.attendance import AttendanceStatus


class AttendanceCheck(BaseModel):
    course_id: UUID
    student_id: str
    date: date_type
    status: AttendanceStatus
    note: str = ""


class AttendanceEntry(BaseModel):
    student_id: str
    status: AttendanceStatus
    note: str = ""


class BulkAttendanceCheck(BaseModel):
    course_id: UUID
    date: date_type
    entries: List[AttendanceEntry] = Field(..., min_length=1)


class AttendanceStats(BaseModel):
    present: int
    absent: int
    late: int
    excused: int
    total: int
    rate: int


class AttendanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    student_id: str
    date: date_type
    status: str
    note: str
    checked_by: Optional[str] = None
    checked_at: datetime
