from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.database import get_db
from ...core.security import get_current_student
from ...models.student import Student
from ...schemas.attendance_schemas import AttendanceResponse, AttendanceStats
from ...services.attendance_service import AttendanceService

router = APIRouter(prefix="/api/v1/attendance", tags=["Student Portal - Attendance"])


@router.get("/mine", response_model=List[AttendanceResponse])
async def get_my_attendance(
    course_id: Optional[UUID] = Query(None),
    current_student: Student = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    """Most recent first"""
    return await AttendanceService(db).get_student_attendance(current_student.id, course_id)


@router.get("/mine/{course_id}/stats", response_model=AttendanceStats)
async def get_my_attendance_stats(
    course_id: UUID,
    current_student: Student = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    return await AttendanceService(db).get_student_stats(current_student.id, course_id)
