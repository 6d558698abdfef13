from datetime import date
from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.database import get_db
from ...core.security import get_current_admin
from ...models.admin import AdminUser
from ...schemas.attendance_schemas import AttendanceCheck, AttendanceResponse, AttendanceStats, BulkAttendanceCheck
from ...services.attendance_service import AttendanceService

router = APIRouter(prefix="/api/v1/admin/attendance", tags=["Admin - Attendance"])


@router.post("")
async def check_attendance(
    check: AttendanceCheck,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await AttendanceService(db).check_attendance(
        check.course_id, check.student_id, check.date, check.status, check.note, str(current_admin.id)
    )


@router.post("/bulk")
async def bulk_check_attendance(
    request: BulkAttendanceCheck,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    results = await AttendanceService(db).bulk_check_attendance(
        request.course_id, request.date, [entry.model_dump() for entry in request.entries], str(current_admin.id)
    )
    return {"results": results, "count": len(results)}


@router.get("/courses/{course_id}", response_model=List[AttendanceResponse])
async def get_course_attendance(
    course_id: UUID,
    on: Optional[date] = Query(None, description="Only records for this date"),
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    service = AttendanceService(db)
    if on is not None:
        return await service.get_attendance_by_date(course_id, on)
    return await service.get_course_records(course_id)


@router.get("/courses/{course_id}/dates", response_model=List[date])
async def get_attendance_dates(
    course_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await AttendanceService(db).get_attendance_dates(course_id)


@router.get("/courses/{course_id}/stats", response_model=AttendanceStats)
async def get_course_stats(
    course_id: UUID,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await AttendanceService(db).get_course_stats(course_id)


@router.get("/courses/{course_id}/students/{student_id}/stats", response_model=AttendanceStats)
async def get_student_stats(
    course_id: UUID,
    student_id: str,
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await AttendanceService(db).get_student_stats(student_id, course_id)


@router.get("/students/{student_id}", response_model=List[AttendanceResponse])
async def get_student_attendance(
    student_id: str,
    course_id: Optional[UUID] = Query(None),
    current_admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await AttendanceService(db).get_student_attendance(student_id, course_id)
