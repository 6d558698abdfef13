from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.database import get_db
from ...core.security import get_current_student
from ...models.student import Student
from ...schemas.notification_schemas import NotificationResponse
from ...services.notification_service import NotificationService

router = APIRouter(prefix="/api/v1/notifications", tags=["Student Portal - Notifications"])


@router.get("", response_model=List[NotificationResponse])
async def get_my_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=100),
    current_student: Student = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    """Newest first"""
    return await NotificationService(db).get_student_notifications(current_student.id, unread_only, limit)


@router.get("/unread-count")
async def get_unread_count(
    current_student: Student = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    return {"unread_count": await NotificationService(db).get_unread_count(current_student.id)}


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: UUID,
    current_student: Student = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    return await NotificationService(db).mark_as_read(notification_id, student_id=current_student.id)


@router.post("/read-all")
async def mark_all_notifications_read(
    current_student: Student = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    count = await NotificationService(db).mark_all_as_read(current_student.id)
    return {"message": "Notifications marked as read", "count": count}
