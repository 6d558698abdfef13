# academy/services/notification_service.py
from typing import List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
import logging

from .base_service import BaseService
from .change_feed import change_feed, NOTIFICATIONS_TOPIC
from ..core.exceptions import NotificationNotFound, PermissionDenied
from ..models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)


def notification_event(notification: Notification, action: str) -> dict:
    return {
        "action": action,
        "notification_id": str(notification.id),
        "student_id": notification.student_id,
        "type": notification.type,
        "title": notification.title,
        "read": notification.read,
    }


class NotificationService(BaseService[Notification]):
    def __init__(self, db: AsyncSession):
        super().__init__(Notification, db)

    async def create_notification(
        self,
        student_id: str,
        notification_type: NotificationType,
        title: str,
        message: str,
        course_id: Optional[UUID] = None,
        course_name: Optional[str] = None
    ) -> Notification:
        notification = await self.create({
            "student_id": student_id,
            "type": notification_type.value,
            "title": title,
            "message": message,
            "course_id": course_id,
            "course_name": course_name,
            "read": False,
        })
        await change_feed.publish(NOTIFICATIONS_TOPIC, notification_event(notification, "created"))
        return notification

    async def create_approval_notification(self, student_id: str, course_name: str, course_id: UUID) -> Notification:
        return await self.create_notification(
            student_id,
            NotificationType.APPROVAL,
            "수강 신청 승인",
            f'"{course_name}" 수강 신청이 승인되었습니다.',
            course_id=course_id,
            course_name=course_name
        )

    async def create_rejection_notification(
        self, student_id: str, course_name: str, course_id: UUID, reason: str
    ) -> Notification:
        return await self.create_notification(
            student_id,
            NotificationType.REJECTION,
            "수강 신청 반려",
            f'"{course_name}" 수강 신청이 반려되었습니다. 사유: {reason}',
            course_id=course_id,
            course_name=course_name
        )

    async def get_student_notifications(self, student_id: str, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        """Newest first"""
        stmt = select(self.model).where(self.model.student_id == student_id)
        if unread_only:
            stmt = stmt.where(self.model.read == False)
        stmt = stmt.order_by(self.model.created_at.desc()).limit(limit)

        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        return list(result.scalars().all())

    async def get_unread_count(self, student_id: str) -> int:
        stmt = select(func.count()).select_from(self.model).where(
            self.model.student_id == student_id,
            self.model.read == False
        )
        result = await self.db.execute(stmt)
        return result.scalar()

    async def mark_as_read(self, notification_id: UUID, student_id: Optional[str] = None) -> Notification:
        """Mark one notification read; ``student_id`` restricts it to its owner."""
        notification = await self.get(notification_id)
        if not notification:
            raise NotificationNotFound(notification_id)
        if student_id is not None and notification.student_id != student_id:
            raise PermissionDenied("Notification belongs to another student")

        if not notification.read:
            notification.read = True
            await self.db.commit()
            await self.db.refresh(notification)
            await change_feed.publish(NOTIFICATIONS_TOPIC, notification_event(notification, "read"))
        return notification

    async def mark_all_as_read(self, student_id: str) -> int:
        stmt = (
            update(self.model)
            .where(self.model.student_id == student_id, self.model.read == False)
            .values(read=True)
        )
        result = await self.db.execute(stmt)
        await self.db.commit()

        if result.rowcount:
            await change_feed.publish(NOTIFICATIONS_TOPIC, {
                "action": "all_read",
                "student_id": student_id,
                "count": result.rowcount,
            })
        return result.rowcount
