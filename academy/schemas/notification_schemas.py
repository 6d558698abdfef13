# academy/schemas/notification_schemas.py
from typing import Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: str
    type: str
    title: str
    message: str
    course_id: Optional[UUID] = None
    course_name: Optional[str] = None
    read: bool
    created_at: Optional[datetime] = None
