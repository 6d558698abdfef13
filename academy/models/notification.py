# academy/models/notification.py
import enum
from sqlalchemy import Column, String, Boolean, Text, ForeignKey, Uuid
from .base import Base, UUIDPrimaryKeyMixin


class NotificationType(str, enum.Enum):
    APPROVAL = "approval"
    REJECTION = "rejection"
    INFO = "info"


class Notification(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "notifications"

    student_id = Column(String(80), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)

    type = Column(String(20), default=NotificationType.INFO.value, nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)

    # Optional course context
    course_id = Column(Uuid(as_uuid=True), nullable=True)
    course_name = Column(String(200), nullable=True)

    read = Column(Boolean, default=False, nullable=False, index=True)
