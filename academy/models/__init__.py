# academy/models/__init__.py
"""Import all models here so Alembic and create_all see every table."""
from .base import Base

from .season import Season
from .student import Student
from .course import Course
from .enrollment import Enrollment, EnrollmentStatus, ACTIVE_STATUSES
from .class_model import AcademyClass
from .notification import Notification, NotificationType
from .attendance import Attendance, AttendanceStatus
from .admin import AdminUser, AdminRole, AuthSession, SubjectType
