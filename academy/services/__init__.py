from .base_service import BaseService
from .auth_service import AuthService
from .student_service import StudentService
from .course_service import CourseService
from .enrollment_service import EnrollmentService
from .class_service import ClassService
from .season_service import SeasonService
from .notification_service import NotificationService
from .attendance_service import AttendanceService
from .change_feed import ChangeFeed, Subscription, change_feed
