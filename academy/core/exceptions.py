# academy/core/exceptions.py
"""Custom exceptions for the academy application."""
from fastapi import HTTPException
from typing import Any, Dict, Optional


class AcademyException(HTTPException):
    """Base exception for the academy application."""
    code = "AcademyError"

    def __init__(
        self,
        status_code: int,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.details = details or {}
        super().__init__(
            status_code=status_code,
            detail={"error": self.code, "message": message, **self.details},
            headers=headers
        )


class CapacityExceeded(AcademyException):
    """Course had no free seat when the admission unit ran."""
    code = "CapacityExceeded"

    def __init__(self, course_id: str, title: Optional[str] = None):
        label = title or course_id
        super().__init__(
            status_code=409,
            message=f"{label}: 수강 인원이 마감되었습니다.",
            details={"course_id": str(course_id)}
        )


class AlreadyEnrolled(AcademyException):
    """Student already holds a pending or approved enrollment for the course."""
    code = "AlreadyEnrolled"

    def __init__(self, course_id: str, title: Optional[str] = None):
        label = title or course_id
        super().__init__(
            status_code=409,
            message=f"{label}: 이미 신청한 강좌입니다.",
            details={"course_id": str(course_id)}
        )


class NotFoundError(AcademyException):
    code = "NotFound"
    resource = "Resource"

    def __init__(self, resource_id: Any = None):
        message = f"{self.resource} not found"
        if resource_id is not None:
            message += f" with id: {resource_id}"
        super().__init__(status_code=404, message=message)


class CourseNotFound(NotFoundError):
    code = "CourseNotFound"
    resource = "Course"


class EnrollmentNotFound(NotFoundError):
    code = "EnrollmentNotFound"
    resource = "Enrollment"


class StudentNotFound(NotFoundError):
    code = "StudentNotFound"
    resource = "Student"


class ClassNotFound(NotFoundError):
    code = "ClassNotFound"
    resource = "Class"


class SeasonNotFound(NotFoundError):
    code = "SeasonNotFound"
    resource = "Season"


class NotificationNotFound(NotFoundError):
    code = "NotificationNotFound"
    resource = "Notification"


class ChangePeriodClosed(AcademyException):
    code = "ChangePeriodClosed"

    def __init__(self):
        super().__init__(
            status_code=403,
            message="수강 변경 기간이 아닙니다."
        )


class EnrollmentClosed(AcademyException):
    code = "EnrollmentClosed"

    def __init__(self):
        super().__init__(
            status_code=403,
            message="수강 신청이 마감되었습니다. 관리자에게 문의하세요."
        )


class InvalidTransition(AcademyException):
    code = "InvalidTransition"

    def __init__(self, current: str, target: str):
        super().__init__(
            status_code=409,
            message=f"Cannot change enrollment status from '{current}' to '{target}'",
            details={"current_status": current, "target_status": target}
        )


class DuplicateError(AcademyException):
    code = "Duplicate"

    def __init__(self, message: str, field: Optional[str] = None, value: Optional[str] = None):
        details = {}
        if field:
            details["field"] = field
            details["value"] = value
        super().__init__(status_code=409, message=message, details=details)


class DuplicateStudent(DuplicateError):
    code = "DuplicateStudent"

    def __init__(self, student_id: str):
        super().__init__("이미 등록된 학생입니다.", field="student_id", value=student_id)


class DuplicateAdmin(DuplicateError):
    code = "DuplicateAdmin"

    def __init__(self, email: str):
        super().__init__("An admin with this email already exists", field="email", value=email)


class ResourceInUse(AcademyException):
    code = "ResourceInUse"

    def __init__(self, message: str):
        super().__init__(status_code=409, message=message)


class ValidationError(AcademyException):
    """Exception raised for validation errors."""
    code = "ValidationError"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            status_code=422,
            message=message,
            details={"field": field} if field else None
        )


class AuthenticationError(AcademyException):
    code = "AuthenticationError"

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(
            status_code=401,
            message=message,
            headers={"WWW-Authenticate": "Bearer"}
        )


class PermissionDenied(AcademyException):
    code = "PermissionDenied"

    def __init__(self, message: str = "Permission denied"):
        super().__init__(status_code=403, message=message)


class InfrastructureError(AcademyException):
    """The store call failed or the atomic unit could not complete."""
    code = "InfrastructureError"

    def __init__(self, message: str):
        super().__init__(status_code=503, message=message)
