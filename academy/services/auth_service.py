# academy/services/auth_service.py
from datetime import timedelta
from typing import Any, Dict, Optional, Tuple, Union
from uuid import UUID
import logging
import secrets

from passlib.context import CryptContext
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from .student_service import generate_student_id
from ..core.config import settings
from ..core.exceptions import (
    AuthenticationError, DuplicateAdmin, EnrollmentClosed, PermissionDenied
)
from ..models.admin import AdminUser, AdminRole, AuthSession, SubjectType
from ..models.student import Student
from ..utils.dates import as_utc, utcnow

logger = logging.getLogger(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


class AuthService(BaseService[AuthSession]):
    def __init__(self, db: AsyncSession):
        super().__init__(AuthSession, db)

    async def create_session(self, subject_type: SubjectType, subject_id: str) -> AuthSession:
        """Issue a bearer token valid for ``settings.session_ttl_hours``"""
        return await self.create({
            "token": secrets.token_urlsafe(32),
            "subject_type": subject_type.value,
            "subject_id": subject_id,
            "expires_at": utcnow() + timedelta(hours=settings.session_ttl_hours),
        })

    async def student_login(self, name: str, phone: str) -> Tuple[Student, AuthSession]:
        student_id = generate_student_id(name, phone)
        student = await BaseService(Student, self.db).get(student_id)
        if not student:
            logger.warning(f"Student login failed for {student_id}")
            raise AuthenticationError("이름 또는 전화번호가 올바르지 않습니다.")
        if not student.enrollment_open:
            raise EnrollmentClosed()

        session = await self.create_session(SubjectType.STUDENT, student.id)
        logger.info(f"Student {student.id} logged in")
        return student, session

    async def admin_login(self, email: str, password: str) -> Tuple[AdminUser, AuthSession]:
        admin = await self.get_admin_by_email(email)
        if not admin or not verify_password(password, admin.password_hash):
            logger.warning(f"Admin login failed for {email}")
            raise AuthenticationError()

        session = await self.create_session(SubjectType.ADMIN, str(admin.id))
        logger.info(f"Admin {admin.email} logged in")
        return admin, session

    async def get_admin_by_email(self, email: str) -> Optional[AdminUser]:
        result = await self.db.execute(
            select(AdminUser).where(AdminUser.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def resolve_token(self, token: str) -> Tuple[SubjectType, Union[AdminUser, Student]]:
        """Map a bearer token to its admin or student, rejecting expired sessions."""
        result = await self.db.execute(select(AuthSession).where(AuthSession.token == token))
        session = result.scalar_one_or_none()
        if not session:
            raise AuthenticationError("Invalid or expired token")

        if as_utc(session.expires_at) <= utcnow():
            await self.db.delete(session)
            await self.db.commit()
            raise AuthenticationError("Invalid or expired token")

        subject_type = SubjectType(session.subject_type)
        if subject_type == SubjectType.ADMIN:
            subject = await BaseService(AdminUser, self.db).get(UUID(session.subject_id))
        else:
            subject = await BaseService(Student, self.db).get(session.subject_id)
        if subject is None:
            raise AuthenticationError("Account no longer exists")
        return subject_type, subject

    async def logout(self, token: str) -> bool:
        result = await self.db.execute(delete(AuthSession).where(AuthSession.token == token))
        await self.db.commit()
        return result.rowcount > 0

    async def create_admin(
        self,
        admin_data: Dict[str, Any],
        invited_by: Optional[AdminUser] = None
    ) -> AdminUser:
        """Create an admin account; only a superadmin may invite one."""
        if invited_by is not None and invited_by.role != AdminRole.SUPERADMIN.value:
            raise PermissionDenied("Only a superadmin can invite admins")

        email = admin_data["email"].strip().lower()
        if await self.get_admin_by_email(email):
            raise DuplicateAdmin(email)

        admin = await BaseService(AdminUser, self.db).create({
            "email": email,
            "name": admin_data.get("name") or email.split("@")[0],
            "role": admin_data.get("role", AdminRole.ADMIN.value),
            "password_hash": hash_password(admin_data["password"]),
        })
        logger.info(f"Admin {email} ({admin.role}) created by {invited_by.email if invited_by else 'bootstrap'}")
        return admin

    async def ensure_superadmin(self, email: str, password: str, name: str = "Super Admin") -> AdminUser:
        """Bootstrap the first superadmin if it does not exist yet"""
        existing = await self.get_admin_by_email(email)
        if existing:
            return existing
        return await self.create_admin({
            "email": email,
            "password": password,
            "name": name,
            "role": AdminRole.SUPERADMIN.value,
        })