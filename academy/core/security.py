# academy/core/security.py
"""Bearer-token dependencies and input sanitizing helpers."""
from typing import Optional
import re
import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from .database import get_db
from .exceptions import AuthenticationError, PermissionDenied
from ..models.admin import AdminUser, AdminRole, SubjectType
from ..models.student import Student

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def sanitize_search_term(term: str) -> str:
    """Escape LIKE wildcards; pair with ``escape='\\\\'``"""
    if not isinstance(term, str):
        return ""
    sanitized = re.sub(r"[%_\\]", r"\\\g<0>", term.strip())
    return sanitized[:100]


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> str:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing bearer token")
    return credentials.credentials


async def get_current_subject(
    token: str = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db)
):
    from ..services.auth_service import AuthService
    return await AuthService(db).resolve_token(token)


async def get_current_student(subject=Depends(get_current_subject)) -> Student:
    subject_type, student = subject
    if subject_type != SubjectType.STUDENT:
        raise PermissionDenied("Student access required")
    return student


async def get_current_admin(subject=Depends(get_current_subject)) -> AdminUser:
    subject_type, admin = subject
    if subject_type != SubjectType.ADMIN:
        raise PermissionDenied("Admin access required")
    return admin


async def require_superadmin(admin: AdminUser = Depends(get_current_admin)) -> AdminUser:
    if admin.role != AdminRole.SUPERADMIN.value:
        logger.warning(f"Admin {admin.email} attempted a superadmin action")
        raise PermissionDenied("Superadmin access required")
    return admin
