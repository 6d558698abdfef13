from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.security import get_bearer_token, get_current_subject, require_superadmin
from ..models.admin import AdminUser, SubjectType
from ..schemas.auth_schemas import AdminInvite, AdminLogin, AdminResponse, StudentLogin, TokenResponse
from ..schemas.student_schemas import StudentResponse
from ..services.auth_service import AuthService

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


def _token(session) -> TokenResponse:
    return TokenResponse(
        access_token=session.token,
        expires_at=session.expires_at,
        subject_type=session.subject_type,
        subject_id=session.subject_id,
    )


@router.post("/student/login", response_model=TokenResponse)
async def student_login(credentials: StudentLogin, db: AsyncSession = Depends(get_db)):
    """Student login by name and the last four phone digits"""
    _, session = await AuthService(db).student_login(credentials.name, credentials.phone)
    return _token(session)


@router.post("/admin/login", response_model=TokenResponse)
async def admin_login(credentials: AdminLogin, db: AsyncSession = Depends(get_db)):
    _, session = await AuthService(db).admin_login(credentials.email, credentials.password)
    return _token(session)


@router.post("/logout")
async def logout(token: str = Depends(get_bearer_token), db: AsyncSession = Depends(get_db)):
    await AuthService(db).logout(token)
    return {"message": "Logged out successfully"}


@router.post("/admins", response_model=AdminResponse, status_code=201)
async def invite_admin(
    invite: AdminInvite,
    current_admin: AdminUser = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    """Create another admin account (superadmin only)"""
    return await AuthService(db).create_admin(invite.model_dump(), invited_by=current_admin)


@router.get("/me")
async def whoami(subject=Depends(get_current_subject)):
    subject_type, account = subject
    if subject_type == SubjectType.ADMIN:
        profile = AdminResponse.model_validate(account).model_dump(mode="json")
    else:
        profile = StudentResponse.model_validate(account).model_dump(mode="json")
    return {"subject_type": subject_type.value, "profile": profile}
