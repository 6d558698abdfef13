# academy/schemas/auth_schemas.py
from typing import Literal, Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class StudentLogin(BaseModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=4, max_length=4)


class AdminLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AdminInvite(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: Optional[str] = Field(default=None, max_length=100)
    role: Literal["admin", "superadmin"] = "admin"


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    subject_type: str
    subject_id: str


class AdminResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str
    role: str
