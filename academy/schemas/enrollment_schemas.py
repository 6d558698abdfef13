# academy/schemas/enrollment_schemas.py
from typing import Any, Dict, List, Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field


class EnrollmentSubmit(BaseModel):
    course_ids: List[UUID] = Field(..., min_length=1, description="Courses in the student's cart")
    season_id: Optional[UUID] = None


class ConflictCheckRequest(BaseModel):
    course_id: UUID
    cart_course_ids: List[UUID] = Field(default_factory=list)


class RejectRequest(BaseModel):
    reason: str = Field(..., min_length=1, description="Shown to the student")


class BatchIdsRequest(BaseModel):
    enrollment_ids: List[UUID] = Field(..., min_length=1)


class SubmitOutcome(BaseModel):
    course_id: UUID
    success: bool
    enrollment_id: Optional[UUID] = None
    error: Optional[str] = None
    message: Optional[str] = None


class SubmitResponse(BaseModel):
    results: List[SubmitOutcome]
    succeeded: int
    failed: int


class EnrollmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: str
    course_id: UUID
    season_id: Optional[UUID] = None
    status: str
    enrolled_at: datetime
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejection_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None


class BatchOutcome(BaseModel):
    enrollment_id: UUID
    success: bool
    status: Optional[str] = None
    error: Optional[str] = None
    message: Optional[str] = None


class ConflictReport(BaseModel):
    course_id: UUID
    has_conflict: bool
    already_enrolled: bool
    enrolled_conflicts: List[Dict[str, Any]] = []
    cart_conflicts: List[Dict[str, Any]] = []
