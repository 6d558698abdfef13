# academy/schemas/class_schemas.py
from typing import List, Literal, Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from ..constants import DEFAULT_CLASS_CAPACITY


class ClassCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: str = ""
    capacity: int = Field(default=DEFAULT_CLASS_CAPACITY, gt=0)
    season_id: Optional[UUID] = None


class ClassUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = None
    capacity: Optional[int] = Field(default=None, gt=0)
    season_id: Optional[UUID] = None
    is_active: Optional[bool] = None


class AssignStudentsRequest(BaseModel):
    student_ids: List[str] = Field(..., min_length=1)
    class_name: str = Field(..., min_length=1)


class RemoveStudentsRequest(BaseModel):
    student_ids: List[str] = Field(..., min_length=1)


class AutoAssignRequest(BaseModel):
    method: Literal["alphabetical", "balance", "category"]
    student_ids: Optional[List[str]] = None
    class_names: Optional[List[str]] = None


class Assignment(BaseModel):
    student_id: str
    class_name: str
    student_name: Optional[str] = None
    primary_category: Optional[str] = None


class ExecuteAssignmentRequest(BaseModel):
    assignments: List[Assignment] = Field(..., min_length=1)


class ClassResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str
    capacity: int
    student_count: int
    season_id: Optional[UUID] = None
    is_active: bool
    created_at: Optional[datetime] = None
