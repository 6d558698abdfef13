# academy/schemas/student_schemas.py
"""Pydantic schemas for students."""
from typing import Dict, List, Literal, Optional, Union
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class StudentBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=50)
    phone: str = Field(..., description="Last four digits of the phone number")
    birth_date: str = Field(default="", max_length=20)
    class_name: Optional[str] = Field(default=None, max_length=50)

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v):
        if len(v) != 4 or not v.isdigit():
            raise ValueError('phone must be exactly four digits')
        return v


class StudentCreate(StudentBase):
    pass


class StudentBatchCreate(BaseModel):
    students: List[StudentCreate] = Field(..., min_length=1)
    # One action for every duplicate, or a map of student id -> action
    duplicate_action: Union[Literal["skip", "overwrite"], Dict[str, Literal["skip", "overwrite"]]] = "skip"


class StudentUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    birth_date: Optional[str] = Field(default=None, max_length=20)
    class_name: Optional[str] = Field(default=None, max_length=50)
    enrollment_open: Optional[bool] = None


class EnrollmentOpenRequest(BaseModel):
    enrollment_open: bool


class ChangePeriodRequest(BaseModel):
    change_start_date: Optional[datetime] = None
    change_end_date: Optional[datetime] = None

    @model_validator(mode='after')
    def validate_period(self):
        start, end = self.change_start_date, self.change_end_date
        if (start is None) != (end is None):
            raise ValueError('change period needs both a start and an end')
        return self


class BatchEnrollmentOpenRequest(EnrollmentOpenRequest):
    student_ids: List[str] = Field(..., min_length=1)


class BatchChangePeriodRequest(ChangePeriodRequest):
    student_ids: List[str] = Field(..., min_length=1)


class StudentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    phone: str
    birth_date: str
    class_name: Optional[str] = None
    enrollment_open: bool
    change_start_date: Optional[datetime] = None
    change_end_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
