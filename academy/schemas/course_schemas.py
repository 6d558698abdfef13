# academy/schemas/course_schemas.py
"""Pydantic schemas for courses and their weekly schedule slots."""
from typing import List, Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..constants import DAYS, FIRST_PERIOD, LAST_PERIOD, DEFAULT_CATEGORY, DEFAULT_LEVEL, DEFAULT_COURSE_CAPACITY
from ..services.conflict_detector import normalize_schedules


class ScheduleSlotSchema(BaseModel):
    day: str = Field(..., description="Weekday, one of 월 화 수 목 금 토 일")
    start_period: int = Field(..., ge=FIRST_PERIOD, le=LAST_PERIOD)
    end_period: int = Field(..., ge=FIRST_PERIOD, le=LAST_PERIOD)

    @field_validator('day')
    @classmethod
    def validate_day(cls, v):
        v = v.strip()
        if v not in DAYS:
            raise ValueError(f'day must be one of {", ".join(DAYS)}')
        return v

    @model_validator(mode='after')
    def validate_range(self):
        if self.start_period > self.end_period:
            raise ValueError('start_period must not be after end_period')
        return self


class LegacyScheduleMixin(BaseModel):
    """Accepts the single-slot shorthand (``day="월/수"`` plus one period range)."""
    schedules: Optional[List[ScheduleSlotSchema]] = None
    day: Optional[str] = Field(default=None, description="Legacy days joined by '/'")
    start_period: Optional[int] = None
    end_period: Optional[int] = None

    @model_validator(mode='after')
    def fold_legacy_schedule(self):
        if not self.schedules and self.day:
            self.schedules = [
                ScheduleSlotSchema(**slot.as_dict())
                for slot in normalize_schedules({
                    "day": self.day,
                    "start_period": self.start_period,
                    "end_period": self.end_period,
                })
            ]
        self.day = self.start_period = self.end_period = None
        return self


class CourseCreate(LegacyScheduleMixin):
    title: str = Field(..., min_length=1, max_length=200)
    instructor: str = Field(..., min_length=1, max_length=100)
    category: str = Field(default=DEFAULT_CATEGORY, max_length=20)
    level: str = Field(default=DEFAULT_LEVEL, max_length=20)
    room: str = Field(default="", max_length=50)
    description: str = ""
    capacity: int = Field(default=DEFAULT_COURSE_CAPACITY, ge=0)
    season_id: Optional[UUID] = None

    @model_validator(mode='after')
    def require_schedule(self):
        if not self.schedules:
            raise ValueError('at least one schedule slot is required')
        return self

    def to_service(self) -> dict:
        data = self.model_dump(exclude={"day", "start_period", "end_period"})
        data["schedules"] = [slot.model_dump() for slot in self.schedules]
        return data


class CourseUpdate(LegacyScheduleMixin):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    instructor: Optional[str] = Field(default=None, min_length=1, max_length=100)
    category: Optional[str] = Field(default=None, max_length=20)
    level: Optional[str] = Field(default=None, max_length=20)
    room: Optional[str] = Field(default=None, max_length=50)
    description: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=0)
    season_id: Optional[UUID] = None

    def to_service(self) -> dict:
        data = self.model_dump(exclude_unset=True, exclude={"day", "start_period", "end_period", "schedules"})
        if self.schedules:
            data["schedules"] = [slot.model_dump() for slot in self.schedules]
        return data


class CourseBatchCreate(BaseModel):
    season_id: Optional[UUID] = None
    # Rows are checked individually so one bad row does not reject the batch
    courses: List[dict] = Field(..., min_length=1)


class ActiveToggle(BaseModel):
    is_active: bool


class CourseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    season_id: Optional[UUID] = None
    title: str
    instructor: str
    category: str
    level: str
    room: str
    description: str
    capacity: int
    enrolled: int
    schedules: List[ScheduleSlotSchema]
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
