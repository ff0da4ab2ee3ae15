from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime, timezone
import uuid

from models.Schedules import ClassSection

def get_utc_now():
    return datetime.now(timezone.utc)

def new_enrollment_id() -> str:
    return str(uuid.uuid4())

class EnrollmentCreate(BaseModel):
    student_id: str
    section_id: str
    semester_id: str

    @field_validator('student_id', 'section_id', 'semester_id')
    @classmethod
    def validate_ids(cls, v, info):
        if not v or not v.strip():
            raise ValueError(f'Invalid {info.field_name}')
        return v.strip()

class Enrollment(BaseModel):
    """A student's registration in one class section for one semester.

    Dropping flips is_active to False; the record stays in history but no
    longer counts toward the enrollment cap or schedule conflicts.
    """
    enrollment_id: str = Field(default_factory=new_enrollment_id)
    student_id: str
    section_id: str
    semester_id: str
    enrolled_at: datetime = Field(default_factory=get_utc_now)
    is_active: bool = True
    class_section: ClassSection

    @property
    def course_id(self) -> str:
        return self.class_section.course_id

class EnrollmentResponse(BaseModel):
    enrollment_id: str
    student_id: str
    section_id: str
    course_id: str
    semester_id: str
    enrolled_at: datetime
    is_active: bool

    @classmethod
    def from_enrollment(cls, enrollment: Enrollment) -> "EnrollmentResponse":
        return cls(
            enrollment_id=enrollment.enrollment_id,
            student_id=enrollment.student_id,
            section_id=enrollment.section_id,
            course_id=enrollment.course_id,
            semester_id=enrollment.semester_id,
            enrolled_at=enrollment.enrolled_at,
            is_active=enrollment.is_active
        )

class ErrorResponse(BaseModel):
    message: str
    error_code: str
    details: Optional[dict] = None

class RuleCheckResponse(BaseModel):
    rule: str
    passed: bool = True
