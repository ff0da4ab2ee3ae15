from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import date

class Course(BaseModel):
    course_id: str
    code: str = Field(..., min_length=2, max_length=20)
    name: str = Field(..., min_length=3, max_length=100)
    credit_hours: int = Field(3, gt=0, le=6)
    prerequisites: List[str] = Field(default_factory=list)
    drop_deadline: Optional[date] = None
    is_mandatory: bool = False

    @field_validator('prerequisites')
    @classmethod
    def validate_prerequisites(cls, v, info):
        course_id = info.data.get('course_id')
        if course_id and course_id in v:
            raise ValueError('A course cannot be its own prerequisite')
        # Keep the declared order, drop repeats
        return list(dict.fromkeys(v))

class CourseResponse(BaseModel):
    course_id: str
    code: str
    name: str
    credit_hours: int
    prerequisites: List[str]
    drop_deadline: Optional[date] = None
    is_mandatory: bool
