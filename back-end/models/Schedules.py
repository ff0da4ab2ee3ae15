from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional
from datetime import datetime, time
from enum import Enum

class DayOfWeek(str, Enum):
    SUNDAY = "Sunday"
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"

TIME_FORMATS = [
    "%H:%M:%S",  # 24-hour with seconds
    "%H:%M",     # 24-hour without seconds
    "%I:%M:%S %p",  # 12-hour with seconds
    "%I:%M %p",     # 12-hour without seconds
]

def parse_time(v: time | str) -> time:
    """Parse a time of day from a time object or a string in one of TIME_FORMATS"""
    if isinstance(v, time):
        return v

    v = v.strip().upper()
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(v, fmt).time()
        except ValueError:
            continue

    raise ValueError(
        "Invalid time format. Please use one of these formats:\n"
        "- HH:MM:SS (e.g., 09:30:00)\n"
        "- HH:MM (e.g., 09:30)\n"
        "- HH:MM AM/PM (e.g., 09:30 AM)"
    )

class ScheduleSlot(BaseModel):
    """One recurring weekly time block of a class section"""
    day: DayOfWeek
    start_time: time
    end_time: time
    room: Optional[str] = ""

    @field_validator('start_time', 'end_time', mode='before')
    @classmethod
    def validate_time(cls, v):
        return parse_time(v)

    @model_validator(mode='after')
    def validate_end_time(self):
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self

    class Config:
        frozen = True
        json_encoders = {
            time: lambda v: v.strftime("%H:%M:%S")
        }

class ClassSection(BaseModel):
    """One offered section of a course, with its own seats and weekly slots.

    enrolled_count may exceed capacity if the catalog was edited after
    students enrolled; such a section is simply full.
    """
    section_id: str
    course_id: str
    code: str = ""
    name: str = ""
    slots: List[ScheduleSlot] = Field(default_factory=list)
    capacity: int = Field(0, ge=0)
    enrolled_count: int = Field(0, ge=0)

    @property
    def display_name(self) -> str:
        return self.name or self.code or self.section_id

class ClassSectionResponse(BaseModel):
    section_id: str
    course_id: str
    code: str
    name: str
    slots: List[ScheduleSlot]
    capacity: int
    enrolled_count: int
    available_seats: int
