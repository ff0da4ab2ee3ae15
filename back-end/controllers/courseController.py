from typing import List, Optional
from fastapi import APIRouter, HTTPException, Depends
from dependencies import Stores, get_stores
from models.Courses import CourseResponse
from models.Schedules import ClassSection, ClassSectionResponse
from helpers.auth import get_current_user

router = APIRouter()

def section_response(section: ClassSection) -> ClassSectionResponse:
    return ClassSectionResponse(
        **section.model_dump(),
        available_seats=max(0, section.capacity - section.enrolled_count)
    )

# Get all courses
@router.get("/courses", response_model=List[CourseResponse])
async def get_courses(stores: Stores = Depends(get_stores), current_user=Depends(get_current_user)):
    courses = await stores.course_catalog.list_courses()
    return [CourseResponse(**course.model_dump()) for course in sorted(courses, key=lambda c: c.course_id)]

# Get course by ID
@router.get("/courses/{course_id}", response_model=CourseResponse)
async def get_course(course_id: str, stores: Stores = Depends(get_stores), current_user=Depends(get_current_user)):
    course = await stores.course_catalog.get_course(course_id)

    if not course:
        raise HTTPException(status_code=404, detail=f"Course not found, ID={course_id}")

    return CourseResponse(**course.model_dump())

# Get class sections, optionally of one course
@router.get("/sections", response_model=List[ClassSectionResponse])
async def get_sections(
    course_id: Optional[str] = None,
    stores: Stores = Depends(get_stores),
    current_user=Depends(get_current_user)
):
    sections = await stores.section_store.list_sections(course_id)
    return [section_response(section) for section in sorted(sections, key=lambda s: s.section_id)]

# Get class section by ID
@router.get("/sections/{section_id}", response_model=ClassSectionResponse)
async def get_section(section_id: str, stores: Stores = Depends(get_stores), current_user=Depends(get_current_user)):
    section = await stores.section_store.get_section(section_id)

    if not section:
        raise HTTPException(status_code=404, detail=f"Class section not found, ID={section_id}")

    return section_response(section)
