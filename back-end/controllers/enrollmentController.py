from typing import List
from fastapi import APIRouter, Depends, Query, Response, status
from models.Enrollments import EnrollmentCreate, EnrollmentResponse, ErrorResponse
from dependencies import Stores, get_enrollment_service, get_stores
from helpers.auth import get_current_user, ensure_can_act_for, TokenData
from services.enrollment_service import EnrollmentService

router = APIRouter()

# Error bodies produced by the enrollment exception handlers
ERROR_RESPONSES = {
    code: {"model": ErrorResponse} for code in (400, 403, 404, 409, 503)
}

@router.post("/enrollments", response_model=EnrollmentResponse, status_code=status.HTTP_201_CREATED, responses=ERROR_RESPONSES)
async def create_enrollment(
    enrollment: EnrollmentCreate,
    current_user: TokenData = Depends(get_current_user),
    service: EnrollmentService = Depends(get_enrollment_service)
):
    """Enroll a student in a class section, subject to the enrollment rules"""
    ensure_can_act_for(current_user, enrollment.student_id)

    created = await service.enroll(enrollment.student_id, enrollment.section_id, enrollment.semester_id)
    return EnrollmentResponse.from_enrollment(created)

@router.get("/enrollments/{enrollment_id}", response_model=EnrollmentResponse, responses=ERROR_RESPONSES)
async def get_enrollment(
    enrollment_id: str,
    current_user: TokenData = Depends(get_current_user),
    service: EnrollmentService = Depends(get_enrollment_service)
):
    enrollment = await service.get_enrollment(enrollment_id)
    ensure_can_act_for(current_user, enrollment.student_id)
    return EnrollmentResponse.from_enrollment(enrollment)

@router.delete("/enrollments/{enrollment_id}", status_code=status.HTTP_204_NO_CONTENT, responses=ERROR_RESPONSES)
async def drop_enrollment(
    enrollment_id: str,
    current_user: TokenData = Depends(get_current_user),
    service: EnrollmentService = Depends(get_enrollment_service)
):
    """Drop an enrollment, subject to the drop deadline and mandatory course rules"""
    enrollment = await service.get_enrollment(enrollment_id)
    ensure_can_act_for(current_user, enrollment.student_id)

    await service.drop(enrollment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.get("/students/{student_id}/enrollments", response_model=List[EnrollmentResponse], responses=ERROR_RESPONSES)
async def get_student_enrollments(
    student_id: str,
    semester_id: str = Query(..., min_length=1),
    include_inactive: bool = False,
    current_user: TokenData = Depends(get_current_user),
    service: EnrollmentService = Depends(get_enrollment_service)
):
    ensure_can_act_for(current_user, student_id)

    enrollments = await service.list_enrollments(student_id, semester_id, include_inactive)
    return [EnrollmentResponse.from_enrollment(e) for e in enrollments]

@router.get("/students/{student_id}/completed-courses", response_model=List[str])
async def get_completed_courses(
    student_id: str,
    current_user: TokenData = Depends(get_current_user),
    stores: Stores = Depends(get_stores)
):
    """Course ids the student has completed, used for prerequisite checks"""
    ensure_can_act_for(current_user, student_id)
    return await stores.student_records.get_completed_courses(student_id)
