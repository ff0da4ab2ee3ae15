"""Admin endpoints that evaluate a single enrollment rule in isolation."""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from dependencies import Stores, get_stores, get_rule_checker
from helpers.auth import get_current_admin
from helpers.exceptions import ClassSectionNotFoundError
from models.Enrollments import RuleCheckResponse
from services.enrollment_rule_checker import EnrollmentRuleChecker

router = APIRouter(dependencies=[Depends(get_current_admin)])

class StudentSemesterRequest(BaseModel):
    student_id: str = Field(..., min_length=1)
    semester_id: str = Field(..., min_length=1)

class ScheduleConflictRequest(StudentSemesterRequest):
    section_id: str = Field(..., min_length=1)

class PrerequisiteRequest(BaseModel):
    student_id: str = Field(..., min_length=1)
    course_id: str = Field(..., min_length=1)

class SectionRequest(BaseModel):
    section_id: str = Field(..., min_length=1)

class DropDeadlineRequest(PrerequisiteRequest):
    as_of: Optional[date] = None

class MandatoryCourseRequest(BaseModel):
    course_id: str = Field(..., min_length=1)
    course_name: Optional[str] = None

@router.post("/rules/max-enrollment", response_model=RuleCheckResponse)
async def check_max_enrollment(
    request: StudentSemesterRequest,
    checker: EnrollmentRuleChecker = Depends(get_rule_checker)
):
    await checker.check_max_enrollment(request.student_id, request.semester_id)
    return RuleCheckResponse(rule=checker.max_enrollment_rule.rule)

@router.post("/rules/schedule-conflict", response_model=RuleCheckResponse)
async def check_schedule_conflict(
    request: ScheduleConflictRequest,
    checker: EnrollmentRuleChecker = Depends(get_rule_checker),
    stores: Stores = Depends(get_stores)
):
    section = await stores.section_store.get_section(request.section_id)
    if section is None:
        raise ClassSectionNotFoundError(request.section_id)

    await checker.check_schedule_conflict(request.student_id, section, request.semester_id)
    return RuleCheckResponse(rule=checker.schedule_conflict_rule.rule)

@router.post("/rules/prerequisites", response_model=RuleCheckResponse)
async def check_prerequisites(
    request: PrerequisiteRequest,
    checker: EnrollmentRuleChecker = Depends(get_rule_checker)
):
    await checker.check_prerequisites(request.student_id, request.course_id)
    return RuleCheckResponse(rule=checker.prerequisite_rule.rule)

@router.post("/rules/class-section-slot", response_model=RuleCheckResponse)
async def check_class_section_slot(
    request: SectionRequest,
    checker: EnrollmentRuleChecker = Depends(get_rule_checker)
):
    await checker.check_class_slot_availability(request.section_id)
    return RuleCheckResponse(rule=checker.class_section_slot_rule.rule)

@router.post("/rules/drop-deadline", response_model=RuleCheckResponse)
async def check_drop_deadline(
    request: DropDeadlineRequest,
    checker: EnrollmentRuleChecker = Depends(get_rule_checker)
):
    await checker.check_drop_deadline(request.student_id, request.course_id, request.as_of)
    return RuleCheckResponse(rule=checker.drop_deadline_rule.rule)

@router.post("/rules/mandatory-course", response_model=RuleCheckResponse)
async def check_mandatory_course(
    request: MandatoryCourseRequest,
    checker: EnrollmentRuleChecker = Depends(get_rule_checker)
):
    await checker.check_mandatory_course(request.course_id, request.course_name)
    return RuleCheckResponse(rule=checker.mandatory_course_rule.rule)
