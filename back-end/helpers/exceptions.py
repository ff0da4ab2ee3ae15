from datetime import date
from typing import Any, Dict, List, Optional

class EnrollmentError(Exception):
    """Base exception for enrollment errors"""
    error_code = "ENROLLMENT_ERROR"
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

class EnrollmentRuleError(EnrollmentError):
    """Base exception for academic business-rule violations"""
    rule = ""

class MaxEnrollmentExceededError(EnrollmentRuleError):
    """Student already holds the maximum number of active enrollments in the semester"""
    error_code = "MAX_ENROLLMENT_EXCEEDED"
    status_code = 409
    rule = "max_enrollment"

    def __init__(self, student_id: str, semester_id: str, current_count: int, max_allowed: int):
        self.student_id = student_id
        self.semester_id = semester_id
        self.current_count = current_count
        self.max_allowed = max_allowed
        super().__init__(
            f"Student {student_id} already has {current_count} active enrollments in semester "
            f"{semester_id}. The limit is {max_allowed}.",
            {
                "student_id": student_id,
                "semester_id": semester_id,
                "current_enrollment_count": current_count,
                "max_allowed_enrollments": max_allowed
            }
        )

class ScheduleConflictError(EnrollmentRuleError):
    """Candidate section overlaps a section the student is already enrolled in"""
    error_code = "SCHEDULE_CONFLICT"
    status_code = 409
    rule = "schedule_conflict"

    def __init__(self, student_id: str, semester_id: str, target_section, conflicting_section):
        self.student_id = student_id
        self.semester_id = semester_id
        self.target_section = target_section
        self.conflicting_section = conflicting_section
        super().__init__(
            f"Student {student_id} cannot enroll in {target_section.display_name} because it conflicts "
            f"with {conflicting_section.display_name} in semester {semester_id}.",
            {
                "student_id": student_id,
                "semester_id": semester_id,
                "target_section_id": target_section.section_id,
                "conflicting_section_id": conflicting_section.section_id
            }
        )

class PrerequisiteNotMetError(EnrollmentRuleError):
    """One or more prerequisites of the course are not completed"""
    error_code = "PREREQUISITE_NOT_MET"
    status_code = 400
    rule = "prerequisite"

    def __init__(self, course_id: str, missing_prerequisites: List[str]):
        self.course_id = course_id
        self.missing_prerequisites = list(missing_prerequisites)
        super().__init__(
            f"Missing prerequisites for course {course_id}: {', '.join(self.missing_prerequisites)}",
            {
                "course_id": course_id,
                "missing_prerequisites": self.missing_prerequisites
            }
        )

class ClassSectionFullError(EnrollmentRuleError):
    """Class section has no free seat left"""
    error_code = "CLASS_SECTION_FULL"
    status_code = 409
    rule = "class_section_slot"

    def __init__(self, section_id: str, current_count: int, max_slot: int, message: Optional[str] = None):
        self.section_id = section_id
        self.current_count = current_count
        self.max_slot = max_slot
        super().__init__(
            message or f"Class section {section_id} is full ({current_count}/{max_slot}).",
            {
                "section_id": section_id,
                "current_enrollment_count": current_count,
                "max_slot": max_slot
            }
        )

class ClassSectionNotFoundError(ClassSectionFullError):
    """Class section has no seats configured at all, i.e. it does not exist"""
    error_code = "CLASS_SECTION_NOT_FOUND"
    status_code = 404

    def __init__(self, section_id: str):
        super().__init__(section_id, 0, 0, f"Class section {section_id} does not exist.")

class DropDeadlineExceededError(EnrollmentRuleError):
    """Drop requested after the course's drop deadline"""
    error_code = "DROP_DEADLINE_EXCEEDED"
    status_code = 403
    rule = "drop_deadline"

    def __init__(self, student_id: str, course_id: str, deadline: date, as_of: date):
        self.student_id = student_id
        self.course_id = course_id
        self.deadline = deadline
        self.as_of = as_of
        super().__init__(
            f"Student {student_id} cannot drop course {course_id} after the deadline "
            f"{deadline.isoformat()}. Current date: {as_of.isoformat()}.",
            {
                "student_id": student_id,
                "course_id": course_id,
                "deadline": deadline.isoformat(),
                "as_of": as_of.isoformat()
            }
        )

class CannotDropMandatoryCourseError(EnrollmentRuleError):
    """Course is mandatory and may not be dropped"""
    error_code = "CANNOT_DROP_MANDATORY"
    status_code = 403
    rule = "mandatory_course"

    def __init__(self, course_id: str, course_name: str):
        self.course_id = course_id
        self.course_name = course_name
        super().__init__(
            f"Cannot drop mandatory course: {course_name} (ID: {course_id})",
            {"course_id": course_id, "course_name": course_name}
        )

class EnrollmentNotFoundError(EnrollmentError):
    error_code = "ENROLLMENT_NOT_FOUND"
    status_code = 404

    def __init__(self, enrollment_id: str):
        self.enrollment_id = enrollment_id
        super().__init__(f"Enrollment {enrollment_id} not found", {"enrollment_id": enrollment_id})

class AlreadyEnrolledError(EnrollmentError):
    error_code = "ALREADY_ENROLLED"
    status_code = 409

    def __init__(self, student_id: str, course_id: str, semester_id: str):
        super().__init__(
            f"Student {student_id} is already enrolled in course {course_id} for semester {semester_id}",
            {"student_id": student_id, "course_id": course_id, "semester_id": semester_id}
        )

class StoreUnavailableError(Exception):
    """Transient infrastructure failure (timeout or driver error) while reading or writing a store.

    Never a rule violation. Callers may retry.
    """
    error_code = "SERVICE_UNAVAILABLE"
    status_code = 503
    retryable = True

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        self.message = f"Store operation '{operation}' failed"
        if cause is not None:
            self.message += f": {cause!r}"
        super().__init__(self.message)
