"""
In-memory collaborators. State lives in per-instance dictionaries; copies are
handed out so callers cannot mutate stored records behind the store's back.
"""

import logging
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional, Set

from models.Courses import Course
from models.Enrollments import Enrollment
from models.Schedules import ClassSection
from models.Users import RefreshToken, User
from repositories.interfaces import (
    ClassSectionStore,
    CourseCatalog,
    CoursePolicy,
    EnrollmentStore,
    RefreshTokenStore,
    StudentRecords,
    UserStore,
)

logger = logging.getLogger(__name__)


class InMemoryEnrollmentStore(EnrollmentStore):

    def __init__(self, enrollments: Iterable[Enrollment] = ()):
        self._enrollments: Dict[str, Enrollment] = {}
        for enrollment in enrollments:
            self._enrollments[enrollment.enrollment_id] = enrollment.model_copy(deep=True)

    async def get_enrollments(self, student_id: str, semester_id: str) -> List[Enrollment]:
        return [
            e.model_copy(deep=True) for e in self._enrollments.values()
            if e.student_id == student_id and e.semester_id == semester_id
        ]

    async def get(self, enrollment_id: str) -> Optional[Enrollment]:
        enrollment = self._enrollments.get(enrollment_id)
        return enrollment.model_copy(deep=True) if enrollment else None

    async def add(self, enrollment: Enrollment) -> None:
        self._enrollments[enrollment.enrollment_id] = enrollment.model_copy(deep=True)

    async def remove(self, enrollment_id: str) -> bool:
        return self._enrollments.pop(enrollment_id, None) is not None

    async def deactivate(self, enrollment_id: str) -> bool:
        enrollment = self._enrollments.get(enrollment_id)
        if enrollment is None:
            return False
        enrollment.is_active = False
        return True

    async def reactivate(self, enrollment_id: str) -> bool:
        enrollment = self._enrollments.get(enrollment_id)
        if enrollment is None:
            return False
        enrollment.is_active = True
        return True

    async def is_enrolled(self, student_id: str, course_id: str, semester_id: str) -> bool:
        return any(
            e.student_id == student_id and e.course_id == course_id
            and e.semester_id == semester_id and e.is_active
            for e in self._enrollments.values()
        )

    def count(self) -> int:
        return len(self._enrollments)


class InMemoryCourseCatalog(CourseCatalog, CoursePolicy):
    """Course catalog and course policy backed by the same course records"""

    def __init__(self, courses: Iterable[Course] = ()):
        self._courses: Dict[str, Course] = {c.course_id: c for c in courses}

    async def get_course(self, course_id: str) -> Optional[Course]:
        course = self._courses.get(course_id)
        return course.model_copy(deep=True) if course else None

    async def list_courses(self) -> List[Course]:
        return [c.model_copy(deep=True) for c in self._courses.values()]

    async def get_drop_deadline(self, course_id: str) -> Optional[date]:
        course = self._courses.get(course_id)
        return course.drop_deadline if course else None

    async def is_mandatory(self, course_id: str) -> bool:
        course = self._courses.get(course_id)
        return bool(course and course.is_mandatory)

    def add_course(self, course: Course) -> None:
        self._courses[course.course_id] = course


class InMemoryStudentRecords(StudentRecords):

    def __init__(self, completed: Optional[Dict[str, Iterable[str]]] = None):
        self._completed: Dict[str, Set[str]] = {
            student_id: set(courses) for student_id, courses in (completed or {}).items()
        }

    async def has_completed(self, student_id: str, course_id: str) -> bool:
        return course_id in self._completed.get(student_id, set())

    async def get_completed_courses(self, student_id: str) -> List[str]:
        return sorted(self._completed.get(student_id, set()))

    def add_completed_course(self, student_id: str, course_id: str) -> None:
        self._completed.setdefault(student_id, set()).add(course_id)


class InMemoryClassSectionStore(ClassSectionStore):

    def __init__(self, sections: Iterable[ClassSection] = ()):
        self._sections: Dict[str, ClassSection] = {s.section_id: s.model_copy(deep=True) for s in sections}

    async def get_section(self, section_id: str) -> Optional[ClassSection]:
        section = self._sections.get(section_id)
        return section.model_copy(deep=True) if section else None

    async def list_sections(self, course_id: Optional[str] = None) -> List[ClassSection]:
        return [
            s.model_copy(deep=True) for s in self._sections.values()
            if course_id is None or s.course_id == course_id
        ]

    async def increment_enrollment(self, section_id: str, amount: int = 1) -> None:
        section = self._sections.get(section_id)
        if section is not None:
            section.enrolled_count += amount

    async def decrement_enrollment(self, section_id: str, amount: int = 1) -> None:
        section = self._sections.get(section_id)
        if section is not None:
            section.enrolled_count = max(0, section.enrolled_count - amount)

    def add_section(self, section: ClassSection) -> None:
        self._sections[section.section_id] = section.model_copy(deep=True)


class InMemoryUserStore(UserStore):

    def __init__(self, users: Iterable[User] = ()):
        self._users: Dict[str, User] = {u.user_id: u for u in users}

    async def get_by_username(self, username: str) -> Optional[User]:
        for user in self._users.values():
            if user.username.lower() == username.lower():
                return user.model_copy()
        return None

    async def get_by_id(self, user_id: str) -> Optional[User]:
        user = self._users.get(user_id)
        return user.model_copy() if user else None

    def add_user(self, user: User) -> None:
        self._users[user.user_id] = user


class InMemoryRefreshTokenStore(RefreshTokenStore):

    def __init__(self):
        self._tokens: Dict[str, RefreshToken] = {}

    async def create(self, token: RefreshToken) -> None:
        self._tokens[token.token_id] = token.model_copy()

    async def get(self, token_id: str) -> Optional[RefreshToken]:
        token = self._tokens.get(token_id)
        return token.model_copy() if token else None

    async def revoke(self, token_id: str, revoked_by: str) -> None:
        token = self._tokens.get(token_id)
        if token is not None and not token.revoked:
            self._revoke(token, revoked_by)

    async def revoke_all_for_user(self, user_id: str, revoked_by: str) -> int:
        revoked = 0
        for token in self._tokens.values():
            if token.user_id == user_id and not token.revoked:
                self._revoke(token, revoked_by)
                revoked += 1
        return revoked

    async def list_for_user(self, user_id: str) -> List[RefreshToken]:
        return [t.model_copy() for t in self._tokens.values() if t.user_id == user_id]

    async def cleanup_expired(self) -> int:
        expired = [token_id for token_id, token in self._tokens.items() if token.is_expired]
        for token_id in expired:
            del self._tokens[token_id]
        if expired:
            logger.info(f"Removed {len(expired)} expired refresh tokens")
        return len(expired)

    @staticmethod
    def _revoke(token: RefreshToken, revoked_by: str) -> None:
        token.revoked = True
        token.revoked_at = datetime.now(timezone.utc)
        token.revoked_by = revoked_by
