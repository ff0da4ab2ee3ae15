"""
Collaborator contracts consumed by the enrollment rule engines and use case.

Each contract covers a single capability so a rule engine depends only on
what it reads.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional, Tuple

from models.Courses import Course
from models.Enrollments import Enrollment
from models.Schedules import ClassSection
from models.Users import RefreshToken, User


class EnrollmentStore(ABC):
    """Persistent enrollments, active and dropped."""

    @abstractmethod
    async def get_enrollments(self, student_id: str, semester_id: str) -> List[Enrollment]:
        """All enrollments of a student in a semester, including inactive ones."""
        pass

    async def get_active_enrollments(self, student_id: str, semester_id: str) -> List[Enrollment]:
        enrollments = await self.get_enrollments(student_id, semester_id)
        return [e for e in enrollments if e.is_active]

    @abstractmethod
    async def get(self, enrollment_id: str) -> Optional[Enrollment]:
        pass

    @abstractmethod
    async def add(self, enrollment: Enrollment) -> None:
        pass

    @abstractmethod
    async def remove(self, enrollment_id: str) -> bool:
        """Physically delete an enrollment. Returns False if it did not exist."""
        pass

    @abstractmethod
    async def deactivate(self, enrollment_id: str) -> bool:
        """Mark an enrollment as dropped. Returns False if it did not exist."""
        pass

    @abstractmethod
    async def reactivate(self, enrollment_id: str) -> bool:
        """Undo a deactivate. Returns False if the enrollment did not exist."""
        pass

    @abstractmethod
    async def is_enrolled(self, student_id: str, course_id: str, semester_id: str) -> bool:
        """True if the student holds an active enrollment in any section of the course."""
        pass


class CourseCatalog(ABC):

    @abstractmethod
    async def get_course(self, course_id: str) -> Optional[Course]:
        pass

    @abstractmethod
    async def list_courses(self) -> List[Course]:
        pass

    async def get_prerequisites(self, course_id: str) -> List[str]:
        """Prerequisite course ids; empty for unknown courses."""
        course = await self.get_course(course_id)
        return list(course.prerequisites) if course else []

    async def get_course_name(self, course_id: str) -> str:
        course = await self.get_course(course_id)
        return course.name if course else course_id


class StudentRecords(ABC):

    @abstractmethod
    async def has_completed(self, student_id: str, course_id: str) -> bool:
        pass

    @abstractmethod
    async def get_completed_courses(self, student_id: str) -> List[str]:
        pass


class ClassSectionStore(ABC):

    @abstractmethod
    async def get_section(self, section_id: str) -> Optional[ClassSection]:
        pass

    @abstractmethod
    async def list_sections(self, course_id: Optional[str] = None) -> List[ClassSection]:
        pass

    async def get_stats(self, section_id: str) -> Tuple[int, int]:
        """(current enrollment count, max slot); (0, 0) when the section is unknown."""
        section = await self.get_section(section_id)
        if section is None:
            return 0, 0
        return section.enrolled_count, section.capacity

    @abstractmethod
    async def increment_enrollment(self, section_id: str, amount: int = 1) -> None:
        pass

    @abstractmethod
    async def decrement_enrollment(self, section_id: str, amount: int = 1) -> None:
        """Decrease the enrollment count, never below zero."""
        pass


class CoursePolicy(ABC):

    @abstractmethod
    async def get_drop_deadline(self, course_id: str) -> Optional[date]:
        """Last day a course may be dropped; None when no deadline applies."""
        pass

    @abstractmethod
    async def is_mandatory(self, course_id: str) -> bool:
        pass


class Clock(ABC):

    @abstractmethod
    def current_date(self) -> date:
        pass


class UserStore(ABC):

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[User]:
        pass


class RefreshTokenStore(ABC):

    @abstractmethod
    async def create(self, token: RefreshToken) -> None:
        pass

    @abstractmethod
    async def get(self, token_id: str) -> Optional[RefreshToken]:
        pass

    async def is_active(self, token_id: str) -> bool:
        token = await self.get(token_id)
        return token is not None and token.is_active

    @abstractmethod
    async def revoke(self, token_id: str, revoked_by: str) -> None:
        pass

    @abstractmethod
    async def revoke_all_for_user(self, user_id: str, revoked_by: str) -> int:
        """Revoke every active token of the user. Returns how many were revoked."""
        pass

    @abstractmethod
    async def list_for_user(self, user_id: str) -> List[RefreshToken]:
        pass

    @abstractmethod
    async def cleanup_expired(self) -> int:
        pass
