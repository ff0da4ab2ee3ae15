"""
Enrollment business rules.

Each rule reads from the collaborators it is given and returns a RuleResult:
either passed, or a violation carrying the typed rule error. Collaborator
timeouts and driver failures are raised as StoreUnavailableError and are
never reported as violations.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from datetime import date
from typing import Awaitable, Optional, TypeVar

from helpers.exceptions import (
    CannotDropMandatoryCourseError,
    ClassSectionFullError,
    ClassSectionNotFoundError,
    DropDeadlineExceededError,
    EnrollmentRuleError,
    MaxEnrollmentExceededError,
    PrerequisiteNotMetError,
    ScheduleConflictError,
    StoreUnavailableError,
)
from helpers.schedule_conflicts import sections_conflict
from models.Schedules import ClassSection
from repositories.interfaces import (
    ClassSectionStore,
    Clock,
    CourseCatalog,
    CoursePolicy,
    EnrollmentStore,
    StudentRecords,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_ENROLLMENTS_PER_SEMESTER = 7
STORE_TIMEOUT_SECONDS = float(os.getenv("STORE_TIMEOUT_SECONDS", "5"))


@dataclass(frozen=True)
class RuleResult:
    """Outcome of a single rule: passed, or a violation"""
    rule: str
    violation: Optional[EnrollmentRuleError] = None

    @property
    def passed(self) -> bool:
        return self.violation is None

    def raise_for_violation(self) -> None:
        if self.violation is not None:
            raise self.violation

    @classmethod
    def ok(cls, rule: str) -> "RuleResult":
        return cls(rule)

    @classmethod
    def fail(cls, error: EnrollmentRuleError) -> "RuleResult":
        logger.warning(f"Rule {error.rule} violated ({error.error_code}): {error.details}")
        return cls(error.rule, error)


async def call_with_timeout(operation: str, awaitable: Awaitable[T], timeout: float = STORE_TIMEOUT_SECONDS) -> T:
    """Await a collaborator call, raising StoreUnavailableError once the timeout elapses"""
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError as e:
        logger.error(f"{operation} timed out after {timeout}s")
        raise StoreUnavailableError(operation, e) from e


class RuleChecker:
    rule = ""

    def __init__(self, timeout: float = STORE_TIMEOUT_SECONDS):
        self.timeout = timeout

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        return await call_with_timeout(operation, awaitable, self.timeout)


class MaxEnrollmentRule(RuleChecker):
    """A student may hold at most MAX_ENROLLMENTS_PER_SEMESTER active enrollments per semester"""
    rule = "max_enrollment"

    def __init__(self, enrollment_store: EnrollmentStore, max_enrollments: int = MAX_ENROLLMENTS_PER_SEMESTER,
                 timeout: float = STORE_TIMEOUT_SECONDS):
        super().__init__(timeout)
        if enrollment_store is None:
            raise ValueError("enrollment_store is required")
        self.enrollment_store = enrollment_store
        self.max_enrollments = max_enrollments

    async def evaluate(self, student_id: str, semester_id: str) -> RuleResult:
        enrollments = await self._call(
            "get_enrollments", self.enrollment_store.get_enrollments(student_id, semester_id)
        )
        active_count = sum(1 for e in enrollments if e.is_active)

        if active_count >= self.max_enrollments:
            return RuleResult.fail(
                MaxEnrollmentExceededError(student_id, semester_id, active_count, self.max_enrollments)
            )
        return RuleResult.ok(self.rule)

    async def check(self, student_id: str, semester_id: str) -> None:
        (await self.evaluate(student_id, semester_id)).raise_for_violation()


class ScheduleConflictRule(RuleChecker):
    """The candidate section may not overlap any section the student is actively enrolled in.

    Only the first conflicting enrollment is reported.
    """
    rule = "schedule_conflict"

    def __init__(self, enrollment_store: EnrollmentStore, timeout: float = STORE_TIMEOUT_SECONDS):
        super().__init__(timeout)
        if enrollment_store is None:
            raise ValueError("enrollment_store is required")
        self.enrollment_store = enrollment_store

    async def evaluate(self, student_id: str, section: ClassSection, semester_id: str) -> RuleResult:
        enrollments = await self._call(
            "get_enrollments", self.enrollment_store.get_enrollments(student_id, semester_id)
        )

        for enrollment in enrollments:
            if not enrollment.is_active:
                continue
            if sections_conflict(section, enrollment.class_section):
                return RuleResult.fail(
                    ScheduleConflictError(student_id, semester_id, section, enrollment.class_section)
                )
        return RuleResult.ok(self.rule)

    async def check(self, student_id: str, section: ClassSection, semester_id: str) -> None:
        (await self.evaluate(student_id, section, semester_id)).raise_for_violation()


class PrerequisiteRule(RuleChecker):
    """Every prerequisite of the course must be completed.

    Completion lookups run concurrently; all missing prerequisites are
    reported, in the order the course declares them.
    """
    rule = "prerequisite"

    def __init__(self, course_catalog: CourseCatalog, student_records: StudentRecords,
                 timeout: float = STORE_TIMEOUT_SECONDS):
        super().__init__(timeout)
        self.course_catalog = course_catalog
        self.student_records = student_records

    async def evaluate(self, student_id: str, course_id: str, semester_id: Optional[str] = None) -> RuleResult:
        prerequisites = await self._call(
            "get_prerequisites", self.course_catalog.get_prerequisites(course_id)
        )
        if not prerequisites:
            return RuleResult.ok(self.rule)

        completed = await asyncio.gather(*(
            self._call("has_completed", self.student_records.has_completed(student_id, prerequisite_id))
            for prerequisite_id in prerequisites
        ), return_exceptions=True)
        # Every lookup has settled; surface the first failure
        errors = [result for result in completed if isinstance(result, BaseException)]
        if errors:
            raise next((e for e in errors if isinstance(e, StoreUnavailableError)), errors[0])

        missing = [
            prerequisite_id
            for prerequisite_id, has_completed in zip(prerequisites, completed)
            if not has_completed
        ]

        if missing:
            return RuleResult.fail(PrerequisiteNotMetError(course_id, missing))
        return RuleResult.ok(self.rule)

    async def check(self, student_id: str, course_id: str, semester_id: Optional[str] = None) -> None:
        (await self.evaluate(student_id, course_id, semester_id)).raise_for_violation()


class ClassSectionSlotRule(RuleChecker):
    """The section must exist and have a free seat; a section at capacity is full"""
    rule = "class_section_slot"

    def __init__(self, section_store: ClassSectionStore, timeout: float = STORE_TIMEOUT_SECONDS):
        super().__init__(timeout)
        self.section_store = section_store

    async def evaluate(self, section_id: str) -> RuleResult:
        current_count, max_slot = await self._call("get_stats", self.section_store.get_stats(section_id))

        # No seats configured means the section is unknown
        if max_slot == 0:
            return RuleResult.fail(ClassSectionNotFoundError(section_id))

        if current_count >= max_slot:
            return RuleResult.fail(ClassSectionFullError(section_id, current_count, max_slot))

        logger.debug(f"Class section {section_id} has {max_slot - current_count} seats left")
        return RuleResult.ok(self.rule)

    async def check(self, section_id: str) -> None:
        (await self.evaluate(section_id)).raise_for_violation()


class DropDeadlineRule(RuleChecker):
    """A course may be dropped up to and including its drop deadline"""
    rule = "drop_deadline"

    def __init__(self, course_policy: CoursePolicy, clock: Clock, timeout: float = STORE_TIMEOUT_SECONDS):
        super().__init__(timeout)
        if course_policy is None or clock is None:
            raise ValueError("course_policy and clock are required")
        self.course_policy = course_policy
        self.clock = clock

    async def evaluate(self, student_id: str, course_id: str, as_of: Optional[date] = None) -> RuleResult:
        deadline = await self._call("get_drop_deadline", self.course_policy.get_drop_deadline(course_id))
        if deadline is None:
            return RuleResult.ok(self.rule)

        as_of = as_of or self.clock.current_date()
        if as_of > deadline:
            return RuleResult.fail(DropDeadlineExceededError(student_id, course_id, deadline, as_of))
        return RuleResult.ok(self.rule)

    async def check(self, student_id: str, course_id: str, as_of: Optional[date] = None) -> None:
        (await self.evaluate(student_id, course_id, as_of)).raise_for_violation()


class MandatoryCourseRule(RuleChecker):
    """Mandatory courses cannot be dropped"""
    rule = "mandatory_course"

    def __init__(self, course_policy: CoursePolicy, course_catalog: Optional[CourseCatalog] = None,
                 timeout: float = STORE_TIMEOUT_SECONDS):
        super().__init__(timeout)
        if course_policy is None:
            raise ValueError("course_policy is required")
        self.course_policy = course_policy
        self.course_catalog = course_catalog

    async def evaluate(self, course_id: str, course_name: Optional[str] = None) -> RuleResult:
        is_mandatory = await self._call("is_mandatory", self.course_policy.is_mandatory(course_id))
        if not is_mandatory:
            return RuleResult.ok(self.rule)

        if course_name is None:
            course_name = course_id
            if self.course_catalog is not None:
                course_name = await self._call("get_course_name", self.course_catalog.get_course_name(course_id))
        return RuleResult.fail(CannotDropMandatoryCourseError(course_id, course_name))

    async def check(self, course_id: str, course_name: Optional[str] = None) -> None:
        (await self.evaluate(course_id, course_name)).raise_for_violation()
