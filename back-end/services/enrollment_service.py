import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import Dict, Hashable, List, Optional

from helpers.exceptions import (
    AlreadyEnrolledError,
    ClassSectionNotFoundError,
    EnrollmentNotFoundError,
    StoreUnavailableError,
)
from models.Enrollments import Enrollment
from repositories.interfaces import ClassSectionStore, EnrollmentStore
from services.enrollment_rule_checker import EnrollmentRuleChecker
from services.rule_checkers import STORE_TIMEOUT_SECONDS, call_with_timeout

logger = logging.getLogger(__name__)

class KeyedLocks:
    """asyncio locks created per key on demand and dropped once nobody holds or waits for them"""

    def __init__(self):
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._users: Dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable):
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)

class EnrollmentService:
    """Enroll and drop use cases.

    Check-then-act sequences run under a per (student, semester) lock and,
    for seat changes, a per-section lock. Locks are always taken in
    student -> section order. A failed seat update undoes the enrollment
    write that preceded it.
    """

    def __init__(self, rule_checker: EnrollmentRuleChecker, enrollment_store: EnrollmentStore,
                 section_store: ClassSectionStore, timeout: float = STORE_TIMEOUT_SECONDS):
        self.rule_checker = rule_checker
        self.enrollment_store = enrollment_store
        self.section_store = section_store
        self.timeout = timeout
        self._student_locks = KeyedLocks()
        self._section_locks = KeyedLocks()

    @asynccontextmanager
    async def _locked(self, student_id: str, semester_id: str, section_id: str):
        async with self._student_locks.hold((student_id, semester_id)):
            async with self._section_locks.hold(section_id):
                yield

    async def _call(self, operation: str, awaitable):
        return await call_with_timeout(operation, awaitable, self.timeout)

    async def enroll(self, student_id: str, section_id: str, semester_id: str) -> Enrollment:
        """Validate and persist a new enrollment"""
        logger.info(f"Enrolling student {student_id} in section {section_id} for semester {semester_id}")

        async with self._locked(student_id, semester_id, section_id):
            section = await self._call("get_section", self.section_store.get_section(section_id))
            if section is None:
                raise ClassSectionNotFoundError(section_id)

            if await self._call(
                "is_enrolled", self.enrollment_store.is_enrolled(student_id, section.course_id, semester_id)
            ):
                raise AlreadyEnrolledError(student_id, section.course_id, semester_id)

            enrollment = Enrollment(
                student_id=student_id,
                section_id=section_id,
                semester_id=semester_id,
                class_section=section
            )
            await self.rule_checker.check_enrollment_rules(enrollment)

            await self._call("add", self.enrollment_store.add(enrollment))
            try:
                await self._call("increment_enrollment", self.section_store.increment_enrollment(section_id))
            except StoreUnavailableError:
                logger.error(f"Seat update failed for section {section_id}, removing enrollment {enrollment.enrollment_id}")
                await self._undo("remove", self.enrollment_store.remove(enrollment.enrollment_id))
                raise

        logger.info(f"Enrollment {enrollment.enrollment_id} created for student {student_id}")
        return enrollment

    async def drop(self, enrollment_id: str, as_of: Optional[date] = None) -> Enrollment:
        """Validate the drop rules and mark the enrollment inactive"""
        logger.info(f"Dropping enrollment {enrollment_id}")

        enrollment = await self.get_enrollment(enrollment_id)
        async with self._locked(enrollment.student_id, enrollment.semester_id, enrollment.section_id):
            # Re-read under the lock; a concurrent drop may have won
            enrollment = await self.get_enrollment(enrollment_id)
            if not enrollment.is_active:
                raise EnrollmentNotFoundError(enrollment_id)

            await self.rule_checker.check_drop_rules(enrollment, as_of)

            await self._call("deactivate", self.enrollment_store.deactivate(enrollment_id))
            try:
                await self._call(
                    "decrement_enrollment", self.section_store.decrement_enrollment(enrollment.section_id)
                )
            except StoreUnavailableError:
                logger.error(f"Seat update failed for section {enrollment.section_id}, reactivating {enrollment_id}")
                await self._undo("reactivate", self.enrollment_store.reactivate(enrollment_id))
                raise

        enrollment.is_active = False
        logger.info(f"Enrollment {enrollment_id} dropped")
        return enrollment

    async def _undo(self, operation: str, awaitable) -> None:
        """Run a compensating write; its own failure is logged and the original error wins"""
        try:
            await self._call(operation, awaitable)
        except StoreUnavailableError as e:
            logger.error(f"Compensating {operation} failed: {e.message}")

    async def get_enrollment(self, enrollment_id: str) -> Enrollment:
        enrollment = await self._call("get", self.enrollment_store.get(enrollment_id))
        if enrollment is None:
            raise EnrollmentNotFoundError(enrollment_id)
        return enrollment

    async def list_enrollments(self, student_id: str, semester_id: str, include_inactive: bool = False) -> List[Enrollment]:
        if include_inactive:
            lookup = self.enrollment_store.get_enrollments(student_id, semester_id)
        else:
            lookup = self.enrollment_store.get_active_enrollments(student_id, semester_id)
        enrollments = await self._call("get_enrollments", lookup)
        return sorted(enrollments, key=lambda e: e.enrolled_at)
