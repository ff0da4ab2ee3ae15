"""
Composite rule checker: runs the enrollment rules and the drop rules as two
fixed, short-circuiting pipelines.

Enroll: max enrollment -> schedule conflict -> prerequisite -> section slot.
Drop:   drop deadline -> mandatory course.

Cheap and frequently failing rules run first; the order does not change
which requests pass, only which violation is reported when several apply.
"""

import logging
from datetime import date
from typing import Optional

from models.Enrollments import Enrollment
from models.Schedules import ClassSection
from services.rule_checkers import (
    ClassSectionSlotRule,
    DropDeadlineRule,
    MandatoryCourseRule,
    MaxEnrollmentRule,
    PrerequisiteRule,
    RuleResult,
    ScheduleConflictRule,
    STORE_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

ENROLLMENT_PIPELINE = "enrollment"
DROP_PIPELINE = "drop"


class EnrollmentRuleChecker:

    def __init__(
        self,
        max_enrollment_rule: MaxEnrollmentRule,
        schedule_conflict_rule: ScheduleConflictRule,
        prerequisite_rule: PrerequisiteRule,
        class_section_slot_rule: ClassSectionSlotRule,
        drop_deadline_rule: DropDeadlineRule,
        mandatory_course_rule: MandatoryCourseRule,
    ):
        self.max_enrollment_rule = max_enrollment_rule
        self.schedule_conflict_rule = schedule_conflict_rule
        self.prerequisite_rule = prerequisite_rule
        self.class_section_slot_rule = class_section_slot_rule
        self.drop_deadline_rule = drop_deadline_rule
        self.mandatory_course_rule = mandatory_course_rule

    @classmethod
    def from_stores(cls, enrollment_store, course_catalog, student_records, section_store,
                    course_policy, clock, timeout: float = STORE_TIMEOUT_SECONDS) -> "EnrollmentRuleChecker":
        return cls(
            MaxEnrollmentRule(enrollment_store, timeout=timeout),
            ScheduleConflictRule(enrollment_store, timeout=timeout),
            PrerequisiteRule(course_catalog, student_records, timeout=timeout),
            ClassSectionSlotRule(section_store, timeout=timeout),
            DropDeadlineRule(course_policy, clock, timeout=timeout),
            MandatoryCourseRule(course_policy, course_catalog, timeout=timeout),
        )

    async def evaluate_enrollment_rules(self, enrollment: Enrollment) -> RuleResult:
        """Run the enrollment pipeline, stopping at the first violation"""
        steps = (
            lambda: self.max_enrollment_rule.evaluate(enrollment.student_id, enrollment.semester_id),
            lambda: self.schedule_conflict_rule.evaluate(
                enrollment.student_id, enrollment.class_section, enrollment.semester_id
            ),
            lambda: self.prerequisite_rule.evaluate(
                enrollment.student_id, enrollment.course_id, enrollment.semester_id
            ),
            lambda: self.class_section_slot_rule.evaluate(enrollment.section_id),
        )
        return await self._run(ENROLLMENT_PIPELINE, steps)

    async def evaluate_drop_rules(self, enrollment: Enrollment, as_of: Optional[date] = None) -> RuleResult:
        """Run the drop pipeline, stopping at the first violation"""
        steps = (
            lambda: self.drop_deadline_rule.evaluate(enrollment.student_id, enrollment.course_id, as_of),
            lambda: self.mandatory_course_rule.evaluate(enrollment.course_id),
        )
        return await self._run(DROP_PIPELINE, steps)

    async def check_enrollment_rules(self, enrollment: Enrollment) -> None:
        (await self.evaluate_enrollment_rules(enrollment)).raise_for_violation()

    async def check_drop_rules(self, enrollment: Enrollment, as_of: Optional[date] = None) -> None:
        (await self.evaluate_drop_rules(enrollment, as_of)).raise_for_violation()

    # Single rules, forwarded to the matching engine

    async def check_max_enrollment(self, student_id: str, semester_id: str) -> None:
        await self.max_enrollment_rule.check(student_id, semester_id)

    async def check_schedule_conflict(self, student_id: str, section: ClassSection, semester_id: str) -> None:
        await self.schedule_conflict_rule.check(student_id, section, semester_id)

    async def check_prerequisites(self, student_id: str, course_id: str, semester_id: Optional[str] = None) -> None:
        await self.prerequisite_rule.check(student_id, course_id, semester_id)

    async def check_class_slot_availability(self, section_id: str) -> None:
        await self.class_section_slot_rule.check(section_id)

    async def check_drop_deadline(self, student_id: str, course_id: str, as_of: Optional[date] = None) -> None:
        await self.drop_deadline_rule.check(student_id, course_id, as_of)

    async def check_mandatory_course(self, course_id: str, course_name: Optional[str] = None) -> None:
        await self.mandatory_course_rule.check(course_id, course_name)

    @staticmethod
    async def _run(pipeline: str, steps) -> RuleResult:
        for step in steps:
            result = await step()
            if not result.passed:
                logger.info(f"{pipeline} pipeline stopped at rule {result.rule}")
                return result
        return RuleResult.ok(pipeline)
