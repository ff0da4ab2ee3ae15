from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import SEMESTER, make_enrollment, make_section
from helpers.exceptions import (
    CannotDropMandatoryCourseError,
    ClassSectionFullError,
    DropDeadlineExceededError,
    MaxEnrollmentExceededError,
    PrerequisiteNotMetError,
    ScheduleConflictError,
)
from models.Schedules import DayOfWeek
from repositories.clock import FixedClock
from services.enrollment_rule_checker import EnrollmentRuleChecker
from services.rule_checkers import RuleResult

VIOLATIONS = {
    "max_enrollment": MaxEnrollmentExceededError("SV001", SEMESTER, 7, 7),
    "schedule_conflict": ScheduleConflictError(
        "SV001", SEMESTER, make_section("MATH101-01"), make_section("CS101-01")
    ),
    "prerequisite": PrerequisiteNotMetError("CS102", ["CS101"]),
    "class_section_slot": ClassSectionFullError("CS102-01", 30, 30),
    "drop_deadline": DropDeadlineExceededError("SV001", "CS102", date(2025, 9, 1), date(2025, 9, 2)),
    "mandatory_course": CannotDropMandatoryCourseError("CS101", "Introduction to Programming"),
}

ENROLL_ORDER = ["max_enrollment", "schedule_conflict", "prerequisite", "class_section_slot"]
DROP_ORDER = ["drop_deadline", "mandatory_course"]


def mock_rule(name, failing):
    rule = MagicMock()
    rule.rule = name
    if name in failing:
        rule.evaluate = AsyncMock(return_value=RuleResult(name, VIOLATIONS[name]))
    else:
        rule.evaluate = AsyncMock(return_value=RuleResult.ok(name))
    return rule


def build_checker(*failing):
    rules = {name: mock_rule(name, failing) for name in ENROLL_ORDER + DROP_ORDER}
    checker = EnrollmentRuleChecker(
        rules["max_enrollment"],
        rules["schedule_conflict"],
        rules["prerequisite"],
        rules["class_section_slot"],
        rules["drop_deadline"],
        rules["mandatory_course"],
    )
    return checker, rules


@pytest.fixture
def enrollment():
    return make_enrollment("SV001", make_section("CS102-01", slots=[(DayOfWeek.MONDAY, "08:00", "10:00")]))


async def test_all_enrollment_rules_pass(enrollment):
    checker, rules = build_checker()

    result = await checker.evaluate_enrollment_rules(enrollment)

    assert result.passed
    for name in ENROLL_ORDER:
        rules[name].evaluate.assert_awaited_once()
    for name in DROP_ORDER:
        rules[name].evaluate.assert_not_awaited()


@pytest.mark.parametrize("failing_index", range(len(ENROLL_ORDER)))
async def test_enrollment_pipeline_stops_at_first_violation(enrollment, failing_index):
    failing = ENROLL_ORDER[failing_index]
    checker, rules = build_checker(failing)

    with pytest.raises(type(VIOLATIONS[failing])):
        await checker.check_enrollment_rules(enrollment)

    for name in ENROLL_ORDER[:failing_index + 1]:
        assert rules[name].evaluate.await_count == 1
    for name in ENROLL_ORDER[failing_index + 1:]:
        assert rules[name].evaluate.await_count == 0


async def test_earliest_violation_wins_when_several_apply(enrollment):
    checker, rules = build_checker("prerequisite", "schedule_conflict", "class_section_slot")

    result = await checker.evaluate_enrollment_rules(enrollment)

    assert isinstance(result.violation, ScheduleConflictError)
    rules["prerequisite"].evaluate.assert_not_awaited()


async def test_enrollment_rules_receive_candidate_fields(enrollment):
    checker, rules = build_checker()

    await checker.check_enrollment_rules(enrollment)

    rules["max_enrollment"].evaluate.assert_awaited_once_with("SV001", SEMESTER)
    rules["schedule_conflict"].evaluate.assert_awaited_once_with("SV001", enrollment.class_section, SEMESTER)
    rules["prerequisite"].evaluate.assert_awaited_once_with("SV001", "CS102", SEMESTER)
    rules["class_section_slot"].evaluate.assert_awaited_once_with("CS102-01")


async def test_drop_pipeline_checks_deadline_before_mandatory(enrollment):
    checker, rules = build_checker("drop_deadline", "mandatory_course")

    with pytest.raises(DropDeadlineExceededError):
        await checker.check_drop_rules(enrollment)

    rules["mandatory_course"].evaluate.assert_not_awaited()


async def test_drop_pipeline_reports_mandatory_course(enrollment):
    checker, rules = build_checker("mandatory_course")
    as_of = date(2025, 9, 20)

    with pytest.raises(CannotDropMandatoryCourseError):
        await checker.check_drop_rules(enrollment, as_of)

    rules["drop_deadline"].evaluate.assert_awaited_once_with("SV001", "CS102", as_of)
    for name in ENROLL_ORDER:
        rules[name].evaluate.assert_not_awaited()


async def test_from_stores_wires_real_rules(enrollment_store, course_catalog, student_records, section_store):
    section = make_section("CS102-01", course_id="CS102", capacity=1)
    section_store.add_section(section)
    checker = EnrollmentRuleChecker.from_stores(
        enrollment_store, course_catalog, student_records, section_store, course_catalog,
        FixedClock(date(2025, 9, 15))
    )

    await checker.check_enrollment_rules(make_enrollment("SV001", section))

    with pytest.raises(PrerequisiteNotMetError):
        await checker.check_enrollment_rules(make_enrollment("SV002", section))
