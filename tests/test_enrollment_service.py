import asyncio
from datetime import date
from unittest.mock import AsyncMock

import pytest

from conftest import SEMESTER, make_enrollment, make_section
from helpers.exceptions import (
    AlreadyEnrolledError,
    CannotDropMandatoryCourseError,
    ClassSectionFullError,
    ClassSectionNotFoundError,
    DropDeadlineExceededError,
    EnrollmentNotFoundError,
    MaxEnrollmentExceededError,
    StoreUnavailableError,
)
from models.Schedules import DayOfWeek
from services.enrollment_rule_checker import EnrollmentRuleChecker
from services.enrollment_service import EnrollmentService


@pytest.fixture
def service(enrollment_store, course_catalog, student_records, section_store, clock):
    checker = EnrollmentRuleChecker.from_stores(
        enrollment_store, course_catalog, student_records, section_store, course_catalog, clock
    )
    return EnrollmentService(checker, enrollment_store, section_store)


def add_free_sections(section_store, count, capacity=30):
    """Non-overlapping sections of prerequisite-free courses"""
    sections = []
    for i in range(count):
        section = make_section(
            f"ELEC{i}-01",
            slots=[(DayOfWeek.SATURDAY, f"{7 + i}:00", f"{7 + i}:50")],
            capacity=capacity,
        )
        section_store.add_section(section)
        sections.append(section)
    return sections


async def test_enroll_persists_and_takes_a_seat(service, enrollment_store, section_store):
    section_store.add_section(make_section("CS102-01", capacity=2))

    enrollment = await service.enroll("SV001", "CS102-01", SEMESTER)

    assert enrollment.is_active
    assert enrollment.course_id == "CS102"
    assert (await enrollment_store.get(enrollment.enrollment_id)).student_id == "SV001"
    assert await section_store.get_stats("CS102-01") == (1, 2)


async def test_enroll_in_unknown_section(service, enrollment_store):
    with pytest.raises(ClassSectionNotFoundError):
        await service.enroll("SV001", "NOPE-01", SEMESTER)

    assert enrollment_store.count() == 0


async def test_enroll_twice_in_same_course(service, section_store):
    section_store.add_section(make_section("CS102-01", slots=[(DayOfWeek.MONDAY, "08:00", "10:00")]))
    section_store.add_section(make_section("CS102-02", slots=[(DayOfWeek.FRIDAY, "08:00", "10:00")]))
    await service.enroll("SV001", "CS102-01", SEMESTER)

    with pytest.raises(AlreadyEnrolledError):
        await service.enroll("SV001", "CS102-02", SEMESTER)


async def test_rule_violation_persists_nothing(service, enrollment_store, section_store):
    section_store.add_section(make_section("CS102-01", capacity=1, enrolled_count=1))

    with pytest.raises(ClassSectionFullError):
        await service.enroll("SV001", "CS102-01", SEMESTER)

    assert enrollment_store.count() == 0
    assert await section_store.get_stats("CS102-01") == (1, 1)


async def test_concurrent_enrolls_at_cap_admit_only_one(service, enrollment_store, section_store):
    sections = add_free_sections(section_store, 8)
    for section in sections[:6]:
        await service.enroll("SV001", section.section_id, SEMESTER)

    results = await asyncio.gather(
        service.enroll("SV001", sections[6].section_id, SEMESTER),
        service.enroll("SV001", sections[7].section_id, SEMESTER),
        return_exceptions=True,
    )

    assert sum(1 for r in results if isinstance(r, MaxEnrollmentExceededError)) == 1
    assert len(await enrollment_store.get_active_enrollments("SV001", SEMESTER)) == 7


async def test_concurrent_enrolls_for_last_seat(service, section_store):
    add_free_sections(section_store, 1, capacity=1)

    results = await asyncio.gather(
        service.enroll("SV001", "ELEC0-01", SEMESTER),
        service.enroll("SV002", "ELEC0-01", SEMESTER),
        return_exceptions=True,
    )

    assert sum(1 for r in results if isinstance(r, ClassSectionFullError)) == 1
    assert await section_store.get_stats("ELEC0-01") == (1, 1)


async def test_drop_marks_enrollment_inactive(service, enrollment_store, section_store):
    section_store.add_section(make_section("CS102-01", capacity=2))
    enrollment = await service.enroll("SV001", "CS102-01", SEMESTER)

    dropped = await service.drop(enrollment.enrollment_id)

    assert not dropped.is_active
    stored = await enrollment_store.get(enrollment.enrollment_id)
    assert stored is not None and not stored.is_active
    assert await section_store.get_stats("CS102-01") == (0, 2)


async def test_drop_twice(service, section_store):
    section_store.add_section(make_section("CS102-01"))
    enrollment = await service.enroll("SV001", "CS102-01", SEMESTER)
    await service.drop(enrollment.enrollment_id)

    with pytest.raises(EnrollmentNotFoundError):
        await service.drop(enrollment.enrollment_id)


async def test_drop_unknown_enrollment(service):
    with pytest.raises(EnrollmentNotFoundError):
        await service.drop("missing")


async def test_drop_mandatory_course_is_rejected(service, enrollment_store, section_store):
    section_store.add_section(make_section("CS101-01"))
    enrollment = await service.enroll("SV002", "CS101-01", SEMESTER)

    with pytest.raises(CannotDropMandatoryCourseError):
        await service.drop(enrollment.enrollment_id)

    assert (await enrollment_store.get(enrollment.enrollment_id)).is_active


async def test_drop_after_deadline_is_rejected(service, enrollment_store, section_store):
    section_store.add_section(make_section("MATH101-01"))
    enrollment = await service.enroll("SV001", "MATH101-01", SEMESTER)

    with pytest.raises(DropDeadlineExceededError):
        await service.drop(enrollment.enrollment_id)

    await service.drop(enrollment.enrollment_id, as_of=date(2025, 8, 31))


async def test_list_enrollments(service, enrollment_store):
    active = make_enrollment("SV001", make_section("CS102-01"))
    dropped = make_enrollment("SV001", make_section("MATH101-01"), is_active=False)
    await enrollment_store.add(active)
    await enrollment_store.add(dropped)

    assert [e.enrollment_id for e in await service.list_enrollments("SV001", SEMESTER)] == [active.enrollment_id]
    assert len(await service.list_enrollments("SV001", SEMESTER, include_inactive=True)) == 2


async def test_failed_seat_update_removes_new_enrollment(service, enrollment_store, section_store):
    section_store.add_section(make_section("CS102-01", capacity=2))
    increment = section_store.increment_enrollment
    section_store.increment_enrollment = AsyncMock(side_effect=StoreUnavailableError("increment_enrollment"))

    with pytest.raises(StoreUnavailableError):
        await service.enroll("SV001", "CS102-01", SEMESTER)

    assert enrollment_store.count() == 0
    assert await section_store.get_stats("CS102-01") == (0, 2)

    # A retry after the outage succeeds instead of reporting ALREADY_ENROLLED
    section_store.increment_enrollment = increment
    await service.enroll("SV001", "CS102-01", SEMESTER)
    assert await section_store.get_stats("CS102-01") == (1, 2)


async def test_failed_seat_release_keeps_enrollment_active(service, enrollment_store, section_store):
    section_store.add_section(make_section("CS102-01", capacity=2))
    enrollment = await service.enroll("SV001", "CS102-01", SEMESTER)
    section_store.decrement_enrollment = AsyncMock(side_effect=StoreUnavailableError("decrement_enrollment"))

    with pytest.raises(StoreUnavailableError):
        await service.drop(enrollment.enrollment_id)

    assert (await enrollment_store.get(enrollment.enrollment_id)).is_active
    assert await section_store.get_stats("CS102-01") == (1, 2)


async def test_slow_section_lookup_raises_store_unavailable(enrollment_store, section_store, service):
    async def slow(section_id):
        await asyncio.sleep(1)

    section_store.get_section = AsyncMock(side_effect=slow)
    service.timeout = 0.01

    with pytest.raises(StoreUnavailableError) as exc_info:
        await service.enroll("SV001", "CS102-01", SEMESTER)

    assert exc_info.value.operation == "get_section"
    assert enrollment_store.count() == 0


async def test_locks_are_released_and_pruned(service, section_store):
    sections = add_free_sections(section_store, 3)

    enrollments = await asyncio.gather(*(
        service.enroll(student_id, sections[0].section_id, SEMESTER) for student_id in ("SV001", "SV002", "SV003")
    ))
    await service.drop(enrollments[0].enrollment_id)
    with pytest.raises(ClassSectionNotFoundError):
        await service.enroll("SV001", "NOPE-01", SEMESTER)

    assert len(service._student_locks) == 0
    assert len(service._section_locks) == 0
