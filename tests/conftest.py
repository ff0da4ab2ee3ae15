from datetime import date

import pytest
from fastapi.testclient import TestClient

import dependencies
from models.Courses import Course
from models.Enrollments import Enrollment
from models.Schedules import ClassSection, ScheduleSlot
from repositories.clock import FixedClock
from repositories.memory import (
    InMemoryClassSectionStore,
    InMemoryCourseCatalog,
    InMemoryEnrollmentStore,
    InMemoryStudentRecords,
)

SEMESTER = "2025-1"
TODAY = date(2025, 9, 15)


def make_section(section_id, course_id=None, slots=(), capacity=30, enrolled_count=0):
    """Build a section from (day, start, end) tuples"""
    return ClassSection(
        section_id=section_id,
        course_id=course_id or section_id.split("-")[0],
        code=section_id,
        name=section_id,
        slots=[ScheduleSlot(day=day, start_time=start, end_time=end) for day, start, end in slots],
        capacity=capacity,
        enrolled_count=enrolled_count,
    )


def make_enrollment(student_id, section, semester_id=SEMESTER, is_active=True):
    return Enrollment(
        student_id=student_id,
        section_id=section.section_id,
        semester_id=semester_id,
        class_section=section,
        is_active=is_active,
    )


@pytest.fixture
def clock():
    return FixedClock(TODAY)


@pytest.fixture
def enrollment_store():
    return InMemoryEnrollmentStore()


@pytest.fixture
def section_store():
    return InMemoryClassSectionStore()


@pytest.fixture
def course_catalog():
    return InMemoryCourseCatalog([
        Course(course_id="CS101", code="CS101", name="Introduction to Programming", is_mandatory=True,
               drop_deadline=date(2025, 10, 1)),
        Course(course_id="CS102", code="CS102", name="Data Structures", prerequisites=["CS101"],
               drop_deadline=date(2025, 10, 1)),
        Course(course_id="MATH101", code="MATH101", name="Calculus I", drop_deadline=date(2025, 9, 1)),
        Course(course_id="CS201", code="CS201", name="Algorithms", prerequisites=["CS102", "MATH101", "CS101"]),
    ])


@pytest.fixture
def student_records():
    return InMemoryStudentRecords({"SV001": ["CS101"]})


@pytest.fixture
def api_stores():
    stores = dependencies.build_memory_stores(seed=True, clock=FixedClock(TODAY))
    dependencies.set_stores(stores)
    yield stores
    dependencies.set_stores(None)


@pytest.fixture
def client(api_stores):
    from app import app

    with TestClient(app) as test_client:
        yield test_client


def login(client, username, password):
    response = client.post("/api/v1/auth/login", data={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return response.json()


def auth_headers(tokens):
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest.fixture
def student_headers(client):
    return auth_headers(login(client, "student1", "student123"))


@pytest.fixture
def admin_headers(client):
    return auth_headers(login(client, "admin1", "admin123"))
