"""
Sample catalog, sections, completed-course records and users.

Used to seed the in-memory stores at startup and, when run as a script,
to load the same data into MongoDB.
"""

import asyncio
import logging
from datetime import date

from helpers.auth import hash_password
from models.Courses import Course
from models.Schedules import ClassSection, DayOfWeek, ScheduleSlot
from models.Users import User, UserRole

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SAMPLE_SEMESTER = "2025-1"

SAMPLE_COURSES = [
    Course(course_id="CS101", code="CS101", name="Introduction to Programming",
           credit_hours=3, drop_deadline=date(2030, 12, 31), is_mandatory=True),
    Course(course_id="CS102", code="CS102", name="Data Structures",
           credit_hours=3, prerequisites=["CS101"], drop_deadline=date(2030, 12, 31)),
    Course(course_id="MATH101", code="MATH101", name="Calculus I",
           credit_hours=4, drop_deadline=date(2030, 12, 31)),
    Course(course_id="MATH201", code="MATH201", name="Linear Algebra",
           credit_hours=3, prerequisites=["MATH101"], drop_deadline=date(2030, 12, 31)),
    Course(course_id="CS201", code="CS201", name="Algorithms",
           credit_hours=3, prerequisites=["CS102", "MATH201"], drop_deadline=date(2030, 12, 31)),
    Course(course_id="ENG101", code="ENG101", name="Academic English",
           credit_hours=2, drop_deadline=date(2030, 12, 31)),
    Course(course_id="PHY101", code="PHY101", name="General Physics",
           credit_hours=4, drop_deadline=date(2030, 12, 31)),
    Course(course_id="HIST101", code="HIST101", name="World History",
           credit_hours=2, drop_deadline=date(2020, 1, 31)),
    Course(course_id="ART101", code="ART101", name="Art Appreciation", credit_hours=2),
]

def _slot(day: DayOfWeek, start: str, end: str, room: str) -> ScheduleSlot:
    return ScheduleSlot(day=day, start_time=start, end_time=end, room=room)

SAMPLE_SECTIONS = [
    ClassSection(section_id="CS101-01", course_id="CS101", code="CS101-01", name="Intro to Programming (01)",
                 slots=[_slot(DayOfWeek.MONDAY, "08:00", "10:00", "A101")], capacity=40),
    ClassSection(section_id="CS101-02", course_id="CS101", code="CS101-02", name="Intro to Programming (02)",
                 slots=[_slot(DayOfWeek.TUESDAY, "13:00", "15:00", "A102")], capacity=40),
    ClassSection(section_id="CS102-01", course_id="CS102", code="CS102-01", name="Data Structures (01)",
                 slots=[_slot(DayOfWeek.WEDNESDAY, "08:00", "10:00", "A201")], capacity=35),
    ClassSection(section_id="MATH101-01", course_id="MATH101", code="MATH101-01", name="Calculus I (01)",
                 slots=[_slot(DayOfWeek.MONDAY, "08:00", "09:30", "B101"),
                        _slot(DayOfWeek.THURSDAY, "08:00", "09:30", "B101")], capacity=50),
    ClassSection(section_id="MATH201-01", course_id="MATH201", code="MATH201-01", name="Linear Algebra (01)",
                 slots=[_slot(DayOfWeek.TUESDAY, "08:00", "10:00", "B202")], capacity=30),
    ClassSection(section_id="CS201-01", course_id="CS201", code="CS201-01", name="Algorithms (01)",
                 slots=[_slot(DayOfWeek.FRIDAY, "10:00", "12:00", "A301")], capacity=30),
    ClassSection(section_id="ENG101-01", course_id="ENG101", code="ENG101-01", name="Academic English (01)",
                 slots=[_slot(DayOfWeek.WEDNESDAY, "13:00", "15:00", "C101")], capacity=25),
    ClassSection(section_id="PHY101-01", course_id="PHY101", code="PHY101-01", name="General Physics (01)",
                 slots=[_slot(DayOfWeek.THURSDAY, "13:00", "15:30", "D101")], capacity=45),
    ClassSection(section_id="HIST101-01", course_id="HIST101", code="HIST101-01", name="World History (01)",
                 slots=[_slot(DayOfWeek.FRIDAY, "13:00", "15:00", "C201")], capacity=60),
    ClassSection(section_id="ART101-01", course_id="ART101", code="ART101-01", name="Art Appreciation (01)",
                 slots=[_slot(DayOfWeek.SATURDAY, "09:00", "11:00", "E101")], capacity=2, enrolled_count=2),
]

# student_id -> completed course ids
SAMPLE_COMPLETED_COURSES = {
    "SV001": ["CS101", "MATH101"],
    "SV002": ["CS101", "CS102", "MATH101", "MATH201"],
}

# (user_id, username, password, role, name)
SAMPLE_ACCOUNTS = [
    ("SV001", "student1", "student123", UserRole.STUDENT, "Nguyen Van An"),
    ("SV002", "student2", "student123", UserRole.STUDENT, "Tran Thi Binh"),
    ("ADMIN-0001", "admin1", "admin123", UserRole.ADMIN, "Registrar Office"),
]

def sample_users() -> list[User]:
    return [
        User(user_id=user_id, username=username, password_hash=hash_password(password), role=role, name=name)
        for user_id, username, password, role, name in SAMPLE_ACCOUNTS
    ]

def seed_memory_stores(stores) -> None:
    """Load the sample data into a set of in-memory stores"""
    for course in SAMPLE_COURSES:
        stores.course_catalog.add_course(course)
    for section in SAMPLE_SECTIONS:
        stores.section_store.add_section(section)
    for student_id, course_ids in SAMPLE_COMPLETED_COURSES.items():
        for course_id in course_ids:
            stores.student_records.add_completed_course(student_id, course_id)
    for user in sample_users():
        stores.user_store.add_user(user)
    logger.info(
        f"Seeded {len(SAMPLE_COURSES)} courses, {len(SAMPLE_SECTIONS)} sections "
        f"and {len(SAMPLE_ACCOUNTS)} users"
    )

async def seed_mongo_database():
    """Upsert the sample data into MongoDB"""
    from database import (
        class_sections_collection,
        courses_collection,
        create_indexes,
        student_records_collection,
        users_collection,
    )

    await create_indexes()

    for course in SAMPLE_COURSES:
        await courses_collection.replace_one(
            {"course_id": course.course_id}, course.model_dump(mode="json"), upsert=True
        )
    for section in SAMPLE_SECTIONS:
        await class_sections_collection.replace_one(
            {"section_id": section.section_id}, section.model_dump(mode="json"), upsert=True
        )
    for student_id, course_ids in SAMPLE_COMPLETED_COURSES.items():
        for course_id in course_ids:
            await student_records_collection.update_one(
                {"student_id": student_id, "course_id": course_id},
                {"$set": {"student_id": student_id, "course_id": course_id}},
                upsert=True
            )
    for user in sample_users():
        await users_collection.replace_one({"user_id": user.user_id}, user.model_dump(), upsert=True)

    logger.info(f"Seeded MongoDB with {len(SAMPLE_COURSES)} courses and {len(SAMPLE_SECTIONS)} sections")

if __name__ == "__main__":
    asyncio.run(seed_mongo_database())
