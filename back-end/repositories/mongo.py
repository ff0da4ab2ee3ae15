"""
MongoDB collaborators on top of the Motor collections in database.py.

Driver errors surface as StoreUnavailableError so callers can tell an
infrastructure failure from a business-rule violation.
"""

import functools
import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from pymongo.errors import DuplicateKeyError, PyMongoError

import database
from helpers.exceptions import AlreadyEnrolledError, StoreUnavailableError
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


def translate_errors(func):
    """Re-raise driver errors from a store coroutine as StoreUnavailableError"""

    @functools.wraps(func)
    async def wrapper(self, *args, **kwargs):
        operation = f"{type(self).__name__}.{func.__name__}"
        try:
            return await func(self, *args, **kwargs)
        except PyMongoError as e:
            logger.error(f"MongoDB error in {operation}: {str(e)}")
            raise StoreUnavailableError(operation, e) from e

    return wrapper


def strip_id(doc: Optional[dict]) -> Optional[dict]:
    if doc is not None:
        doc.pop("_id", None)
    return doc


class MongoEnrollmentStore(EnrollmentStore):

    def __init__(self, collection=None):
        self.collection = collection if collection is not None else database.enrollments_collection

    @translate_errors
    async def get_enrollments(self, student_id: str, semester_id: str) -> List[Enrollment]:
        docs = await self.collection.find(
            {"student_id": student_id, "semester_id": semester_id}
        ).to_list(None)
        return [Enrollment.model_validate(strip_id(doc)) for doc in docs]

    @translate_errors
    async def get_active_enrollments(self, student_id: str, semester_id: str) -> List[Enrollment]:
        docs = await self.collection.find(
            {"student_id": student_id, "semester_id": semester_id, "is_active": True}
        ).to_list(None)
        return [Enrollment.model_validate(strip_id(doc)) for doc in docs]

    @translate_errors
    async def get(self, enrollment_id: str) -> Optional[Enrollment]:
        doc = await self.collection.find_one({"enrollment_id": enrollment_id})
        return Enrollment.model_validate(strip_id(doc)) if doc else None

    @translate_errors
    async def add(self, enrollment: Enrollment) -> None:
        try:
            await self.collection.insert_one(enrollment.model_dump(mode="json"))
        except DuplicateKeyError:
            raise AlreadyEnrolledError(enrollment.student_id, enrollment.course_id, enrollment.semester_id)

    @translate_errors
    async def remove(self, enrollment_id: str) -> bool:
        result = await self.collection.delete_one({"enrollment_id": enrollment_id})
        return result.deleted_count > 0

    @translate_errors
    async def deactivate(self, enrollment_id: str) -> bool:
        result = await self.collection.update_one(
            {"enrollment_id": enrollment_id},
            {"$set": {"is_active": False}}
        )
        return result.matched_count > 0

    @translate_errors
    async def reactivate(self, enrollment_id: str) -> bool:
        result = await self.collection.update_one(
            {"enrollment_id": enrollment_id},
            {"$set": {"is_active": True}}
        )
        return result.matched_count > 0

    @translate_errors
    async def is_enrolled(self, student_id: str, course_id: str, semester_id: str) -> bool:
        doc = await self.collection.find_one({
            "student_id": student_id,
            "semester_id": semester_id,
            "class_section.course_id": course_id,
            "is_active": True
        })
        return doc is not None


class MongoCourseCatalog(CourseCatalog, CoursePolicy):

    def __init__(self, collection=None):
        self.collection = collection if collection is not None else database.courses_collection

    @translate_errors
    async def get_course(self, course_id: str) -> Optional[Course]:
        doc = await self.collection.find_one({"course_id": course_id})
        return Course.model_validate(strip_id(doc)) if doc else None

    @translate_errors
    async def list_courses(self) -> List[Course]:
        docs = await self.collection.find().sort("course_id", 1).to_list(None)
        return [Course.model_validate(strip_id(doc)) for doc in docs]

    @translate_errors
    async def get_drop_deadline(self, course_id: str) -> Optional[date]:
        doc = await self.collection.find_one({"course_id": course_id}, {"drop_deadline": 1, "_id": 0})
        if not doc or not doc.get("drop_deadline"):
            return None
        deadline = doc["drop_deadline"]
        if isinstance(deadline, datetime):
            return deadline.date()
        if isinstance(deadline, str):
            return date.fromisoformat(deadline[:10])
        return deadline

    @translate_errors
    async def is_mandatory(self, course_id: str) -> bool:
        doc = await self.collection.find_one({"course_id": course_id}, {"is_mandatory": 1, "_id": 0})
        return bool(doc and doc.get("is_mandatory"))


class MongoStudentRecords(StudentRecords):

    def __init__(self, collection=None):
        self.collection = collection if collection is not None else database.student_records_collection

    @translate_errors
    async def has_completed(self, student_id: str, course_id: str) -> bool:
        doc = await self.collection.find_one({"student_id": student_id, "course_id": course_id})
        return doc is not None

    @translate_errors
    async def get_completed_courses(self, student_id: str) -> List[str]:
        docs = await self.collection.find({"student_id": student_id}, {"course_id": 1, "_id": 0}).to_list(None)
        return sorted(doc["course_id"] for doc in docs)


class MongoClassSectionStore(ClassSectionStore):

    def __init__(self, collection=None):
        self.collection = collection if collection is not None else database.class_sections_collection

    @translate_errors
    async def get_section(self, section_id: str) -> Optional[ClassSection]:
        doc = await self.collection.find_one({"section_id": section_id})
        return ClassSection.model_validate(strip_id(doc)) if doc else None

    @translate_errors
    async def list_sections(self, course_id: Optional[str] = None) -> List[ClassSection]:
        query = {"course_id": course_id} if course_id else {}
        docs = await self.collection.find(query).sort("section_id", 1).to_list(None)
        return [ClassSection.model_validate(strip_id(doc)) for doc in docs]

    @translate_errors
    async def get_stats(self, section_id: str):
        doc = await self.collection.find_one(
            {"section_id": section_id},
            {"enrolled_count": 1, "capacity": 1, "_id": 0}
        )
        if not doc:
            return 0, 0
        return doc.get("enrolled_count", 0), doc.get("capacity", 0)

    @translate_errors
    async def increment_enrollment(self, section_id: str, amount: int = 1) -> None:
        await self.collection.update_one({"section_id": section_id}, {"$inc": {"enrolled_count": amount}})

    @translate_errors
    async def decrement_enrollment(self, section_id: str, amount: int = 1) -> None:
        result = await self.collection.update_one(
            {"section_id": section_id, "enrolled_count": {"$gte": amount}},
            {"$inc": {"enrolled_count": -amount}}
        )
        if result.matched_count == 0:
            await self.collection.update_one({"section_id": section_id}, {"$set": {"enrolled_count": 0}})


class MongoUserStore(UserStore):

    def __init__(self, collection=None):
        self.collection = collection if collection is not None else database.users_collection

    @translate_errors
    async def get_by_username(self, username: str) -> Optional[User]:
        doc = await self.collection.find_one({"username": username})
        return User.model_validate(strip_id(doc)) if doc else None

    @translate_errors
    async def get_by_id(self, user_id: str) -> Optional[User]:
        doc = await self.collection.find_one({"user_id": user_id})
        return User.model_validate(strip_id(doc)) if doc else None


class MongoRefreshTokenStore(RefreshTokenStore):

    def __init__(self, collection=None):
        self.collection = collection if collection is not None else database.refresh_tokens_collection

    @translate_errors
    async def create(self, token: RefreshToken) -> None:
        await self.collection.insert_one(token.model_dump())

    @translate_errors
    async def get(self, token_id: str) -> Optional[RefreshToken]:
        doc = await self.collection.find_one({"token_id": token_id})
        return RefreshToken.model_validate(strip_id(doc)) if doc else None

    @translate_errors
    async def revoke(self, token_id: str, revoked_by: str) -> None:
        await self.collection.update_one(
            {"token_id": token_id, "revoked": False},
            {"$set": {"revoked": True, "revoked_at": datetime.now(timezone.utc), "revoked_by": revoked_by}}
        )

    @translate_errors
    async def revoke_all_for_user(self, user_id: str, revoked_by: str) -> int:
        result = await self.collection.update_many(
            {"user_id": user_id, "revoked": False},
            {"$set": {"revoked": True, "revoked_at": datetime.now(timezone.utc), "revoked_by": revoked_by}}
        )
        return result.modified_count

    @translate_errors
    async def list_for_user(self, user_id: str) -> List[RefreshToken]:
        docs = await self.collection.find({"user_id": user_id}).to_list(None)
        return [RefreshToken.model_validate(strip_id(doc)) for doc in docs]

    @translate_errors
    async def cleanup_expired(self) -> int:
        result = await self.collection.delete_many({"expires_at": {"$lt": datetime.now(timezone.utc)}})
        if result.deleted_count:
            logger.info(f"Removed {result.deleted_count} expired refresh tokens")
        return result.deleted_count
