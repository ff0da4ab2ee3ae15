from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from conftest import SEMESTER, make_enrollment, make_section
from helpers.exceptions import AlreadyEnrolledError, StoreUnavailableError
from repositories.mongo import MongoClassSectionStore, MongoCourseCatalog, MongoEnrollmentStore


def cursor_of(docs):
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=docs)
    cursor.sort = MagicMock(return_value=cursor)
    return cursor


async def test_enrollments_are_read_without_object_ids():
    enrollment = make_enrollment("SV001", make_section("CS102-01"))
    doc = {"_id": "abc", **enrollment.model_dump(mode="json")}
    collection = MagicMock()
    collection.find = MagicMock(return_value=cursor_of([doc]))

    enrollments = await MongoEnrollmentStore(collection).get_enrollments("SV001", SEMESTER)

    assert [e.enrollment_id for e in enrollments] == [enrollment.enrollment_id]
    collection.find.assert_called_once_with({"student_id": "SV001", "semester_id": SEMESTER})


async def test_duplicate_active_enrollment_is_already_enrolled():
    collection = MagicMock()
    collection.insert_one = AsyncMock(side_effect=DuplicateKeyError("E11000 duplicate key"))

    with pytest.raises(AlreadyEnrolledError):
        await MongoEnrollmentStore(collection).add(make_enrollment("SV001", make_section("CS102-01")))


async def test_driver_errors_become_store_unavailable():
    collection = MagicMock()
    collection.find_one = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))

    with pytest.raises(StoreUnavailableError) as exc_info:
        await MongoClassSectionStore(collection).get_stats("CS102-01")

    assert exc_info.value.operation == "MongoClassSectionStore.get_stats"


async def test_section_stats_for_unknown_section():
    collection = MagicMock()
    collection.find_one = AsyncMock(return_value=None)

    assert await MongoClassSectionStore(collection).get_stats("NOPE-01") == (0, 0)


async def test_decrement_floors_at_zero():
    collection = MagicMock()
    collection.update_one = AsyncMock(return_value=MagicMock(matched_count=0))

    await MongoClassSectionStore(collection).decrement_enrollment("CS102-01", 2)

    assert collection.update_one.await_args_list[-1].args == (
        {"section_id": "CS102-01"}, {"$set": {"enrolled_count": 0}}
    )


@pytest.mark.parametrize("stored, expected", [
    ("2025-10-01", "2025-10-01"),
    ("2025-10-01T00:00:00", "2025-10-01"),
    (None, None),
])
async def test_drop_deadline_parsing(stored, expected):
    collection = MagicMock()
    collection.find_one = AsyncMock(return_value={"drop_deadline": stored})

    deadline = await MongoCourseCatalog(collection).get_drop_deadline("CS102")

    assert (deadline.isoformat() if deadline else None) == expected
